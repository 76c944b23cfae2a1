"""Pydantic schema for aggregated thread state.

ThreadContext is built per mention and never shared or persisted.
"""

from pydantic import BaseModel, Field
from typing import Dict, List

class ThreadContext(BaseModel):
    messages: List[str] = Field(default_factory=list)  # oldest first
    urls: List[str] = Field(default_factory=list)  # first-seen order, unique
    url_contents: Dict[str, str] = Field(default_factory=dict)  # page text or error string

    def add_message(self, text: str, urls: List[str]) -> None:
        self.messages.append(text)
        for url in urls:
            if url not in self.urls:
                self.urls.append(url)

    def has_content(self, url: str) -> bool:
        return url in self.url_contents
