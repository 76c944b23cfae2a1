"""Summarizer protocol and its OpenAI implementation.

The summarizer takes already-fetched content plus an optional user question
and returns text that can be posted to Slack as-is.
"""

from typing import Optional, Protocol, Union, runtime_checkable

from openai import AsyncOpenAI, OpenAIError
from ..errors import SummarizeFailure
from ..log import get_logger
from .prompts import Mode, build_messages

logger = get_logger("llm")

@runtime_checkable
class Summarizer(Protocol):
    async def process_content(self, content: str, user_prompt: str) -> str: ...

    async def process_content_with_mode(self, content: str, user_prompt: str, mode: str) -> str: ...

def parse_mode(mode: Union[str, Mode]) -> Mode:
    try:
        return Mode(mode)
    except ValueError:
        raise ValueError(f"Unknown processing mode {mode!r}; expected one of {[m.value for m in Mode]}") from None

class OpenAISummarizer:
    def __init__(self, api_key: str, model: str = "chatgpt-4o-latest", client: Optional[AsyncOpenAI] = None):
        self.model = model
        self.client = client or AsyncOpenAI(api_key=api_key)

    async def process_content(self, content: str, user_prompt: str) -> str:
        return await self.process_content_with_mode(content, user_prompt, Mode.SUMMARY)

    async def process_content_with_mode(self, content: str, user_prompt: str, mode: Union[str, Mode]) -> str:
        mode = parse_mode(mode)
        messages = build_messages(content, user_prompt, mode)
        logger.info(f"Requesting {mode.value} completion from {self.model} ({len(content)} chars of content)")

        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
            )
        except OpenAIError as e:
            raise SummarizeFailure(f"openai chat completion failed: {e}") from e

        if not completion.choices or not completion.choices[0].message.content:
            raise SummarizeFailure("openai returned an empty response")

        return completion.choices[0].message.content.strip()

    async def aclose(self) -> None:
        await self.client.close()
