"""Pydantic schemas for inbound Slack events.

Defines the InboundEvent union: HandshakeChallenge, Mention and IgnoredEvent.
"""

from pydantic import BaseModel
from typing import Optional, Union

class HandshakeChallenge(BaseModel):
    challenge: str

class Mention(BaseModel):
    channel: str
    ts: str
    text: str = ""
    user: Optional[str] = None
    thread_ts: Optional[str] = None
    event_id: Optional[str] = None

    @property
    def is_threaded(self) -> bool:
        return bool(self.thread_ts)

class IgnoredEvent(BaseModel):
    event_type: Optional[str] = None
    event_id: Optional[str] = None

InboundEvent = Union[HandshakeChallenge, Mention, IgnoredEvent]
