"""Progress reporting through a single, edited Slack message.

A ProcessingSession posts one status message when a mention is picked up and
edits it for every later status change, including the final answer.
"""

from typing import NamedTuple, Protocol, runtime_checkable

from ..log import get_logger
from .client import SlackClientWrapper

logger = get_logger("progress")

LOADING_TEXT = ":loading:"


class MessageHandle(NamedTuple):
    channel: str
    ts: str


@runtime_checkable
class ProgressReporter(Protocol):
    async def post(self, channel: str, anchor_ts: str, text: str) -> MessageHandle: ...

    async def update(self, handle: MessageHandle, text: str) -> None: ...


class SlackProgressReporter:
    def __init__(self, slack: SlackClientWrapper):
        self.slack = slack

    async def post(self, channel: str, anchor_ts: str, text: str) -> MessageHandle:
        ts = await self.slack.post_message(channel, text, thread_ts=anchor_ts)
        return MessageHandle(channel=channel, ts=ts)

    async def update(self, handle: MessageHandle, text: str) -> None:
        await self.slack.update_message(handle.channel, handle.ts, text)


class ProcessingSession:
    """Binds one mention to one status message for its whole lifetime."""

    def __init__(self, reporter: ProgressReporter, handle: MessageHandle):
        self.reporter = reporter
        self.handle = handle
        self.last_text = None
        self.update_count = 0

    @classmethod
    async def open(cls, reporter: ProgressReporter, channel: str, anchor_ts: str, text: str = LOADING_TEXT) -> "ProcessingSession":
        """Posts the status message. Errors propagate: without a message there is nothing to report into."""
        handle = await reporter.post(channel, anchor_ts, text)
        session = cls(reporter, handle)
        session.last_text = text
        return session

    async def report(self, text: str) -> bool:
        """
        Edits the status message. Failures are logged and swallowed so a flaky
        chat.update never aborts the work being reported on.
        """
        self.last_text = text
        try:
            await self.reporter.update(self.handle, text)
        except Exception as e:
            logger.warning(f"Error updating progress message {self.handle.ts} in {self.handle.channel}: {e}")
            return False
        self.update_count += 1
        return True
