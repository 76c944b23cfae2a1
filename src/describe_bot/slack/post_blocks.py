"""Slack message payload builders.

Provides functions to build chat.postMessage / chat.update payloads.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

# chat.postMessage / chat.update reject text longer than this
MAX_MESSAGE_CHARS = 40000
TRUNCATION_MARKER = "\n\n… (truncated)"


def truncate_text(text: str, limit: int = MAX_MESSAGE_CHARS) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - len(TRUNCATION_MARKER)] + TRUNCATION_MARKER


def build_post_payload(
    channel: str,
    text: str,
    thread_ts: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Payload for chat.postMessage.
    Posts as plain text with mrkdwn enabled (no blocks) to avoid 3000-char block limit.
    """
    payload: Dict[str, Any] = {
        "channel": channel,
        "text": truncate_text(text),
        "mrkdwn": True,  # Enable mrkdwn formatting in text field
        "unfurl_links": False,
        "unfurl_media": False,
    }
    if thread_ts:
        payload["thread_ts"] = thread_ts
    return payload


def build_update_payload(channel: str, ts: str, text: str) -> Dict[str, Any]:
    """Payload for chat.update, which edits the message at (channel, ts) in place."""
    return {
        "channel": channel,
        "ts": ts,
        "text": truncate_text(text),
    }
