import asyncio
from typing import List, Optional

import aiohttp
from slack_sdk.web.async_client import AsyncWebClient
from slack_sdk.errors import SlackApiError, SlackClientError
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential
from tenacity.wait import wait_base
from ..errors import ThreadHistoryError
from ..log import get_logger
from .post_blocks import build_post_payload, build_update_payload

logger = get_logger("slack_client")

def _is_rate_limited(exc: BaseException) -> bool:
    return isinstance(exc, SlackApiError) and exc.response.get("error") == "ratelimited"

class SlackClientWrapper:
    """
    Thin async wrapper around the Slack Web API.
    One instance is shared by all mention tasks; AsyncWebClient holds no per-request state.
    """

    def __init__(self, token: str, client: Optional[AsyncWebClient] = None, retry_wait: Optional[wait_base] = None):
        self.client = client or AsyncWebClient(token=token)
        self.retry_wait = retry_wait or wait_exponential(multiplier=1, min=2, max=10)

    async def _call(self, method: str, **kwargs):
        async for attempt in AsyncRetrying(
            retry=retry_if_exception(_is_rate_limited),
            stop=stop_after_attempt(3),
            wait=self.retry_wait,
            reraise=True,
        ):
            with attempt:
                try:
                    return await getattr(self.client, method)(**kwargs)
                except SlackApiError as e:
                    if _is_rate_limited(e):
                        logger.warning("Slack rate limited, retrying...")
                    else:
                        logger.error(f"Slack API error in {method}: {e.response.get('error')}")
                    raise

    async def post_message(self, channel_id: str, text: str, thread_ts: Optional[str] = None) -> str:
        """
        Posts a message (threaded if thread_ts is given) and returns its ts.
        """
        payload = build_post_payload(channel=channel_id, text=text, thread_ts=thread_ts)
        response = await self._call("chat_postMessage", **payload)
        return response["ts"]

    async def update_message(self, channel_id: str, ts: str, text: str) -> None:
        """Edits an existing message in place."""
        payload = build_update_payload(channel=channel_id, ts=ts, text=text)
        await self._call("chat_update", **payload)

    async def get_thread_messages(self, channel_id: str, thread_ts: str) -> List[str]:
        """
        Reads every message of a thread, root included, oldest first.
        Follows pagination cursors. Requires the '*:history' scopes.
        Raises ThreadHistoryError on API or transport failure.
        """
        texts: List[str] = []
        seen_ts = set()
        cursor = None
        try:
            while True:
                params = {"channel": channel_id, "ts": thread_ts, "inclusive": True, "limit": 200}
                if cursor:
                    params["cursor"] = cursor
                response = await self._call("conversations_replies", **params)
                for message in response.get("messages", []):
                    # The root message may be repeated on later pages
                    if message.get("ts") in seen_ts:
                        continue
                    seen_ts.add(message.get("ts"))
                    texts.append(message.get("text") or "")

                cursor = (response.get("response_metadata") or {}).get("next_cursor")
                if not cursor:
                    break
        except (SlackClientError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ThreadHistoryError(f"failed to get conversation replies: {e}") from e
        return texts

    async def aclose(self) -> None:
        # AsyncWebClient opens a session per request unless one was injected
        session = getattr(self.client, "session", None)
        if session is not None and not session.closed:
            await session.close()
