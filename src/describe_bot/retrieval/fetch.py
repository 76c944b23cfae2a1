"""Content fetchers.

Defines the Fetcher protocol and HttpFetcher, which downloads a page with httpx
and strips it down to readable text. Retries transient transport errors.
"""

from typing import Optional, Protocol, runtime_checkable

import httpx
from tenacity import retry, stop_after_attempt, wait_fixed, retry_if_exception_type
from ..errors import FetchFailure, EmptyContent
from ..log import get_logger
from .extract import extract_text

logger = get_logger("fetch")

@runtime_checkable
class Fetcher(Protocol):
    """Retrieves the main textual content of a page. Raises FetchFailure."""

    async def fetch(self, url: str) -> str: ...

def normalize_url(url: str) -> str:
    # "www.example.com" is not fetchable as-is
    if url.startswith("www."):
        return f"https://{url}"
    return url

class HttpFetcher:
    def __init__(self, timeout: float = 30.0, client: Optional[httpx.AsyncClient] = None):
        self.headers = {
            "User-Agent": "DescribeBot/1.0 (+https://api.slack.com/bot-users)"
        }
        self.client = client or httpx.AsyncClient(
            timeout=timeout, follow_redirects=True, headers=self.headers
        )

    async def fetch(self, url: str) -> str:
        target = normalize_url(url)
        logger.info(f"Fetching {target}")
        try:
            html = await self._get(target)
        except httpx.HTTPStatusError as e:
            raise FetchFailure(url, f"received status code {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise FetchFailure(url, str(e) or e.__class__.__name__) from e

        text = extract_text(html)
        if not text:
            raise EmptyContent(url)
        logger.debug(f"Fetched {len(text)} chars from {target}")
        return text

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_fixed(2),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _get(self, url: str) -> str:
        resp = await self.client.get(url)
        resp.raise_for_status()
        return resp.text

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()
