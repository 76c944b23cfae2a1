"""Headless-browser fetcher.

Renders the page in Chromium via Playwright so JS-heavy sites produce text,
then removes boilerplate nodes in the page and reads body.innerText.
"""

from typing import Optional

from playwright.async_api import async_playwright, Browser, Playwright, Error as PlaywrightError
from ..errors import FetchFailure, EmptyContent
from ..log import get_logger
from .extract import collapse_whitespace
from .fetch import normalize_url

logger = get_logger("fetch")

CLEANUP_SCRIPT = """() => document.querySelectorAll(
    'script, style, nav, footer, aside, [role="navigation"], [role="complementary"], [aria-hidden="true"]'
).forEach(el => el.remove())"""

INNER_TEXT_SCRIPT = "() => document.body ? document.body.innerText : ''"

class BrowserFetcher:
    def __init__(self, timeout: float = 30.0):
        self.timeout_ms = timeout * 1000
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None

    async def start(self) -> None:
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=True,
            args=["--no-sandbox", "--disable-gpu", "--disable-dev-shm-usage"],
        )
        logger.info("Headless browser started")

    async def fetch(self, url: str) -> str:
        if self._browser is None:
            raise FetchFailure(url, "browser is not running")

        target = normalize_url(url)
        logger.info(f"Rendering {target}")
        # One context per fetch so concurrent mentions never share cookies or tabs
        context = await self._browser.new_context()
        try:
            page = await context.new_page()
            response = await page.goto(target, timeout=self.timeout_ms, wait_until="load")
            status = response.status if response else 0
            await page.evaluate(CLEANUP_SCRIPT)
            content = await page.evaluate(INNER_TEXT_SCRIPT)
        except PlaywrightError as e:
            raise FetchFailure(url, str(e)) from e
        finally:
            await context.close()

        if status and not 200 <= status < 300:
            raise FetchFailure(url, f"received non-2xx status code {status}")

        content = collapse_whitespace(content or "")
        if not content:
            raise EmptyContent(url)
        return content

    async def aclose(self) -> None:
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()
