from ..config import Settings
from .fetch import Fetcher, HttpFetcher

def create_fetcher(settings: Settings) -> Fetcher:
    """Builds the fetcher selected by FETCHER_BACKEND. Use it as an async context manager."""
    if settings.FETCHER_BACKEND == "browser":
        from .browser import BrowserFetcher
        return BrowserFetcher(timeout=settings.FETCH_TIMEOUT_SECONDS)
    return HttpFetcher(timeout=settings.FETCH_TIMEOUT_SECONDS)
