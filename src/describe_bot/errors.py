"""Error taxonomy for the mention pipeline.

Ingress errors (AuthenticationFailure, MalformedEvent) reject a request before
anything is scheduled. Everything else happens inside a mention task and ends
up as text in the mention's status message.
"""


class DescribeBotError(Exception):
    """Base class for all describe-bot errors."""


class AuthenticationFailure(DescribeBotError):
    """Request signature is missing, stale or wrong."""


class MalformedEvent(DescribeBotError):
    """Event body could not be parsed into a known shape."""


class FetchFailure(DescribeBotError):
    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"failed to fetch content from {url}: {reason}")


class EmptyContent(FetchFailure):
    def __init__(self, url: str):
        super().__init__(url, "fetched content is empty")


class SummarizeFailure(DescribeBotError):
    """The language model call failed or returned nothing usable."""


class ThreadHistoryError(DescribeBotError):
    """Thread replies could not be retrieved from Slack."""
