import asyncio
import os
import time
from typing import Dict, List, Optional

import pytest
from dotenv import load_dotenv

# Settings require these; set them before any describe_bot module reads the environment
os.environ.setdefault("SLACK_BOT_TOKEN", "xoxb-test")
os.environ.setdefault("SLACK_SIGNING_SECRET", "test-signing-secret")
os.environ.setdefault("OPENAI_API_KEY", "sk-test")

from describe_bot.errors import SummarizeFailure
from describe_bot.pipeline.dispatcher import MentionDispatcher
from describe_bot.schemas.events import Mention
from describe_bot.slack.progress import MessageHandle
from describe_bot.slack.verify import compute_signature

SIGNING_SECRET = "test-signing-secret"

@pytest.fixture(scope="session", autouse=True)
def _load_env():
    # Load .env once per session to avoid side-effects on import time
    load_dotenv()

def _truthy(v: Optional[str]) -> bool:
    return v is not None and v.strip().lower() not in ("", "0", "false", "no")

@pytest.fixture(scope="session")
def allow_integration(_load_env) -> bool:
    return _truthy(os.getenv("RUN_INTEGRATION_TESTS"))


class FakeFetcher:
    """Returns canned content per URL; raises the configured error for a URL if any."""

    def __init__(self, contents: Optional[Dict[str, str]] = None, errors: Optional[Dict[str, Exception]] = None):
        self.contents = contents or {}
        self.errors = errors or {}
        self.calls: List[str] = []

    async def fetch(self, url: str) -> str:
        self.calls.append(url)
        if url in self.errors:
            raise self.errors[url]
        return self.contents.get(url, f"content of {url}")


class BlockingFetcher:
    """Never finishes a fetch; `started` is set once a fetch is in progress."""

    def __init__(self):
        self.started = asyncio.Event()
        self.calls: List[str] = []

    async def fetch(self, url: str) -> str:
        self.calls.append(url)
        self.started.set()
        await asyncio.Event().wait()
        return ""


class FakeSummarizer:
    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.calls: List[tuple] = []  # (content, user_prompt, mode)

    async def process_content(self, content: str, user_prompt: str) -> str:
        return await self.process_content_with_mode(content, user_prompt, "summary")

    async def process_content_with_mode(self, content: str, user_prompt: str, mode: str) -> str:
        self.calls.append((content, user_prompt, mode))
        if self.error is not None:
            raise self.error
        return f"{mode} answer #{len(self.calls)}"


class FakeReporter:
    def __init__(self, fail_updates: bool = False, fail_post: bool = False):
        self.fail_updates = fail_updates
        self.fail_post = fail_post
        self.posts: List[tuple] = []  # (channel, anchor_ts, text)
        self.updates: List[tuple] = []  # (handle, text), successful only
        self.attempts: List[str] = []

    async def post(self, channel: str, anchor_ts: str, text: str) -> MessageHandle:
        if self.fail_post:
            raise RuntimeError("channel_not_found")
        self.posts.append((channel, anchor_ts, text))
        return MessageHandle(channel=channel, ts=f"status-{len(self.posts)}")

    async def update(self, handle: MessageHandle, text: str) -> None:
        self.attempts.append(text)
        if self.fail_updates:
            raise RuntimeError("message_not_found")
        self.updates.append((handle, text))

    @property
    def texts(self) -> List[str]:
        return [text for _, text in self.updates]

    @property
    def final_text(self) -> Optional[str]:
        return self.attempts[-1] if self.attempts else None


class FakeHistory:
    def __init__(self, messages: Optional[List[str]] = None, error: Optional[Exception] = None):
        self.messages = messages or []
        self.error = error
        self.calls: List[tuple] = []

    async def get_thread_messages(self, channel_id: str, thread_ts: str) -> List[str]:
        self.calls.append((channel_id, thread_ts))
        if self.error is not None:
            raise self.error
        return list(self.messages)


@pytest.fixture
def fetcher():
    return FakeFetcher()

@pytest.fixture
def summarizer():
    return FakeSummarizer()

@pytest.fixture
def reporter():
    return FakeReporter()

@pytest.fixture
def history():
    return FakeHistory()

@pytest.fixture
def make_dispatcher(fetcher, summarizer, reporter, history):
    """Builds a MentionDispatcher; any collaborator can be overridden by keyword."""
    def _make(**overrides):
        return MentionDispatcher(
            fetcher=overrides.get("fetcher", fetcher),
            summarizer=overrides.get("summarizer", summarizer),
            reporter=overrides.get("reporter", reporter),
            history=overrides.get("history", history),
        )
    return _make

@pytest.fixture
def make_mention():
    def _make(text: str, thread_ts: Optional[str] = None, **kwargs) -> Mention:
        return Mention(
            channel=kwargs.get("channel", "C_TEST"),
            ts=kwargs.get("ts", "1700000100.000200"),
            user=kwargs.get("user", "U_USER"),
            text=text,
            thread_ts=thread_ts,
            event_id=kwargs.get("event_id"),
        )
    return _make

@pytest.fixture
def sign():
    """Returns Slack signature headers for a raw body."""
    def _sign(body: bytes, timestamp: Optional[str] = None, secret: str = SIGNING_SECRET) -> Dict[str, str]:
        timestamp = timestamp or str(int(time.time()))
        return {
            "Content-Type": "application/json",
            "X-Slack-Request-Timestamp": timestamp,
            "X-Slack-Signature": compute_signature(secret, timestamp, body),
        }
    return _sign

@pytest.fixture
def summarize_error():
    return SummarizeFailure("openai chat completion failed: boom")

@pytest.fixture
def fakes():
    """The fake collaborator classes, for tests that need custom instances."""
    from types import SimpleNamespace
    return SimpleNamespace(
        Fetcher=FakeFetcher,
        BlockingFetcher=BlockingFetcher,
        Summarizer=FakeSummarizer,
        Reporter=FakeReporter,
        History=FakeHistory,
    )
