"""Mention dispatcher.

Drives one app_mention from "received" to a terminal state:

    RECEIVED -> CLASSIFIED -> FETCHING -> SUMMARIZING -> COMPLETED | FAILED

New mentions summarize every URL in the message one by one; a URL that cannot
be fetched is reported and skipped. Mentions inside a thread answer the
latest question using the whole thread (messages plus the content of every
URL in it); there any fetch failure fails the mention.

Everything the user sees goes through one ProcessingSession, so the status
message always ends up showing the terminal state.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from ..errors import EmptyContent, FetchFailure, SummarizeFailure, ThreadHistoryError
from ..llm.client import Summarizer
from ..llm.prompts import Mode
from ..log import get_logger
from ..rendering import slack_format as fmt
from ..retrieval.fetch import Fetcher
from ..retrieval.url import extract_prompt, extract_urls
from ..schemas.events import Mention
from ..slack.progress import ProcessingSession, ProgressReporter
from .thread_context import ThreadHistorySource, build_thread_context, build_thread_prompt

logger = get_logger("dispatcher")


class MentionKind(str, Enum):
    NEW = "new"
    THREADED = "threaded"


class MentionState(str, Enum):
    RECEIVED = "received"
    CLASSIFIED = "classified"
    FETCHING = "fetching"
    SUMMARIZING = "summarizing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATES = (MentionState.COMPLETED, MentionState.FAILED)


@dataclass
class MentionResult:
    mention: Mention
    kind: Optional[MentionKind] = None
    states: List[MentionState] = field(default_factory=lambda: [MentionState.RECEIVED])
    text: Optional[str] = None

    @property
    def state(self) -> MentionState:
        return self.states[-1]

    def advance(self, state: MentionState) -> None:
        if self.state in TERMINAL_STATES:
            raise RuntimeError(f"mention {self.mention.ts} already ended in {self.state.value}")
        self.states.append(state)
        logger.debug(f"Mention {self.mention.ts} in {self.mention.channel}: {state.value}")


def classify(mention: Mention) -> MentionKind:
    return MentionKind.THREADED if mention.is_threaded else MentionKind.NEW


class MentionDispatcher:
    def __init__(
        self,
        fetcher: Fetcher,
        summarizer: Summarizer,
        reporter: ProgressReporter,
        history: ThreadHistorySource,
    ):
        self.fetcher = fetcher
        self.summarizer = summarizer
        self.reporter = reporter
        self.history = history

    async def dispatch(self, mention: Mention) -> MentionResult:
        outcome = MentionResult(mention=mention)
        outcome.kind = classify(mention)
        outcome.advance(MentionState.CLASSIFIED)
        logger.info(
            f"Handling {outcome.kind.value} mention from user {mention.user} "
            f"in channel {mention.channel} (ts={mention.ts})"
        )

        # New mentions are answered under the mention itself, thread mentions in the thread
        anchor_ts = mention.thread_ts if outcome.kind is MentionKind.THREADED else mention.ts
        try:
            session = await ProcessingSession.open(self.reporter, mention.channel, anchor_ts)
        except Exception as e:
            logger.error(f"Error posting loading message to Slack: {e}")
            outcome.advance(MentionState.FAILED)
            outcome.text = str(e)
            return outcome

        try:
            if outcome.kind is MentionKind.THREADED:
                state, text = await self._handle_threaded(mention, session, outcome)
            else:
                state, text = await self._handle_new(mention, session, outcome)
        except asyncio.CancelledError:
            logger.warning(f"Processing of mention {mention.ts} was cancelled")
            await self._finish(session, outcome, MentionState.FAILED, fmt.CANCELLED_TEXT)
            raise
        except Exception as e:
            logger.exception(f"Unexpected error while processing mention {mention.ts}")
            state, text = MentionState.FAILED, fmt.unexpected_error(e)

        await self._finish(session, outcome, state, text)
        logger.info(f"Mention {mention.ts} finished: {state.value}")
        return outcome

    async def _handle_new(
        self, mention: Mention, session: ProcessingSession, outcome: MentionResult
    ) -> Tuple[MentionState, str]:
        urls = extract_urls(mention.text)
        if not urls:
            logger.info(f"No URLs found in mention from user {mention.user} in channel {mention.channel}")
            return MentionState.COMPLETED, fmt.NO_URLS_TEXT

        logger.info(f"Found URLs: {urls} in mention from user {mention.user}")
        user_prompt = extract_prompt(mention.text)
        sections: List[Tuple[str, Optional[str], Optional[str]]] = []

        # Strictly sequential: one fetch/summarize pair at a time
        for i, url in enumerate(urls, start=1):
            await session.report(fmt.processing_url(i, len(urls), url))

            outcome.advance(MentionState.FETCHING)
            await session.report(fmt.fetching_url(url))
            try:
                content = await self._fetch(url)
            except FetchFailure as e:
                logger.warning(f"Error processing URL {url}: {e}")
                await session.report(fmt.url_error(url, e.reason))
                sections.append((url, None, e.reason))
                continue

            outcome.advance(MentionState.SUMMARIZING)
            await session.report(fmt.generating_summary(url))
            try:
                summary = await self._summarize(content, user_prompt, Mode.SUMMARY)
            except SummarizeFailure as e:
                logger.error(f"Error summarizing URL {url}: {e}")
                sections.append((url, None, str(e)))
                text, _ = fmt.render_new_mention_report(sections)
                return MentionState.FAILED, text
            sections.append((url, summary, None))

        text, any_succeeded = fmt.render_new_mention_report(sections)
        return (MentionState.COMPLETED if any_succeeded else MentionState.FAILED), text

    async def _handle_threaded(
        self, mention: Mention, session: ProcessingSession, outcome: MentionResult
    ) -> Tuple[MentionState, str]:
        await session.report(fmt.THREAD_CONTEXT_TEXT)

        outcome.advance(MentionState.FETCHING)
        try:
            context = await build_thread_context(self.history, self.fetcher, mention.channel, mention.thread_ts)
        except ThreadHistoryError as e:
            logger.error(f"Error getting thread context: {e}")
            return MentionState.FAILED, fmt.thread_context_error(e)

        # Only URLs from the latest mention that the thread has not seen yet, each once
        new_urls = [url for url in dict.fromkeys(extract_urls(mention.text)) if not context.has_content(url)]
        latest_contents: Dict[str, str] = {}
        for i, url in enumerate(new_urls, start=1):
            await session.report(fmt.fetching_new_url(i, len(new_urls), url))
            try:
                latest_contents[url] = await self._fetch(url)
            except FetchFailure as e:
                logger.error(f"Error processing thread mention: {e}")
                return MentionState.FAILED, fmt.thread_error(e)

        outcome.advance(MentionState.SUMMARIZING)
        await session.report(fmt.THREAD_ANALYZING_TEXT)
        prompt = build_thread_prompt(context, mention.text, latest_contents)
        try:
            response = await self._summarize(prompt, "", Mode.THREAD)
        except SummarizeFailure as e:
            logger.error(f"Error processing thread mention: {e}")
            return MentionState.FAILED, fmt.thread_error(e)

        return MentionState.COMPLETED, response

    async def _fetch(self, url: str) -> str:
        try:
            content = await self.fetcher.fetch(url)
        except FetchFailure:
            raise
        except Exception as e:
            raise FetchFailure(url, str(e) or e.__class__.__name__) from e
        if not content:
            raise EmptyContent(url)
        return content

    async def _summarize(self, content: str, user_prompt: str, mode: Mode) -> str:
        try:
            if mode is Mode.SUMMARY:
                return await self.summarizer.process_content(content, user_prompt)
            return await self.summarizer.process_content_with_mode(content, user_prompt, mode.value)
        except SummarizeFailure:
            raise
        except Exception as e:
            raise SummarizeFailure(f"failed to process content: {e}") from e

    async def _finish(self, session: ProcessingSession, outcome: MentionResult, state: MentionState, text: str) -> None:
        outcome.advance(state)
        outcome.text = text
        await session.report(text)
