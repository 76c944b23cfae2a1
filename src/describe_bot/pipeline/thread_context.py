"""Thread context aggregation.

Collects a thread's messages, the unique URLs mentioned in it and the content
behind every one of those URLs, and turns that into a single prompt.
"""

from typing import Dict, List, Optional, Protocol

from ..errors import EmptyContent
from ..log import get_logger
from ..retrieval.fetch import Fetcher
from ..retrieval.url import extract_urls
from ..schemas.thread import ThreadContext

logger = get_logger("thread_context")

THREAD_PREAMBLE = (
    "You are an AI assistant helping with a conversation thread. "
    "Please analyze the context and respond appropriately to the latest user question."
)

class ThreadHistorySource(Protocol):
    async def get_thread_messages(self, channel_id: str, thread_ts: str) -> List[str]: ...

async def build_thread_context(
    history: ThreadHistorySource,
    fetcher: Fetcher,
    channel_id: str,
    thread_ts: str,
) -> ThreadContext:
    """
    Reads the thread (root included) and fetches every URL mentioned in it.

    A URL that cannot be fetched gets an error string as its content instead of
    failing the whole thread. Only a failure to read the thread itself raises
    (ThreadHistoryError).
    """
    messages = await history.get_thread_messages(channel_id, thread_ts)

    context = ThreadContext()
    for text in messages:
        context.add_message(text, extract_urls(text))

    logger.info(f"Thread {thread_ts}: {len(context.messages)} messages, {len(context.urls)} unique URLs")

    for url in context.urls:
        try:
            content = await fetcher.fetch(url)
            if not content:
                raise EmptyContent(url)
        except Exception as e:
            logger.warning(f"Failed to fetch content for URL {url} in thread context: {e}")
            context.url_contents[url] = f"Error fetching content: {e}"
        else:
            context.url_contents[url] = content

    return context

def _url_block(url: str, content: str) -> str:
    return f"\nURL: {url}\nContent:\n```\n{content}\n```\n"

def build_thread_prompt(
    context: ThreadContext,
    latest_mention_text: str,
    latest_url_contents: Optional[Dict[str, str]] = None,
) -> str:
    """
    Builds the composite prompt: thread history, content of every URL known to
    the thread, content of URLs first seen in the latest mention, then the
    latest question.
    """
    parts = [THREAD_PREAMBLE, "\n\n", "---\n", "Thread conversation history and URL contents:\n\n"]

    for i, message in enumerate(context.messages, start=1):
        parts.append(f"Message {i}: {message}\n")

    for url in context.urls:
        if url in context.url_contents:
            parts.append(_url_block(url, context.url_contents[url]))

    parts.append("---\n")

    if latest_url_contents:
        parts.append("Latest mention URL contents:\n")
        for url, content in latest_url_contents.items():
            parts.append(_url_block(url, content))
        parts.append("---\n")

    parts.append(f"Last user question: {latest_mention_text}\n")
    return "".join(parts)
