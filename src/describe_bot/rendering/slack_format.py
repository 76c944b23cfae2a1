"""Status and report texts shown in the mention's status message.

Every user-visible string of the pipeline is built here so the wording stays
consistent between the new-mention and thread paths.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

SECTION_SEPARATOR = "\n\n---\n\n"

NO_URLS_TEXT = "No URLs found in your message. Please include a URL for me to summarize."
NO_SUMMARIES_TEXT = "No summaries could be generated."
THREAD_CONTEXT_TEXT = ":loading: Getting thread context..."
THREAD_ANALYZING_TEXT = ":loading: Analyzing thread context and generating response..."
CANCELLED_TEXT = "Error: processing was cancelled"


def processing_url(index: int, total: int, url: str) -> str:
    return f":loading: Processing URL {index}/{total}: {url}"


def fetching_url(url: str) -> str:
    return f":loading: Fetching content from {url}..."


def generating_summary(url: str) -> str:
    return f":loading: Generating summary for {url}..."


def fetching_new_url(index: int, total: int, url: str) -> str:
    return f":loading: Fetching new URL {index}/{total}: {url}"


def url_error(url: str, reason: object) -> str:
    return f"Error summarizing {url}: {reason}"


def thread_context_error(reason: object) -> str:
    return f"Error getting thread context: {reason}"


def thread_error(reason: object) -> str:
    return f"Error processing thread mention: {reason}"


def unexpected_error(reason: object) -> str:
    return f"Unexpected error: {reason}"


def summary_section(url: str, summary: str) -> str:
    return f"Summary for {url}:\n{summary}"


def render_new_mention_report(sections: List[Tuple[str, Optional[str], Optional[str]]]) -> Tuple[str, bool]:
    """
    Joins per-URL outcomes, in extraction order, into the final report.
    Each section is (url, summary, error); exactly one of summary/error is set.
    Returns (text, any_succeeded).
    """
    rendered = []
    succeeded = False
    for url, summary, error in sections:
        if summary is not None:
            rendered.append(summary_section(url, summary))
            succeeded = True
        else:
            rendered.append(url_error(url, error))

    if not succeeded:
        return SECTION_SEPARATOR.join([NO_SUMMARIES_TEXT] + rendered), False
    return SECTION_SEPARATOR.join(rendered), True
