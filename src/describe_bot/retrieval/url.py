import re
from typing import List

# Basic regex for URLs (http/https/www.), stops at whitespace, angle brackets and quotes
URL_REGEX = re.compile(r"""https?://[^\s<>"']+|www\.[^\s<>"']+""")

# Slack user mentions look like <@U123ABC> or <@U123ABC|name>
USER_MENTION_REGEX = re.compile(r"<@[^>]+>")

def extract_urls(text: str) -> List[str]:
    """
    Extracts URL candidates from text in the order they appear.
    Duplicates are kept; callers that need a unique set deduplicate themselves.
    Trailing punctuation is not stripped.
    """
    if not text:
        return []
    return URL_REGEX.findall(text)

def extract_prompt(text: str) -> str:
    """
    Returns what the user typed besides the bot mention and the links,
    e.g. "<@U1> <https://a.com> what is this about?" -> "what is this about?".
    """
    if not text:
        return ""
    stripped = USER_MENTION_REGEX.sub(" ", text)
    for url in extract_urls(stripped):
        # Slack wraps links as <url> or <url|label>
        stripped = stripped.replace(f"<{url}>", " ").replace(url, " ")
    return " ".join(stripped.split())
