from bs4 import BeautifulSoup

# Elements that never carry article text
NOISE_TAGS = ["script", "style", "noscript", "nav", "footer", "aside", "template"]
NOISE_SELECTOR = '[role="navigation"], [role="complementary"], [aria-hidden="true"]'

def extract_text(html: str) -> str:
    """
    Extracts readable text from an HTML document.
    Drops scripts, styles, navigation and other boilerplate, keeps one line per text block.
    Returns "" when nothing readable is left.
    """
    if not html:
        return ""

    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(NOISE_TAGS):
        tag.decompose()
    for tag in soup.select(NOISE_SELECTOR):
        tag.decompose()

    root = soup.body or soup
    text = root.get_text(separator="\n", strip=True)

    # Collapse blank lines
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    return "\n".join(lines)

def collapse_whitespace(text: str) -> str:
    return " ".join(text.split())
