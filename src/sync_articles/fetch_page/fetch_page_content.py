"""Best-effort full article text from a post permalink.

The page is downloaded once and handed to an ordered chain of extraction
strategies. The first strategy that yields substantial text wins:

1. the Substack ``markup`` body container
2. a ``post-content`` container
3. the first ``<article>`` element
4. a generic ``body`` container
5. trafilatura main-content extraction
6. readability-lxml summary

Any failure degrades to an empty string so callers can fall back to the
feed-supplied description.
"""

import logging
from typing import Optional, Sequence, Union

import requests
import trafilatura
from lxml import html as lxml_html
from readability import Document

from sync_articles.fetch_feed.http import decode_text

logger = logging.getLogger(__name__)

MIN_SUBSTANTIAL_LENGTH = 100


def _normalize_text(text: str) -> str:
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    return "\n".join(lines)


class Page:
    """A downloaded page: decoded text plus a lazily parsed lxml tree.

    The tree is built from bytes so documents that open with an XML
    encoding declaration still parse.
    """

    def __init__(self, html: str, content: Optional[bytes] = None, encoding: Optional[str] = None):
        self.html = html
        if content is None:
            content, encoding = html.encode("utf-8"), "utf-8"
        self._content = content
        self._encoding = encoding or "utf-8"
        self._tree = None

    @property
    def tree(self):
        if self._tree is None:
            parser = lxml_html.HTMLParser(encoding=self._encoding)
            self._tree = lxml_html.document_fromstring(self._content, parser=parser)
        return self._tree


class ExtractionStrategy:
    """A named way of pulling body text out of a page."""

    name = "base"

    def extract(self, page: Page) -> str:
        raise NotImplementedError


class ElementStrategy(ExtractionStrategy):
    """Text of the first element matching an XPath expression."""

    def __init__(self, name: str, xpath: str):
        self.name = name
        self.xpath = xpath

    def extract(self, page: Page) -> str:
        matches = page.tree.xpath(self.xpath)
        if not matches:
            return ""
        return _normalize_text(matches[0].text_content())


class TrafilaturaStrategy(ExtractionStrategy):
    name = "trafilatura"

    def extract(self, page: Page) -> str:
        return trafilatura.extract(page.html) or ""


class ReadabilityStrategy(ExtractionStrategy):
    name = "readability"

    def extract(self, page: Page) -> str:
        summary_html = Document(page.html).summary()
        tree = lxml_html.fromstring(summary_html)
        return _normalize_text(tree.text_content())


def _class_contains(tag: str, fragment: str) -> str:
    return f"(//{tag}[contains(@class, '{fragment}')])[1]"


DEFAULT_STRATEGIES: tuple[ExtractionStrategy, ...] = (
    ElementStrategy("markup", _class_contains("div", "markup")),
    ElementStrategy("post-content", _class_contains("div", "post-content")),
    ElementStrategy("article", "(//article)[1]"),
    ElementStrategy("body", _class_contains("div", "body")),
    TrafilaturaStrategy(),
    ReadabilityStrategy(),
)


def extract_body(
    page: Union[str, Page],
    strategies: Sequence[ExtractionStrategy] = DEFAULT_STRATEGIES,
    min_length: int = MIN_SUBSTANTIAL_LENGTH,
) -> tuple[str, Optional[str]]:
    """Run the strategy chain over a page (or its html text).

    Returns (text, strategy_name), or ("", None) when nothing substantial
    was found.
    """
    if isinstance(page, str):
        page = Page(page)
    if not page.html or not page.html.strip():
        return "", None

    for strategy in strategies:
        try:
            text = strategy.extract(page)
        except Exception as e:
            logger.debug("%s extraction failed: %s", strategy.name, e)
            continue
        if text and len(text) > min_length:
            return text, strategy.name

    return "", None


def fetch_body(
    url: str,
    session: Optional[requests.Session] = None,
    timeout: float = 10,
    strategies: Sequence[ExtractionStrategy] = DEFAULT_STRATEGIES,
) -> str:
    """Fetch a post page and return its body text, or "" on any failure."""
    logger.info("Fetching full content for %s", url)
    http = session or requests
    try:
        response = http.get(url, timeout=timeout)
    except requests.RequestException as e:
        logger.warning("Error fetching content for %s: %s", url, e)
        return ""

    if not response.ok:
        logger.warning("Failed to fetch %s: %s", url, response.status_code)
        return ""

    page = Page(decode_text(response), content=response.content, encoding=response.encoding)
    text, method = extract_body(page, strategies)
    if not text:
        logger.warning("Could not extract substantial content from %s", url)
        return ""

    logger.info("Extracted %d characters of content via %s", len(text), method)
    return text
