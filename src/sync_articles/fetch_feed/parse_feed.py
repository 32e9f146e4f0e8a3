"""RSS feed fetching and parsing."""

import logging
import re
from typing import Optional

import requests

from sync_articles.errors import FeedFetchError
from sync_articles.fetch_feed.clean_html import clean
from sync_articles.fetch_feed.extract_xml import extract
from sync_articles.fetch_feed.http import decode_text
from sync_articles.models import FeedItem

logger = logging.getLogger(__name__)

_ITEM = re.compile(r"<item\b[^>]*>(.*?)</item>", re.IGNORECASE | re.DOTALL)


def fetch_feed(
    feed_url: str,
    session: Optional[requests.Session] = None,
    timeout: float = 30,
) -> str:
    """Fetch the raw feed text. Any transport or HTTP failure is fatal."""
    logger.info("Fetching RSS feed from %s", feed_url)
    http = session or requests
    try:
        response = http.get(feed_url, timeout=timeout)
    except requests.RequestException as e:
        raise FeedFetchError(f"Failed to fetch RSS feed {feed_url}: {e}") from e

    if not response.ok:
        raise FeedFetchError(
            f"Failed to fetch RSS feed: {response.status_code} {response.reason}"
        )

    text = decode_text(response)
    logger.info("RSS content length: %d characters", len(text))
    return text


def parse(feed_text: str) -> list[FeedItem]:
    """Parse feed text into items, in feed order, dropping incomplete ones."""
    items = []
    for match in _ITEM.finditer(feed_text or ""):
        item = _parse_item(match.group(1))
        if item is not None:
            items.append(item)
    return items


def _parse_item(fragment: str) -> FeedItem | None:
    """Parse a single <item> body; None when title, link or pubDate is missing."""
    title = clean(extract(fragment, "title"))
    link = extract(fragment, "link")
    published_at = extract(fragment, "pubDate")

    if not title or not link or not published_at:
        logger.debug(
            "Skipping item with missing fields: title=%r link=%r pubDate=%r",
            title, link, published_at,
        )
        return None

    return FeedItem(
        title=title,
        link=link,
        published_at=published_at,
        description=clean(extract(fragment, "description")),
        encoded_content=extract(fragment, "content:encoded"),
        external_id=extract(fragment, "guid") or link,
    )


def fetch_and_parse(
    feed_url: str,
    session: Optional[requests.Session] = None,
    timeout: float = 30,
) -> list[FeedItem]:
    items = parse(fetch_feed(feed_url, session=session, timeout=timeout))
    logger.info("Found %d articles in RSS feed", len(items))
    return items
