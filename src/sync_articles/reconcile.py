"""Per-item insert/update/skip decision against the article store."""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from common.datetime import to_iso_utc
from sync_articles.article_store import ArticleStore
from sync_articles.fetch_feed.clean_html import clean
from sync_articles.models import ArticleRecord, FeedItem, SyncOutcome

logger = logging.getLogger(__name__)

SUMMARY_MAX_LENGTH = 500

FetchBody = Callable[[str], str]


def summarize(description: str, max_length: int = SUMMARY_MAX_LENGTH) -> str:
    if len(description) > max_length:
        return description[:max_length] + "..."
    return description


def select_content(
    item: FeedItem,
    full_sync: bool,
    fetch_body: Optional[FetchBody] = None,
) -> str:
    """Pick the longest of description, fetched page body and encoded content.

    A later source only replaces the candidate when strictly longer, so
    ties go to the earlier source.
    """
    content = item.description

    if full_sync and fetch_body is not None:
        fetched = fetch_body(item.link)
        if fetched and len(fetched) > len(content):
            content = fetched

    if item.encoded_content:
        encoded = clean(item.encoded_content)
        if len(encoded) > len(content):
            content = encoded

    return content


def build_record(item: FeedItem, content: str, now: Optional[datetime] = None) -> ArticleRecord:
    """Build the write payload. Raises ValueError on an unparseable pubDate."""
    now = now or datetime.now(timezone.utc)
    return ArticleRecord(
        title=item.title,
        content=content,
        url=item.link,
        published_at=to_iso_utc(item.published_at),
        summary=summarize(item.description),
        external_id=item.external_id or item.link,
        updated_at=now.isoformat(),
    )


def reconcile(
    item: FeedItem,
    full_sync: bool,
    store: ArticleStore,
    fetch_body: Optional[FetchBody] = None,
) -> SyncOutcome:
    """Insert, update or skip one feed item.

    Storage failures are logged and reported as ERRORED rather than raised.
    Lookup failures and bad dates propagate to the caller.
    """
    existing = store.find_by_url(item.link)
    content = select_content(item, full_sync, fetch_body)
    record = build_record(item, content)

    if existing is None:
        try:
            store.insert(record)
        except Exception as e:
            logger.error("Insert failed for %s: %s", item.link, e)
            return SyncOutcome.ERRORED
        logger.info("Added new article: %s", item.link)
        return SyncOutcome.INSERTED

    if not full_sync and existing.content == content:
        logger.info("No changes, skipped: %s", item.link)
        return SyncOutcome.SKIPPED

    try:
        store.update(existing.id, record)
    except Exception as e:
        logger.error("Update failed for %s: %s", item.link, e)
        return SyncOutcome.ERRORED
    logger.info("Updated existing article: %s", item.link)
    return SyncOutcome.UPDATED
