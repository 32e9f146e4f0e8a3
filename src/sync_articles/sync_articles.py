"""Sync a Substack RSS feed into the article store."""

import logging
import time
from datetime import datetime, timezone
from functools import partial
from typing import Callable, Optional

import requests

from sync_articles.article_store import ArticleStore
from sync_articles.config import SyncConfig
from sync_articles.fetch_feed.http import build_session
from sync_articles.fetch_feed.parse_feed import fetch_and_parse
from sync_articles.fetch_page.fetch_page_content import fetch_body
from sync_articles.models import SyncOutcome, SyncResult
from sync_articles.reconcile import reconcile

logger = logging.getLogger(__name__)


def sync_articles(
    config: SyncConfig,
    store: ArticleStore,
    feed_url: Optional[str] = None,
    full_sync: Optional[bool] = None,
    session: Optional[requests.Session] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> SyncResult:
    """Fetch the feed and reconcile every item, one at a time, in feed order.

    Only a failed feed fetch (FeedFetchError) escapes; per-item failures are
    counted in the result.
    """
    feed_url = feed_url or config.feed_url
    full_sync = config.full_sync if full_sync is None else full_sync
    result = SyncResult(feed_url=feed_url, full_sync=full_sync, started_at=datetime.now(timezone.utc))

    logger.info("Starting Substack content sync from %s (full sync: %s)", feed_url, full_sync)

    own_session = session is None
    session = session or build_session(config.http)
    try:
        items = fetch_and_parse(feed_url, session=session, timeout=config.http.feed_timeout)
        if not items:
            logger.warning("No items found in RSS feed")
            result.finished_at = datetime.now(timezone.utc)
            return result

        result.processed = len(items)
        page_fetcher = partial(fetch_body, session=session, timeout=config.http.page_timeout)

        for index, item in enumerate(items):
            logger.info("[%d/%d] Processing: %s", index + 1, len(items), item.title)
            try:
                outcome = reconcile(item, full_sync, store, page_fetcher)
            except Exception as e:
                logger.error("Error processing %s: %s", item.title, e)
                outcome = SyncOutcome.ERRORED
            result.record(outcome)

            if full_sync and index < len(items) - 1 and config.request_delay_seconds > 0:
                sleep(config.request_delay_seconds)
    finally:
        if own_session:
            session.close()

    result.finished_at = datetime.now(timezone.utc)
    logger.info(
        "Sync completed: %d new, %d updated, %d skipped, %d errors, %d processed",
        result.inserted, result.updated, result.skipped, result.errored, result.processed,
    )
    return result
