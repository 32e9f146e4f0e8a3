"""Tests for the sync_articles orchestration."""

from unittest.mock import Mock, patch

import pytest
import requests

from sync_articles.article_store import InMemoryArticleStore
from sync_articles.config import StateConfig, SyncConfig
from sync_articles.errors import FeedFetchError
from sync_articles.models import FeedItem, SyncOutcome
from sync_articles.sync_articles import sync_articles

FEED = """<rss><channel>
<item><title>One</title><link>https://s.substack.com/p/one</link>
<pubDate>Mon, 01 Jan 2024 12:00:00 GMT</pubDate><description>first</description></item>
<item><title>Broken</title><pubDate>Mon, 01 Jan 2024 12:00:00 GMT</pubDate></item>
<item><title>Two</title><link>https://s.substack.com/p/two</link>
<pubDate>Tue, 02 Jan 2024 12:00:00 GMT</pubDate><description>second</description></item>
</channel></rss>"""


def _config(**overrides) -> SyncConfig:
    config = SyncConfig(feed_url="https://s.substack.com/feed", state=StateConfig(backend="memory"))
    for key, value in overrides.items():
        setattr(config, key, value)
    return config


def _session(text: str = FEED, status_code: int = 200) -> Mock:
    response = requests.Response()
    response.status_code = status_code
    response.reason = "OK" if status_code < 400 else "Internal Server Error"
    response.headers["Content-Type"] = "application/rss+xml; charset=utf-8"
    response._content = text.encode("utf-8")
    session = Mock()
    session.get.return_value = response
    return session


def _items(n: int) -> list[FeedItem]:
    return [
        FeedItem(
            title=f"T{i}",
            link=f"https://s.substack.com/p/{i}",
            published_at="Mon, 01 Jan 2024 12:00:00 GMT",
            description=f"d{i}",
        )
        for i in range(n)
    ]


class TestSyncArticles:
    def test_end_to_end_skips_malformed_item(self) -> None:
        store = InMemoryArticleStore()
        result = sync_articles(_config(), store, session=_session(), sleep=Mock())

        assert result.processed == 2
        assert result.inserted == 2
        assert result.inserted + result.updated + result.errored <= 2
        assert {r.url for r in store.records.values()} == {
            "https://s.substack.com/p/one",
            "https://s.substack.com/p/two",
        }

    def test_second_run_skips_unchanged(self) -> None:
        store = InMemoryArticleStore()
        sync_articles(_config(), store, session=_session(), sleep=Mock())
        result = sync_articles(_config(), store, session=_session(), sleep=Mock())

        assert result.processed == 2
        assert result.inserted == 0
        assert result.skipped == 2
        assert len(store.records) == 2

    def test_empty_feed_returns_zero_counts(self) -> None:
        result = sync_articles(_config(), InMemoryArticleStore(), session=_session("<rss></rss>"))
        assert result.processed == 0
        assert result.inserted == result.updated == result.errored == 0
        assert result.finished_at is not None

    def test_feed_fetch_failure_propagates(self) -> None:
        with pytest.raises(FeedFetchError):
            sync_articles(_config(), InMemoryArticleStore(), session=_session(status_code=500))

    def test_feed_url_override(self) -> None:
        session = _session()
        result = sync_articles(
            _config(), InMemoryArticleStore(), feed_url="https://other.substack.com/feed", session=session
        )
        assert result.feed_url == "https://other.substack.com/feed"
        assert session.get.call_args[0][0] == "https://other.substack.com/feed"

    @patch("sync_articles.sync_articles.fetch_body")
    def test_full_sync_fetches_pages_and_delays_between_items(self, mock_fetch) -> None:
        mock_fetch.return_value = ""
        sleep = Mock()
        result = sync_articles(
            _config(request_delay_seconds=1.0), InMemoryArticleStore(),
            full_sync=True, session=_session(), sleep=sleep,
        )
        assert result.full_sync is True
        assert mock_fetch.call_count == 2
        sleep.assert_called_once_with(1.0)

    @patch("sync_articles.sync_articles.fetch_body")
    def test_no_delay_without_full_sync(self, mock_fetch) -> None:
        sleep = Mock()
        sync_articles(_config(), InMemoryArticleStore(), session=_session(), sleep=sleep)
        sleep.assert_not_called()
        mock_fetch.assert_not_called()

    @patch("sync_articles.sync_articles.fetch_and_parse")
    @patch("sync_articles.sync_articles.reconcile")
    def test_delay_count_excludes_last_item(self, mock_reconcile, mock_parse) -> None:
        mock_parse.return_value = _items(4)
        mock_reconcile.return_value = SyncOutcome.UPDATED
        sleep = Mock()
        sync_articles(_config(), Mock(), full_sync=True, session=Mock(), sleep=sleep)
        assert sleep.call_count == 3

    @patch("sync_articles.sync_articles.fetch_and_parse")
    @patch("sync_articles.sync_articles.reconcile")
    def test_per_item_exception_is_counted_and_run_continues(self, mock_reconcile, mock_parse) -> None:
        mock_parse.return_value = _items(3)
        mock_reconcile.side_effect = [SyncOutcome.INSERTED, ValueError("bad date"), SyncOutcome.SKIPPED]
        result = sync_articles(_config(), Mock(), session=Mock(), sleep=Mock())

        assert result.processed == 3
        assert result.inserted == 1
        assert result.errored == 1
        assert result.skipped == 1

    @patch("sync_articles.sync_articles.fetch_and_parse")
    @patch("sync_articles.sync_articles.reconcile")
    def test_items_processed_in_feed_order(self, mock_reconcile, mock_parse) -> None:
        items = _items(3)
        mock_parse.return_value = items
        mock_reconcile.return_value = SyncOutcome.INSERTED
        sync_articles(_config(), Mock(), session=Mock(), sleep=Mock())
        assert [c[0][0] for c in mock_reconcile.call_args_list] == items

    @patch("sync_articles.sync_articles.build_session")
    @patch("sync_articles.sync_articles.fetch_and_parse")
    def test_closes_session_it_created(self, mock_parse, mock_build) -> None:
        mock_parse.return_value = []
        sync_articles(_config(), Mock())
        mock_build.return_value.close.assert_called_once()

    def test_summary_shape(self) -> None:
        result = sync_articles(_config(), InMemoryArticleStore(), session=_session(), sleep=Mock())
        summary = result.to_summary()
        assert summary["totalProcessed"] == 2
        assert summary["newPosts"] == 2
        assert summary["updatedPosts"] == 0
        assert summary["errored"] == 0
        assert summary["rssUrl"] == "https://s.substack.com/feed"
        assert summary["fullSync"] is False
