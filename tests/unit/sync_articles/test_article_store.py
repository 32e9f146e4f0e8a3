"""Tests for sync_articles.article_store module."""

from unittest.mock import patch

import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.pool import StaticPool

from rds_postgres.connection import ensure_table, get_session_factory
from rds_postgres.models import Article
from sync_articles.article_store import InMemoryArticleStore, SqlArticleStore, build_store
from sync_articles.config import StateConfig, SyncConfig
from sync_articles.errors import ConfigError, StoreError
from sync_articles.models import ArticleRecord


def _record(url: str = "https://s.substack.com/p/one", content: str = "body") -> ArticleRecord:
    return ArticleRecord(
        title="One",
        content=content,
        url=url,
        published_at="2024-01-01T12:00:00+00:00",
        summary="summary",
        external_id=url,
        updated_at="2024-02-01T00:00:00+00:00",
    )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    ensure_table(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_store(engine) -> SqlArticleStore:
    return SqlArticleStore(get_session_factory(engine))


class TestSqlArticleStore:
    def test_find_missing_returns_none(self, sql_store) -> None:
        assert sql_store.find_by_url("https://s.substack.com/p/nope") is None

    def test_insert_then_find(self, sql_store) -> None:
        record_id = sql_store.insert(_record())
        found = sql_store.find_by_url("https://s.substack.com/p/one")
        assert found.id == record_id
        assert found.content == "body"

    def test_duplicate_url_raises_store_error(self, sql_store, engine) -> None:
        sql_store.insert(_record())
        with pytest.raises(StoreError):
            sql_store.insert(_record(content="other"))
        with get_session_factory(engine)() as session:
            assert session.scalar(select(func.count()).select_from(Article)) == 1

    def test_update_overwrites_fields(self, sql_store, engine) -> None:
        record_id = sql_store.insert(_record())
        sql_store.update(record_id, _record(content="new body"))
        assert sql_store.find_by_url("https://s.substack.com/p/one").content == "new body"
        with get_session_factory(engine)() as session:
            article = session.get(Article, record_id)
            assert article.summary == "summary"
            assert article.created_at is not None

    def test_update_unknown_id_raises(self, sql_store) -> None:
        with pytest.raises(StoreError):
            sql_store.update("missing", _record())


class TestInMemoryArticleStore:
    def test_insert_find_update(self) -> None:
        store = InMemoryArticleStore()
        record_id = store.insert(_record())
        store.update(record_id, _record(content="changed"))
        assert store.find_by_url("https://s.substack.com/p/one").content == "changed"

    def test_duplicate_url_raises(self) -> None:
        store = InMemoryArticleStore()
        store.insert(_record())
        with pytest.raises(StoreError):
            store.insert(_record())

    def test_update_unknown_id_raises(self) -> None:
        with pytest.raises(StoreError):
            InMemoryArticleStore().update("missing", _record())


class TestBuildStore:
    def test_memory_backend(self) -> None:
        config = SyncConfig(state=StateConfig(backend="memory"))
        assert isinstance(build_store(config), InMemoryArticleStore)

    def test_postgres_without_database_url_raises(self) -> None:
        config = SyncConfig(state=StateConfig(backend="postgres", database_url=None))
        with pytest.raises(ConfigError, match="DATABASE_URL"):
            build_store(config)

    @patch("sync_articles.article_store.ensure_table")
    @patch("sync_articles.article_store.get_engine")
    def test_postgres_backend(self, mock_engine, mock_ensure) -> None:
        config = SyncConfig(state=StateConfig(backend="postgres", database_url="postgresql://u:p@db/articles"))
        store = build_store(config)
        assert isinstance(store, SqlArticleStore)
        mock_engine.assert_called_once_with("postgresql://u:p@db/articles")
        mock_ensure.assert_called_once_with(mock_engine.return_value)

    def test_unknown_backend_raises(self) -> None:
        with pytest.raises(ConfigError):
            build_store(SyncConfig(state=StateConfig(backend="redis")))
