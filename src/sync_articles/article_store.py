"""Keyed article store used by reconciliation.

Reconciliation only needs three calls: look a record up by url, insert a new
one, and update an existing one by id. Two backends implement them:
SqlArticleStore (Postgres in production, any SQLAlchemy URL in tests) and
InMemoryArticleStore (dry runs).
"""

import logging
import uuid
from dataclasses import asdict
from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from common.datetime import parse_datetime
from rds_postgres.connection import ensure_table, get_engine, get_session_factory
from rds_postgres.models import Article
from sync_articles.config import SyncConfig
from sync_articles.errors import ConfigError, StoreError
from sync_articles.models import ArticleRecord, StoredArticle

logger = logging.getLogger(__name__)


class ArticleStore(Protocol):
    def find_by_url(self, url: str) -> Optional[StoredArticle]: ...

    def insert(self, record: ArticleRecord) -> str: ...

    def update(self, record_id: str, record: ArticleRecord) -> None: ...


def _row_values(record: ArticleRecord) -> dict:
    values = asdict(record)
    values["published_at"] = parse_datetime(record.published_at)
    values["updated_at"] = parse_datetime(record.updated_at)
    return values


class SqlArticleStore:
    """Article store backed by the `articles` table."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def find_by_url(self, url: str) -> Optional[StoredArticle]:
        with self._session_factory() as session:
            row = session.execute(
                select(Article.id, Article.url, Article.content).where(Article.url == url)
            ).first()
        if row is None:
            return None
        return StoredArticle(id=row.id, url=row.url, content=row.content)

    def insert(self, record: ArticleRecord) -> str:
        article = Article(id=str(uuid.uuid4()), **_row_values(record))
        with self._session_factory() as session:
            try:
                session.add(article)
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                raise StoreError(f"Insert failed for {record.url}: {e}") from e
            return article.id

    def update(self, record_id: str, record: ArticleRecord) -> None:
        with self._session_factory() as session:
            try:
                article = session.get(Article, record_id)
                if article is None:
                    raise StoreError(f"Update failed: no article with id {record_id}")
                for key, value in _row_values(record).items():
                    setattr(article, key, value)
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                raise StoreError(f"Update failed for {record.url}: {e}") from e


class InMemoryArticleStore:
    """Dict-backed store with the same url uniqueness as the table."""

    def __init__(self) -> None:
        self.records: dict[str, ArticleRecord] = {}
        self._ids_by_url: dict[str, str] = {}

    def find_by_url(self, url: str) -> Optional[StoredArticle]:
        record_id = self._ids_by_url.get(url)
        if record_id is None:
            return None
        return StoredArticle(id=record_id, url=url, content=self.records[record_id].content)

    def insert(self, record: ArticleRecord) -> str:
        if record.url in self._ids_by_url:
            raise StoreError(f"Insert failed: duplicate url {record.url}")
        record_id = str(uuid.uuid4())
        self.records[record_id] = record
        self._ids_by_url[record.url] = record_id
        return record_id

    def update(self, record_id: str, record: ArticleRecord) -> None:
        existing = self.records.get(record_id)
        if existing is None:
            raise StoreError(f"Update failed: no article with id {record_id}")
        if record.url != existing.url:
            owner = self._ids_by_url.get(record.url)
            if owner is not None and owner != record_id:
                raise StoreError(f"Update failed: duplicate url {record.url}")
            del self._ids_by_url[existing.url]
            self._ids_by_url[record.url] = record_id
        self.records[record_id] = record


def build_store(config: SyncConfig) -> ArticleStore:
    """Create the store named by config.state.backend."""
    backend = config.state.backend
    if backend == "memory":
        logger.info("Using in-memory article store")
        return InMemoryArticleStore()
    if backend == "postgres":
        engine = get_engine(config.require_database_url())
        ensure_table(engine)
        return SqlArticleStore(get_session_factory(engine))
    raise ConfigError(f"Unknown state backend: {backend}")
