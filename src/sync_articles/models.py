"""Data models for the sync_articles pipeline stage."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


@dataclass
class FeedItem:
    """One entry parsed from the syndication feed."""
    title: str
    link: str
    published_at: str
    description: str = ""
    encoded_content: str = ""
    external_id: str = ""

    def __post_init__(self) -> None:
        if not self.external_id:
            self.external_id = self.link


@dataclass
class ArticleRecord:
    """Write payload for one row of the article store, keyed by url."""
    title: str
    content: str
    url: str
    published_at: str
    summary: str
    external_id: str
    updated_at: str


@dataclass
class StoredArticle:
    """What the store hands back from a lookup by url."""
    id: str
    url: str
    content: Optional[str]


class SyncOutcome(str, Enum):
    INSERTED = "inserted"
    UPDATED = "updated"
    SKIPPED = "skipped"
    ERRORED = "errored"


@dataclass
class SyncResult:
    """Counters for one sync run."""
    feed_url: str
    full_sync: bool
    processed: int = 0
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    errored: int = 0
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    def record(self, outcome: SyncOutcome) -> None:
        if outcome is SyncOutcome.INSERTED:
            self.inserted += 1
        elif outcome is SyncOutcome.UPDATED:
            self.updated += 1
        elif outcome is SyncOutcome.SKIPPED:
            self.skipped += 1
        else:
            self.errored += 1

    def to_summary(self) -> dict:
        """Caller-facing summary in the shape the hosted endpoint returned."""
        finished = self.finished_at or self.started_at
        return {
            "totalProcessed": self.processed,
            "newPosts": self.inserted,
            "updatedPosts": self.updated,
            "skipped": self.skipped,
            "errored": self.errored,
            "rssUrl": self.feed_url,
            "fullSync": self.full_sync,
            "timestamp": finished.isoformat() if finished else None,
        }
