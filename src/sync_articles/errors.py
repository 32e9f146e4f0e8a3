"""Error types raised by the sync pipeline."""


class SyncError(Exception):
    """Base class for sync failures."""


class FeedFetchError(SyncError):
    """The feed could not be retrieved; aborts the run."""


class ConfigError(SyncError):
    """Required configuration (feed URL, storage credentials) is missing."""


class StoreError(SyncError):
    """A single insert or update failed in the article store."""
