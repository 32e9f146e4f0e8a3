"""Configuration loader for sync_articles."""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from dotenv import load_dotenv

from sync_articles.errors import ConfigError

load_dotenv()

CONFIG_DIR = Path(__file__).parent / "configs"
DEFAULT_FEED_URL = "https://satvikputi.substack.com/feed"


@dataclass
class HttpConfig:
    user_agent: str = "substack-sync/1.0 (RSS reader)"
    feed_timeout: float = 30
    page_timeout: float = 10
    max_retries: int = 3
    backoff_factor: float = 0.5


@dataclass
class StateConfig:
    backend: str = "postgres"  # "postgres" or "memory"
    database_url: str | None = None


@dataclass
class SyncConfig:
    feed_url: str = DEFAULT_FEED_URL
    full_sync: bool = False
    request_delay_seconds: float = 1.0
    http: HttpConfig = field(default_factory=HttpConfig)
    state: StateConfig = field(default_factory=StateConfig)

    def require_database_url(self) -> str:
        if not self.state.database_url:
            raise ConfigError("Missing DATABASE_URL for the postgres article store")
        return self.state.database_url


def load_config(config_name: str | None = None) -> SyncConfig:
    """Load configuration from YAML, then apply environment overrides.

    Args:
        config_name: Name of config file (without .yaml extension).
                    If None, uses SYNC_CONFIG_ENV env var or "prod".

    Returns:
        Loaded SyncConfig object
    """
    name = config_name or os.environ.get("SYNC_CONFIG_ENV", "prod")
    path = CONFIG_DIR / f"{name}.yaml"
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f) or {}
    return _parse_config(data, os.environ)


def _parse_config(data: dict, env) -> SyncConfig:
    """Parse config dictionary into SyncConfig, letting env vars win."""
    http_raw = data.get("http", {})
    http = HttpConfig(
        user_agent=http_raw.get("user_agent", HttpConfig.user_agent),
        feed_timeout=http_raw.get("feed_timeout", 30),
        page_timeout=http_raw.get("page_timeout", 10),
        max_retries=http_raw.get("max_retries", 3),
        backoff_factor=http_raw.get("backoff_factor", 0.5),
    )

    state_raw = data.get("state", {})
    state = StateConfig(
        backend=state_raw.get("backend", "postgres"),
        database_url=env.get("DATABASE_URL") or state_raw.get("database_url"),
    )

    return SyncConfig(
        feed_url=env.get("SUBSTACK_RSS_URL") or data.get("feed_url") or DEFAULT_FEED_URL,
        full_sync=bool(data.get("full_sync", False)),
        request_delay_seconds=float(data.get("request_delay_seconds", 1.0)),
        http=http,
        state=state,
    )

