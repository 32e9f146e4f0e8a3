"""Helper functions for the sync_articles CLI."""

from __future__ import annotations

import argparse
from typing import Sequence

from sync_articles.config import SyncConfig
from sync_articles.models import SyncResult


def parse_sync_articles_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    '''Parse CLI arguments for sync_articles.'''

    parser = argparse.ArgumentParser(
        description="Sync a Substack RSS feed into the article store.",
    )
    parser.add_argument(
        "--full", "-f",
        action="store_true",
        help="Fetch full content for each post (slower but more complete).",
    )
    parser.add_argument("--feed-url", default=None, help="RSS feed URL (default: from config).")
    parser.add_argument("--config", default=None, help="Config name under configs/ (default: prod).")
    parser.add_argument(
        "--state-backend",
        choices=["postgres", "memory"],
        default=None,
        help="Article store backend (default: from config).",
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=None,
        help="Seconds to wait between page fetches in full sync mode.",
    )
    parser.add_argument("--output-local", action="store_true", help="Write the run summary to output/.")
    return parser.parse_args(argv)


def apply_overrides(config: SyncConfig, args: argparse.Namespace) -> SyncConfig:
    '''Apply CLI flags on top of the loaded config.'''

    if args.feed_url:
        config.feed_url = args.feed_url
    if args.full:
        config.full_sync = True
    if args.state_backend:
        config.state.backend = args.state_backend
    if args.delay is not None:
        if args.delay < 0:
            raise ValueError("--delay must be >= 0")
        config.request_delay_seconds = args.delay
    return config


def format_summary(result: SyncResult) -> str:
    '''Human-readable results block printed at the end of a CLI run.'''

    return "\n".join([
        "Results:",
        f"  New articles:     {result.inserted}",
        f"  Updated articles: {result.updated}",
        f"  Skipped:          {result.skipped}",
        f"  Errors:           {result.errored}",
        f"  Total processed:  {result.processed}",
    ])
