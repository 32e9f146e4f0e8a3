"""CLI for syncing Substack articles."""

from __future__ import annotations

import logging
import sys
from typing import Sequence

from dotenv import load_dotenv
from sqlalchemy.exc import SQLAlchemyError

from common.cli_helpers import save_json_local, setup_logging
from sync_articles.article_store import build_store
from sync_articles.config import load_config
from sync_articles.errors import SyncError
from sync_articles.helpers import apply_overrides, format_summary, parse_sync_articles_args
from sync_articles.sync_articles import sync_articles

load_dotenv()

logger = logging.getLogger(__name__)


def main(argv: Sequence[str] | None = None) -> int:
    setup_logging()
    args = parse_sync_articles_args(argv)

    try:
        config = apply_overrides(load_config(args.config), args)
        store = build_store(config)
        result = sync_articles(config, store)
    except (SyncError, SQLAlchemyError, FileNotFoundError, ValueError) as e:
        logger.error("Sync failed: %s", e)
        return 1

    print(format_summary(result))

    if args.output_local:
        filepath = save_json_local(result.to_summary(), "sync_summary", result.finished_at)
        logger.info("Saved run summary to %s", filepath)

    return 0


if __name__ == "__main__":
    sys.exit(main())
