"""HTTP trigger for the sync pipeline."""

import json
import logging
import threading
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from sync_articles.article_store import ArticleStore, build_store
from sync_articles.config import SyncConfig, load_config
from sync_articles.errors import SyncError
from sync_articles.models import SyncResult
from sync_articles.sync_articles import sync_articles

logger = logging.getLogger(__name__)


class SyncRequest(BaseModel):
    """Optional body of POST /sync."""

    model_config = ConfigDict(populate_by_name=True)

    rss_url: Optional[str] = Field(default=None, alias="rssUrl")
    full_sync: Optional[bool] = Field(default=None, alias="fullSync")


class SyncResponse(BaseModel):
    message: str
    totalProcessed: int
    newPosts: int
    updatedPosts: int
    skipped: int
    errored: int
    rssUrl: str
    fullSync: bool
    timestamp: Optional[str] = None


def parse_sync_request(raw: bytes) -> SyncRequest:
    """Read a POST /sync body. Empty, malformed or mistyped bodies mean defaults."""
    if not raw.strip():
        return SyncRequest()
    try:
        return SyncRequest.model_validate(json.loads(raw))
    except (ValueError, ValidationError) as e:
        logger.warning("Ignoring unusable sync request body: %s", e)
        return SyncRequest()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": message, "timestamp": datetime.now(timezone.utc).isoformat()},
    )


def create_app(config: SyncConfig, store: Optional[ArticleStore] = None) -> FastAPI:
    """Build the app around an already loaded config.

    The store is built from config on the first sync when none is given.
    """
    app = FastAPI(
        title="Substack Sync",
        description="Triggers a Substack RSS to article store sync",
        version="1.0.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )

    stores: dict[str, ArticleStore] = {}
    if store is not None:
        stores["default"] = store
    # one run at a time against the store
    sync_lock = threading.Lock()

    def run_sync(body: SyncRequest) -> SyncResult:
        if "default" not in stores:
            stores["default"] = build_store(config)
        return sync_articles(
            config,
            stores["default"],
            feed_url=body.rss_url or None,
            full_sync=bool(body.full_sync),
        )

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.post("/sync", response_model=SyncResponse)
    async def trigger_sync(request: Request):
        """Run one sync. Body: {"rssUrl": "...", "fullSync": false}, both optional."""
        body = parse_sync_request(await request.body())
        if not sync_lock.acquire(blocking=False):
            logger.warning("Rejected sync request: a sync is already running")
            return _error(409, "A sync is already running")
        try:
            result = await run_in_threadpool(run_sync, body)
        except (SyncError, SQLAlchemyError) as e:
            logger.error("Sync failed: %s", e)
            return _error(500, str(e) or "Sync failed")
        finally:
            sync_lock.release()
        return SyncResponse(message="Substack sync completed", **result.to_summary())

    return app


def main():
    """Load config once and run the API server."""
    import uvicorn

    from common.cli_helpers import setup_logging

    setup_logging()
    uvicorn.run(create_app(load_config()), host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
