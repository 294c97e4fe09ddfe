"""
ranchhand.api.main — FastAPI application entry point
======================================================

Read-only view of the ledger for dashboards and spreadsheets.

Run with::

    uvicorn ranchhand.api.main:app --port 8000
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI

load_dotenv()

from ranchhand import __version__  # noqa: E402
from ranchhand.api.deps import get_engine  # noqa: E402
from ranchhand.api.routes.stats import router as stats_router  # noqa: E402

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — warm the DB engine."""
    engine = get_engine()
    logger.info("Ranchhand API started — engine ready (%s)", engine.url.database)
    yield
    logger.info("Ranchhand API shutting down")


app = FastAPI(
    title="Ranchhand API",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(stats_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}
