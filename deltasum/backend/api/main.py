"""
api/main.py

FastAPI application: sample ingestion and live counters.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .routes import samples as samples_router
from .routes import stats as stats_router

logger = logging.getLogger(__name__)

_input_queue: asyncio.Queue | None = None
_pipeline_stats_ref: dict = {}


def set_input_queue(queue: asyncio.Queue | None) -> None:
    global _input_queue
    _input_queue = queue


def get_input_queue() -> asyncio.Queue | None:
    return _input_queue


def set_pipeline_stats(stats_dict: dict) -> None:
    global _pipeline_stats_ref
    _pipeline_stats_ref = stats_dict


def get_pipeline_stats() -> dict:
    return dict(_pipeline_stats_ref)


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("FastAPI startup")
        yield
        logger.info("FastAPI shutdown")

    app = FastAPI(
        title="deltasum — counter delta aggregation",
        version="0.1.0",
        description="Per-window delta sums of monotonically increasing counters",
        lifespan=lifespan,
    )

    app.include_router(samples_router.router, prefix="/api")
    app.include_router(stats_router.router,   prefix="/api")

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok", "pipeline_running": _input_queue is not None}

    return app
