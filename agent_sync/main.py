# Copyright (c) 2026 AgentSync Contributors. All Rights Reserved.

"""
AgentSync Application Entry Point.

FastAPI app whose lifespan builds the SyncContext, restores the persisted
agent set, runs the initial sync and starts the periodic scheduler.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from agent_sync.core.config import settings
from agent_sync.core.context import SyncContext
from agent_sync.core.logging import setup_logging
from agent_sync.kernel.redis_client import get_redis_pool, close_redis_pool
from agent_sync.api.errors import APIError, api_error_handler
from agent_sync.api.middleware import TraceMiddleware
from agent_sync.api.agents import router as agents_router
from agent_sync.api.sync import router as sync_router
from agent_sync.api.observability import router as observability_router

logger = logging.getLogger("agentsync.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage startup/shutdown of the sync context."""
    setup_logging(settings.LOG_LEVEL)
    redis = await get_redis_pool(settings.REDIS_URL, settings.REDIS_MAX_CONNECTIONS)
    ctx = SyncContext(redis, settings)
    app.state.ctx = ctx
    await ctx.start()
    logger.info("[AgentSync] Ready (%d agents)", len(ctx.store))
    yield
    await ctx.close()
    await close_redis_pool()
    logger.info("[AgentSync] Shutdown complete")


def create_app() -> FastAPI:
    app = FastAPI(
        title="AgentSync",
        description="Agent definition sync and resource cache",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_middleware(TraceMiddleware)
    app.add_exception_handler(APIError, api_error_handler)

    app.include_router(agents_router, prefix="/api")
    app.include_router(sync_router, prefix="/api")
    app.include_router(observability_router)
    return app


app = create_app()
