# Copyright (c) 2026 AgentSync Contributors. All Rights Reserved.

"""
API Dependencies — FastAPI dependency injection.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from agent_sync.core.context import SyncContext


async def get_context(request: Request) -> SyncContext:
    """Return the SyncContext the lifespan attached to ``app.state``."""
    ctx = getattr(request.app.state, "ctx", None)
    if ctx is None:
        raise HTTPException(status_code=503, detail="Service is starting up")
    return ctx
