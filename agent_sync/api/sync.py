# Copyright (c) 2026 AgentSync Contributors. All Rights Reserved.

"""
Sync API — Force a resync, reconfigure the repository, query status,
and administer the resource cache.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from agent_sync.api.deps import get_context
from agent_sync.api.errors import InvalidRepositoryError
from agent_sync.core.context import SyncContext

router = APIRouter(tags=["sync"])


class RepositoryConfigRequest(BaseModel):
    repository_url: str
    branch: Optional[str] = None


@router.post("/sync")
async def force_sync(ctx: SyncContext = Depends(get_context)):
    """Run a sync cycle now (queued behind a running one)."""
    status = await ctx.sync_service.sync()
    return status.to_dict()


@router.put("/sync/repository")
async def configure_repository(
    req: RepositoryConfigRequest,
    ctx: SyncContext = Depends(get_context),
):
    """Point the service at a different repository/branch and resync."""
    if not req.repository_url.strip():
        raise InvalidRepositoryError("repository_url must not be empty")
    status = await ctx.sync_service.configure(req.repository_url, req.branch)
    return status.to_dict()


@router.get("/sync/status")
async def sync_status(ctx: SyncContext = Depends(get_context)):
    return ctx.sync_service.status().to_dict()


@router.post("/resources/cache/clear")
async def clear_cache(ctx: SyncContext = Depends(get_context)):
    ctx.loader.clear_cache()
    return {"cleared": True, "entries": len(ctx.loader.cache)}


@router.post("/resources/cache/clear-expired")
async def clear_expired_cache(
    max_age: Optional[float] = None,
    ctx: SyncContext = Depends(get_context),
):
    removed = ctx.loader.clear_expired_cache(max_age)
    return {"removed": removed, "entries": len(ctx.loader.cache)}
