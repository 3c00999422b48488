# Copyright (c) 2026 AgentSync Contributors. All Rights Reserved.

"""
Observability API — Health check and metrics.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from agent_sync.api.deps import get_context
from agent_sync.core.context import SyncContext
from agent_sync.kernel.redis_client import redis_reachable

router = APIRouter(tags=["observability"])


@router.get("/health")
async def health_check(ctx: SyncContext = Depends(get_context)):
    """
    Liveness plus sync state.

    ``status`` is "degraded" when Redis is unreachable: agents are still
    served from memory but a restart would come up empty.
    """
    status = ctx.sync_service.status()
    redis_ok = await redis_reachable(ctx.redis)
    return {
        "status": "ok" if redis_ok else "degraded",
        "version": "0.1.0",
        "redis": redis_ok,
        "agents": status.agent_count,
        "repository_configured": status.is_configured,
        "sync_in_progress": status.sync_in_progress,
        "last_error": status.last_error,
    }


@router.get("/api/metrics")
async def get_metrics(ctx: SyncContext = Depends(get_context)):
    """Loader/sync counters, cache size and hit ratio, fetch latency."""
    snap = ctx.metrics.snapshot()
    snap["gauges"]["resource_cache_entries"] = len(ctx.loader.cache)
    snap["resource_cache_hit_ratio"] = ctx.metrics.ratio(
        "resource_cache_hit", "resource_cache_miss",
    )
    return snap
