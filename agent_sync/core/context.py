# Copyright (c) 2026 AgentSync Contributors. All Rights Reserved.

"""
SyncContext — Holds all core component references.

Built once at startup and passed explicitly to whatever needs it (the API
layer reads it from ``app.state``). There is no module-level instance.
"""

from __future__ import annotations

from typing import Optional

import httpx
import redis.asyncio as aioredis

from agent_sync.core.config import AgentSyncSettings
from agent_sync.core.metrics import Metrics
from agent_sync.kernel.scheduler import SyncScheduler
from agent_sync.memory.agent_store import AgentStore
from agent_sync.repository.fetcher import RepositoryFetcher
from agent_sync.resources.loader import ResourceLoader
from agent_sync.runtime.sync_service import SyncService


class SyncContext:
    """
    Wires loader, fetcher, store, sync service and scheduler together.

    One ``httpx.AsyncClient`` is shared by the loader and the fetcher;
    pass ``http_client`` to substitute a mock transport in tests.
    """

    def __init__(
        self,
        redis: aioredis.Redis,
        config: AgentSyncSettings,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.redis = redis
        self.config = config
        self.metrics = Metrics()
        self.http = http_client or httpx.AsyncClient(follow_redirects=True)

        self.loader = ResourceLoader(
            self.http,
            default_cache_duration=config.RESOURCE_CACHE_DURATION,
            timeout=config.RESOURCE_TIMEOUT,
            batch_size=config.PRELOAD_BATCH_SIZE,
            user_agent=config.USER_AGENT,
            metrics=self.metrics,
        )
        self.fetcher = RepositoryFetcher(
            self.http,
            manifest_timeout=config.MANIFEST_TIMEOUT,
            reference_timeout=config.REFERENCE_TIMEOUT,
        )
        self.store = AgentStore(redis, namespace=config.STORE_NAMESPACE)
        self.sync_service = SyncService(
            redis,
            self.fetcher,
            self.store,
            self.loader,
            repository_url=config.REPOSITORY_URL,
            branch=config.REPOSITORY_BRANCH,
            namespace=config.STORE_NAMESPACE,
            metrics=self.metrics,
        )
        self.scheduler = SyncScheduler(interval=config.SYNC_INTERVAL)
        self.scheduler.on_tick(self.sync_service.sync)

    async def start(self, auto_sync: Optional[bool] = None) -> None:
        """Restore persisted state, then (optionally) sync and start the scheduler."""
        await self.sync_service.restore()
        if auto_sync is None:
            auto_sync = self.config.AUTO_SYNC
        if auto_sync:
            await self.sync_service.sync()
            await self.scheduler.start()

    async def close(self) -> None:
        await self.scheduler.stop()
        await self.http.aclose()
