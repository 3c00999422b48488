# Copyright (c) 2026 AgentSync Contributors. All Rights Reserved.

"""
SyncService — Orchestrates one repository → store → cache cycle.

Host-facing operations (plain calls; the API layer wraps them):
  - sync()       force a resync now
  - configure()  change repository URL/branch, persist it, resync
  - status()     {last_sync_time, last_error, sync_in_progress, agent_count, ...}

Only one cycle runs at a time. A call that arrives while a cycle is in
flight queues one rerun (a queue of depth 1: any number of overlapping
calls collapse into a single follow-up cycle) and returns the current
status. configure() waits for that follow-up so its result reflects the
new repository.

On manifest failure the store keeps its current set; if it is empty the
last persisted set is restored from Redis. If the new set cannot be
persisted it is still served from memory. Either error is retained for
status().
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Dict, List, Optional

import redis.asyncio as aioredis

from agent_sync.core.errors import AgentSyncError, PersistenceError
from agent_sync.core.metrics import Metrics
from agent_sync.kernel.namespace import get_repository_key
from agent_sync.memory.agent_store import AgentStore
from agent_sync.protocols.schema import AgentResource, SyncStatus, utcnow
from agent_sync.repository.fetcher import RepositoryFetcher
from agent_sync.resources.loader import ResourceLoader

logger = logging.getLogger("agentsync.sync")

GLOBAL_RESOURCES_OWNER = "__global__"


class SyncService:
    """Drives sync cycles and tracks their outcome."""

    def __init__(
        self,
        redis: aioredis.Redis,
        fetcher: RepositoryFetcher,
        store: AgentStore,
        loader: ResourceLoader,
        *,
        repository_url: str = "",
        branch: str = "master",
        namespace: str = "default",
        metrics: Optional[Metrics] = None,
    ) -> None:
        self._redis = redis
        self._fetcher = fetcher
        self._store = store
        self._loader = loader
        self._namespace = namespace
        self._metrics = metrics or Metrics()

        self.repository_url = repository_url
        self.branch = branch or "master"

        self._in_progress = False
        self._rerun = False
        self._idle = asyncio.Event()
        self._idle.set()
        self._last_sync_time: Optional[datetime] = None
        self._last_error: Optional[str] = None
        self._global_resources: List[AgentResource] = []

    @property
    def in_progress(self) -> bool:
        return self._in_progress

    @property
    def global_resources(self) -> List[AgentResource]:
        return list(self._global_resources)

    # ── Startup ───────────────────────────────────────────────

    async def restore(self) -> int:
        """Load persisted repository config and agent set (offline startup)."""
        saved = await self._redis.hgetall(get_repository_key(self._namespace))
        if saved.get("url"):
            self.repository_url = saved["url"]
            self.branch = saved.get("branch") or self.branch
        count = await self._store.load()
        self._last_sync_time = await self._store.last_sync_time()
        self._metrics.set_gauge("agents_loaded", count)
        return count

    # ── Host-facing operations ────────────────────────────────

    async def sync(self) -> SyncStatus:
        """Run a cycle now, or queue one rerun if a cycle is already running."""
        if self._in_progress:
            self._rerun = True
            self._metrics.inc("sync_queued")
            logger.info("Sync already in progress; queued a rerun")
            return self.status()

        if not self.repository_url:
            logger.info("No repository URL configured")
            return self.status()

        self._in_progress = True
        self._idle.clear()
        try:
            while True:
                self._rerun = False
                await self._run_cycle()
                if not self._rerun:
                    break
        finally:
            self._in_progress = False
            self._idle.set()
        return self.status()

    async def configure(self, repository_url: str, branch: Optional[str] = None) -> SyncStatus:
        """Point at a new repository (persisted), then resync."""
        repository_url = repository_url.strip()
        if not repository_url:
            raise ValueError("repository_url must not be empty")
        self.repository_url = repository_url
        if branch:
            self.branch = branch
        await self._redis.hset(
            get_repository_key(self._namespace),
            mapping={"url": self.repository_url, "branch": self.branch},
        )
        logger.info("Repository configured: %s@%s", self.repository_url, self.branch)
        if self._in_progress:
            # the running cycle picks up the new URL on its queued rerun
            self._rerun = True
            await self._idle.wait()
            return self.status()
        return await self.sync()

    def status(self) -> SyncStatus:
        return SyncStatus(
            last_sync_time=self._last_sync_time,
            last_error=self._last_error,
            sync_in_progress=self._in_progress,
            agent_count=len(self._store),
            repository_url=self.repository_url,
            branch=self.branch,
        )

    # ── Cycle ─────────────────────────────────────────────────

    async def _run_cycle(self) -> None:
        try:
            snapshot = await self._fetcher.fetch_agents(self.repository_url, self.branch)
        except AgentSyncError as e:
            await self._recover(e)
            return

        self._last_error = None
        try:
            await self._store.replace_all(snapshot.agents)
        except PersistenceError as e:
            self._last_error = e.describe()
            self._metrics.inc("sync_persist_failure")
            logger.error("Synced agents are served from memory only: %s", self._last_error)

        self._global_resources = snapshot.global_resources
        self._last_sync_time = utcnow()
        self._metrics.inc("sync_success")
        self._metrics.set_gauge("agents_loaded", len(self._store))
        logger.info("Successfully synced %d agents", len(self._store))

        await self._loader.preload(self._preload_targets())

    def _preload_targets(self) -> Dict[str, List[AgentResource]]:
        targets = self._store.resources_by_owner()
        if self._global_resources:
            targets[GLOBAL_RESOURCES_OWNER] = list(self._global_resources)
        return targets

    async def _recover(self, error: AgentSyncError) -> None:
        self._last_error = error.describe()
        self._metrics.inc("sync_failure")
        logger.error("Failed to fetch agents: %s", self._last_error)
        if len(self._store) == 0:
            try:
                restored = await self._store.load()
            except PersistenceError as e:
                logger.error("Cannot restore cached agents: %s", e.describe())
                restored = 0
            if restored:
                logger.info("Using cached agents due to sync failure")
            else:
                logger.warning("No cached agents available; 0 agents loaded")
