# Copyright (c) 2026 AgentSync Contributors. All Rights Reserved.

"""
SyncScheduler — Periodic re-sync loop.

Runs its callbacks every ``interval`` seconds. The first run happens one
interval after start (the app performs its own initial sync).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Coroutine, Optional

logger = logging.getLogger("agentsync.scheduler")


class SyncScheduler:
    """Fixed-interval timer that awaits its callbacks in order."""

    def __init__(self, interval: float = 300.0) -> None:
        """
        Args:
            interval: Seconds between runs.
        """
        self._interval = interval
        self._runs: int = 0
        self._running: bool = False
        self._task: Optional[asyncio.Task] = None
        self._callbacks: list[Callable[[], Coroutine[Any, Any, Any]]] = []

    @property
    def runs(self) -> int:
        """Number of completed ticks."""
        return self._runs

    @property
    def running(self) -> bool:
        return self._running

    @property
    def interval(self) -> float:
        return self._interval

    def on_tick(self, callback: Callable[[], Coroutine[Any, Any, Any]]) -> None:
        """Register an async callback to be invoked on each tick."""
        self._callbacks.append(callback)

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info("SyncScheduler started (interval=%.1fs)", self._interval)

    async def _loop(self) -> None:
        while self._running:
            await asyncio.sleep(self._interval)
            self._runs += 1
            logger.info("Running automatic agent sync (run %d)", self._runs)
            for cb in self._callbacks:
                try:
                    await cb()
                except Exception as exc:
                    logger.error("Scheduled sync error at run %d: %s", self._runs, exc)

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("SyncScheduler stopped after %d runs", self._runs)
