# Copyright (c) 2026 AgentSync Contributors. All Rights Reserved.

"""
ResourceCache — In-memory store of the last successful fetch per resource.

Entries are keyed by ``AgentResource.cache_key`` (url + serialized headers)
and are never evicted on a timer. Freshness is decided by the loader at read
time, so an expired entry stays available as a stale-on-error fallback until
``clear()`` or ``clear_expired()`` is called explicitly.

Single owner: the cache is mutated only from the loader's event loop.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Dict, Optional

logger = logging.getLogger("agentsync.resources.cache")


@dataclass(frozen=True)
class CacheEntry:
    content: str
    fetched_at: float

    def age(self, now: float) -> float:
        return now - self.fetched_at


class ResourceCache:
    """Unbounded key → CacheEntry mapping."""

    def __init__(self) -> None:
        self._entries: Dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def put(self, key: str, content: str, now: Optional[float] = None) -> CacheEntry:
        entry = CacheEntry(content=content, fetched_at=time.time() if now is None else now)
        self._entries[key] = entry
        return entry

    def clear(self) -> None:
        self._entries.clear()

    def clear_expired(self, max_age: float, now: Optional[float] = None) -> int:
        """Drop entries older than ``max_age`` seconds. Returns how many were removed."""
        now = time.time() if now is None else now
        expired = [k for k, e in self._entries.items() if e.age(now) > max_age]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.info("Cleared %d expired cache entries", len(expired))
        return len(expired)
