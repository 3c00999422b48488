# Copyright (c) 2026 AgentSync Contributors. All Rights Reserved.

"""
ResourceLoader — Fetch-or-cache decisions for agent resources.

Fast path: a fresh cache entry is returned without touching the network.
Slow path: GET with a bounded timeout, normalize the body, cache it.
On failure the last cached content (even expired) is returned with the
error attached; without one the content is empty. ``load_one`` never raises.

Usage:
    loader = ResourceLoader()
    content = await loader.load_one(resource)
    if content.error and content.content:
        ...  # stale but present
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

import httpx

from agent_sync.core.errors import AgentSyncError
from agent_sync.core.metrics import Metrics
from agent_sync.protocols.schema import AgentResource, ResourceContent
from agent_sync.resources.cache import CacheEntry, ResourceCache
from agent_sync.resources.http import http_get
from agent_sync.resources.normalize import normalize_content

logger = logging.getLogger("agentsync.resources.loader")

DEFAULT_CACHE_DURATION = 3600.0  # 1 hour
DEFAULT_TIMEOUT = 15.0
DEFAULT_BATCH_SIZE = 5
DEFAULT_USER_AGENT = "AgentSync-Resource-Loader"

_ACCEPT_BY_TYPE = {
    "api": "application/json, application/xml, text/plain",
    "file": "text/plain, text/html, text/markdown",
    "url": "*/*",
}


def accept_header(resource_type: str) -> str:
    return _ACCEPT_BY_TYPE.get(resource_type, "*/*")


def _to_datetime(ts: float) -> datetime:
    return datetime.fromtimestamp(ts, tz=timezone.utc)


class ResourceLoader:
    """Loads resources through a shared ResourceCache."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        *,
        cache: Optional[ResourceCache] = None,
        default_cache_duration: float = DEFAULT_CACHE_DURATION,
        timeout: float = DEFAULT_TIMEOUT,
        batch_size: int = DEFAULT_BATCH_SIZE,
        user_agent: str = DEFAULT_USER_AGENT,
        metrics: Optional[Metrics] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(follow_redirects=True)
        self._cache = cache or ResourceCache()
        self._default_cache_duration = default_cache_duration
        self._timeout = timeout
        self._batch_size = max(1, batch_size)
        self._user_agent = user_agent
        self._metrics = metrics or Metrics()
        self._clock = clock

    @property
    def cache(self) -> ResourceCache:
        return self._cache

    @property
    def default_cache_duration(self) -> float:
        return self._default_cache_duration

    def build_headers(self, resource: AgentResource) -> Dict[str, str]:
        """Default headers merged with the resource's own; the resource wins."""
        headers = {
            "User-Agent": self._user_agent,
            "Accept": accept_header(resource.type),
        }
        lowered = {k.lower(): k for k in headers}
        for key, value in resource.headers.items():
            existing = lowered.get(key.lower())
            if existing is not None and existing != key:
                del headers[existing]
            headers[key] = value
        return headers

    # ── Single / sequential loads ─────────────────────────────

    async def load_one(self, resource: AgentResource) -> ResourceContent:
        """Return cached content if fresh, otherwise fetch. Never raises."""
        key = resource.cache_key
        ttl = resource.cache_ttl or self._default_cache_duration
        now = self._clock()

        cached = self._cache.get(key)
        if cached is not None and cached.age(now) < ttl:
            self._metrics.inc("resource_cache_hit")
            logger.debug("Using cached resource: %s", resource.url, extra={"url": resource.url})
            return ResourceContent(
                url=resource.url,
                content=cached.content,
                loaded_at=_to_datetime(cached.fetched_at),
                from_cache=True,
            )

        self._metrics.inc("resource_cache_miss")
        try:
            content = await self._fetch(resource)
        except AgentSyncError as e:
            return self._fallback(resource, self._cache.get(key), e)

        fetched_at = self._clock()
        self._cache.put(key, content, fetched_at)
        return ResourceContent(
            url=resource.url,
            content=content,
            loaded_at=_to_datetime(fetched_at),
        )

    async def load_many(self, resources: Iterable[AgentResource]) -> List[ResourceContent]:
        """Load resources one after another, preserving input order."""
        results = []
        for resource in resources:
            results.append(await self.load_one(resource))
        return results

    async def _fetch(self, resource: AgentResource) -> str:
        logger.info("Loading resource: %s", resource.url, extra={"url": resource.url})
        with self._metrics.timed("resource_fetch_latency"):
            resp = await http_get(
                self._client,
                resource.url,
                headers=self.build_headers(resource),
                timeout=self._timeout,
            )
        text, warning = normalize_content(resp.text, resource.type)
        if warning:
            self._metrics.inc("resource_normalize_fallback")
        return text

    def _fallback(
        self,
        resource: AgentResource,
        cached: Optional[CacheEntry],
        error: AgentSyncError,
    ) -> ResourceContent:
        self._metrics.inc("resource_fetch_error")
        logger.error(
            "Failed to load resource %s: %s", resource.url, error.describe(),
            extra={"url": resource.url},
        )
        if cached is not None:
            self._metrics.inc("resource_stale_served")
            logger.info("Using expired cache for failed resource: %s", resource.url)
            return ResourceContent(
                url=resource.url,
                content=cached.content,
                loaded_at=_to_datetime(cached.fetched_at),
                error=error.describe(),
                error_kind=error.kind,
                from_cache=True,
            )
        return ResourceContent(
            url=resource.url,
            content="",
            loaded_at=_to_datetime(self._clock()),
            error=error.describe(),
            error_kind=error.kind,
        )

    # ── Bulk preload ──────────────────────────────────────────

    async def preload(self, resources_by_owner: Mapping[str, Sequence[AgentResource]]) -> int:
        """
        Warm the cache for every owner's resources.

        Resources are deduplicated by URL, first occurrence wins, then fetched
        in batches of ``batch_size``; each batch completes before the next
        starts. Returns the number of unique resources.
        """
        logger.info("Preloading resources for %d owners", len(resources_by_owner))
        unique: Dict[str, AgentResource] = {}
        for owner, resources in resources_by_owner.items():
            for resource in resources:
                first = unique.get(resource.url)
                if first is None:
                    unique[resource.url] = resource
                elif (first.headers, first.cache_duration) != (resource.headers, resource.cache_duration):
                    logger.warning(
                        "Duplicate resource %s from '%s' ignored; first declaration wins",
                        resource.url, owner, extra={"url": resource.url},
                    )

        pending = list(unique.values())
        for i in range(0, len(pending), self._batch_size):
            batch = pending[i:i + self._batch_size]
            await asyncio.gather(*(self.load_one(r) for r in batch))

        logger.info("Preloaded %d unique resources", len(pending))
        return len(pending)

    # ── Administration ────────────────────────────────────────

    def clear_cache(self) -> None:
        self._cache.clear()
        logger.info("Resource cache cleared")

    def clear_expired_cache(self, max_age: Optional[float] = None) -> int:
        """Drop entries older than ``max_age`` (default: the default cache duration)."""
        max_age = self._default_cache_duration if max_age is None else max_age
        return self._cache.clear_expired(max_age, self._clock())

    async def close(self) -> None:
        """Close the HTTP client if this loader created it."""
        if self._owns_client:
            await self._client.aclose()
