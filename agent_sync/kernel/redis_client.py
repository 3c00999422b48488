# Copyright (c) 2026 AgentSync Contributors. All Rights Reserved.

"""
Redis Connection Factory — Durable copy of the agent set.

AgentSync writes to Redis once per successful sync and reads it back at
startup or after a failed sync, so the pool is small. Transient connection
errors are retried with backoff; anything that still fails surfaces as a
``RedisError`` for the store to translate.
"""

from __future__ import annotations

import logging
from typing import Optional

import redis.asyncio as aioredis
from redis.backoff import ExponentialBackoff
from redis.exceptions import (
    BusyLoadingError,
    ConnectionError,
    RedisError,
    TimeoutError,
)
from redis.retry import Retry

logger = logging.getLogger("agentsync.redis")

_pool: Optional[aioredis.Redis] = None

_RETRY = Retry(ExponentialBackoff(cap=2, base=0.1), retries=3)
_RETRY_ERRORS = [ConnectionError, TimeoutError, BusyLoadingError, OSError]


async def get_redis_pool(url: str, max_connections: int = 10) -> aioredis.Redis:
    """Return the shared async Redis client for ``url``, creating it on first use."""
    global _pool
    if _pool is None:
        _pool = aioredis.from_url(
            url,
            decode_responses=True,
            max_connections=max_connections,
            health_check_interval=30,
            retry_on_error=_RETRY_ERRORS,
            retry=_RETRY,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        logger.info("Redis pool created (max_connections=%d)", max_connections)
    return _pool


async def redis_reachable(redis: aioredis.Redis) -> bool:
    """PING for the health endpoint. Never raises."""
    try:
        return bool(await redis.ping())
    except RedisError as e:
        logger.warning("Redis ping failed: %s", e)
        return False


async def close_redis_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.aclose()
        _pool = None


def inject_redis_for_test(redis_instance: aioredis.Redis) -> None:
    """Install a fakeredis client as the shared pool."""
    global _pool
    _pool = redis_instance
