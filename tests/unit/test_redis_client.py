# Copyright (c) 2026 AgentSync Contributors. All Rights Reserved.
"""Unit tests for the Redis connection helpers."""

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from agent_sync.kernel.redis_client import get_redis_pool, redis_reachable


class TestRedisClient:
    @pytest.mark.asyncio
    async def test_injected_client_is_returned(self, mock_redis):
        assert await get_redis_pool("redis://unused:6379/0") is mock_redis

    @pytest.mark.asyncio
    async def test_reachable(self, mock_redis):
        assert await redis_reachable(mock_redis) is True

    @pytest.mark.asyncio
    async def test_unreachable_does_not_raise(self, mock_redis, monkeypatch):
        async def redis_down():
            raise RedisConnectionError("redis down")

        monkeypatch.setattr(mock_redis, "ping", redis_down)
        assert await redis_reachable(mock_redis) is False
