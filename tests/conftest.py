# Copyright (c) 2026 AgentSync Contributors. All Rights Reserved.

"""
Shared test fixtures for all AgentSync tests.
"""

import asyncio
import json
from typing import Any, Callable, Dict, List, Union

import httpx
import pytest
import fakeredis.aioredis

from agent_sync.kernel.redis_client import inject_redis_for_test


Route = Union[str, dict, list, int, Exception, Callable[[httpx.Request], Any]]


class FakeRemote:
    """
    Scriptable HTTP backend behind ``httpx.MockTransport``.

    routes[url] may be:
      - str / dict / list  → 200 with that body (JSON-encoded if not str)
      - int                → empty response with that status
      - Exception          → raised as a transport error
      - callable(request)  → returns any of the above or an httpx.Response
    Unknown URLs return 404.
    """

    def __init__(self) -> None:
        self.routes: Dict[str, Route] = {}
        self.calls: List[httpx.Request] = []
        self.delay = 0.0
        self.in_flight = 0
        self.max_in_flight = 0
        self.client = httpx.AsyncClient(transport=httpx.MockTransport(self._handle))

    def calls_to(self, url: str) -> int:
        return sum(1 for r in self.calls if str(r.url) == url)

    async def _handle(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            url = str(request.url)
            route = self.routes.get(url, self.routes.get(url.rstrip("/"), 404))
            if callable(route) and not isinstance(route, Exception):
                route = route(request)
            if isinstance(route, httpx.Response):
                return route
            if isinstance(route, Exception):
                raise route
            if isinstance(route, int):
                return httpx.Response(route)
            if isinstance(route, str):
                return httpx.Response(200, text=route)
            return httpx.Response(200, text=json.dumps(route))
        finally:
            self.in_flight -= 1


@pytest.fixture
def mock_redis():
    """Provide a FakeRedis async instance and register it as the pool."""
    r = fakeredis.aioredis.FakeRedis(decode_responses=True)
    inject_redis_for_test(r)
    return r


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def make_clock():
    """Factory for a manually advanced clock: clock.now += seconds."""

    class Clock:
        def __init__(self, start: float = 1_000_000.0) -> None:
            self.now = start

        def __call__(self) -> float:
            return self.now

    return Clock
