# Copyright (c) 2026 AgentSync Contributors. All Rights Reserved.
"""Unit tests for SyncContext wiring and startup."""

import pytest

from agent_sync.core.config import AgentSyncSettings
from agent_sync.core.context import SyncContext
from agent_sync.memory.agent_store import AgentStore

MANIFEST_URL = "https://raw.githubusercontent.com/acme/widgets/master/agents.json"


def _config(**overrides):
    values = {"REPOSITORY_URL": "https://github.com/acme/widgets", "SYNC_INTERVAL": 3600}
    values.update(overrides)
    return AgentSyncSettings(_env_file=None, **values)


class TestSyncContext:
    def test_components_share_metrics_and_config(self, mock_redis, remote):
        ctx = SyncContext(mock_redis, _config(PRELOAD_BATCH_SIZE=2), http_client=remote.client)
        assert ctx.sync_service.repository_url == "https://github.com/acme/widgets"
        assert ctx.sync_service.branch == "master"
        assert ctx.scheduler.interval == 3600
        assert ctx.loader.default_cache_duration == 3600.0

    @pytest.mark.asyncio
    async def test_start_syncs_and_schedules(self, mock_redis, remote):
        remote.routes[MANIFEST_URL] = {
            "version": "1", "agents": [{"id": "a", "name": "A", "prompt": "p"}],
        }
        ctx = SyncContext(mock_redis, _config(), http_client=remote.client)
        await ctx.start()
        try:
            assert len(ctx.store) == 1
            assert ctx.scheduler.running is True
        finally:
            await ctx.close()
        assert ctx.scheduler.running is False

    @pytest.mark.asyncio
    async def test_start_without_auto_sync_restores_only(self, mock_redis, remote):
        await AgentStore(mock_redis).replace_all([{"id": "saved", "name": "S", "prompt": "p"}])
        ctx = SyncContext(mock_redis, _config(AUTO_SYNC=False), http_client=remote.client)
        await ctx.start()
        assert ctx.store.get("saved") is not None
        assert remote.calls == []
        assert ctx.scheduler.running is False
        await ctx.close()
