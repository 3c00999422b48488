# Copyright (c) 2026 AgentSync Contributors. All Rights Reserved.
"""Unit tests for SyncService — cycles, fallback, guard and configuration."""

import asyncio

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from agent_sync.core.metrics import Metrics
from agent_sync.kernel.namespace import get_repository_key
from agent_sync.memory.agent_store import AgentStore
from agent_sync.repository.fetcher import RepositoryFetcher
from agent_sync.resources.loader import ResourceLoader
from agent_sync.runtime.sync_service import SyncService

REPO = "https://github.com/acme/widgets"
MANIFEST_URL = "https://raw.githubusercontent.com/acme/widgets/main/agents.json"
DOC_URL = "https://docs.example.com/style"


def _service(mock_redis, remote, repository_url=REPO, metrics=None):
    metrics = metrics or Metrics()
    store = AgentStore(mock_redis)
    loader = ResourceLoader(remote.client, metrics=metrics)
    service = SyncService(
        mock_redis,
        RepositoryFetcher(remote.client),
        store,
        loader,
        repository_url=repository_url,
        branch="main",
        metrics=metrics,
    )
    return service, store, loader


def _manifest(*ids, resources=None):
    return {
        "version": "1",
        "agents": [
            {"id": i, "name": i.upper(), "prompt": "p", "resources": resources or []}
            for i in ids
        ],
    }


class TestSyncCycle:
    @pytest.mark.asyncio
    async def test_successful_sync_replaces_store(self, mock_redis, remote):
        remote.routes[MANIFEST_URL] = _manifest("a", "b")
        service, store, _ = _service(mock_redis, remote)

        status = await service.sync()
        assert status.agent_count == 2
        assert status.last_error is None
        assert status.last_sync_time is not None
        assert status.sync_in_progress is False

    @pytest.mark.asyncio
    async def test_sync_preloads_agent_and_global_resources(self, mock_redis, remote):
        manifest = _manifest("a", resources=[{"type": "url", "url": DOC_URL}])
        manifest["globalResources"] = [{"type": "file", "url": "https://docs.example.com/glossary"}]
        remote.routes[MANIFEST_URL] = manifest
        remote.routes[DOC_URL] = "style guide"
        remote.routes["https://docs.example.com/glossary"] = "glossary"
        service, _, loader = _service(mock_redis, remote)

        await service.sync()
        assert len(loader.cache) == 2
        assert len(service.global_resources) == 1

    @pytest.mark.asyncio
    async def test_full_resync_replaces_not_merges(self, mock_redis, remote):
        remote.routes[MANIFEST_URL] = _manifest("a", "b")
        service, store, _ = _service(mock_redis, remote)
        await service.sync()

        remote.routes[MANIFEST_URL] = _manifest("c")
        await service.sync()
        assert [a.id for a in store.list()] == ["c"]

    @pytest.mark.asyncio
    async def test_not_configured_is_noop(self, mock_redis, remote):
        service, _, _ = _service(mock_redis, remote, repository_url="")
        status = await service.sync()
        assert status.is_configured is False
        assert status.agent_count == 0
        assert remote.calls == []


class TestSyncFailure:
    @pytest.mark.asyncio
    async def test_failure_keeps_current_set(self, mock_redis, remote):
        metrics = Metrics()
        remote.routes[MANIFEST_URL] = _manifest("a")
        service, store, _ = _service(mock_redis, remote, metrics=metrics)
        await service.sync()

        remote.routes[MANIFEST_URL] = 500
        status = await service.sync()
        assert status.agent_count == 1
        assert "http-status-error" in status.last_error
        assert metrics.get_counter("sync_failure") == 1

    @pytest.mark.asyncio
    async def test_failure_restores_persisted_set(self, mock_redis, remote):
        await AgentStore(mock_redis).replace_all([{"id": "saved", "name": "S", "prompt": "p"}])
        remote.routes[MANIFEST_URL] = 503
        service, store, _ = _service(mock_redis, remote)

        status = await service.sync()
        assert status.agent_count == 1
        assert store.get("saved") is not None
        assert status.last_error is not None

    @pytest.mark.asyncio
    async def test_failure_without_cache_reports_zero(self, mock_redis, remote):
        remote.routes[MANIFEST_URL] = {"agents": "nope"}
        service, _, _ = _service(mock_redis, remote)

        status = await service.sync()
        assert status.agent_count == 0
        assert status.last_error.startswith("format-error")

    @pytest.mark.asyncio
    async def test_success_clears_last_error(self, mock_redis, remote):
        remote.routes[MANIFEST_URL] = 500
        service, _, _ = _service(mock_redis, remote)
        await service.sync()
        remote.routes[MANIFEST_URL] = _manifest("a")
        status = await service.sync()
        assert status.last_error is None


class TestPersistenceFailure:
    @pytest.mark.asyncio
    async def test_failed_write_keeps_new_set_and_reports(self, mock_redis, remote, monkeypatch):
        metrics = Metrics()
        remote.routes[MANIFEST_URL] = _manifest("a", "b")
        service, store, _ = _service(mock_redis, remote, metrics=metrics)

        async def redis_down(agents):
            raise RedisConnectionError("redis down")

        monkeypatch.setattr(store, "_persist", redis_down)
        status = await service.sync()

        assert sorted(a.id for a in store.list()) == ["a", "b"]
        assert status.agent_count == 2
        assert status.last_error.startswith("persistence-error")
        assert "redis down" in status.last_error
        assert status.last_sync_time is not None
        assert metrics.get_counter("sync_persist_failure") == 1

    @pytest.mark.asyncio
    async def test_unreadable_store_during_recovery(self, mock_redis, remote, monkeypatch):
        remote.routes[MANIFEST_URL] = 500
        service, store, _ = _service(mock_redis, remote)

        async def redis_down(*args, **kwargs):
            raise RedisConnectionError("redis down")

        monkeypatch.setattr(mock_redis, "get", redis_down)
        status = await service.sync()
        assert status.agent_count == 0
        assert status.last_error.startswith("http-status-error")


class TestSyncGuard:
    @pytest.mark.asyncio
    async def test_overlapping_calls_queue_one_rerun(self, mock_redis, remote):
        metrics = Metrics()
        remote.routes[MANIFEST_URL] = _manifest("a")
        remote.delay = 0.05
        service, _, _ = _service(mock_redis, remote, metrics=metrics)

        first = asyncio.create_task(service.sync())
        await asyncio.sleep(0.01)
        assert service.in_progress is True
        queued = await service.sync()
        again = await service.sync()
        await first

        assert queued.sync_in_progress is True
        assert again.sync_in_progress is True
        assert remote.calls_to(MANIFEST_URL) == 2
        assert remote.max_in_flight == 1
        assert metrics.get_counter("sync_queued") == 2
        assert service.in_progress is False

    @pytest.mark.asyncio
    async def test_configure_during_sync_fetches_new_repository(self, mock_redis, remote):
        old_manifest = "https://raw.githubusercontent.com/acme/old/main/agents.json"
        new_manifest = "https://raw.githubusercontent.com/acme/new/main/agents.json"
        remote.routes[old_manifest] = _manifest("old")
        remote.routes[new_manifest] = _manifest("new")
        remote.delay = 0.05
        service, store, _ = _service(
            mock_redis, remote, repository_url="https://github.com/acme/old",
        )

        running = asyncio.create_task(service.sync())
        await asyncio.sleep(0.01)
        status = await service.configure("https://github.com/acme/new")
        await running

        assert status.repository_url == "https://github.com/acme/new"
        assert [a.id for a in store.list()] == ["new"]
        assert status.agent_count == 1
        assert status.last_error is None
        assert status.sync_in_progress is False
        assert remote.calls_to(new_manifest) == 1


class TestConfigure:
    @pytest.mark.asyncio
    async def test_configure_persists_and_syncs(self, mock_redis, remote):
        remote.routes["https://raw.githubusercontent.com/acme/other/dev/agents.json"] = _manifest("x")
        service, store, _ = _service(mock_redis, remote, repository_url="")

        status = await service.configure("https://github.com/acme/other.git", "dev")
        assert status.repository_url == "https://github.com/acme/other.git"
        assert status.branch == "dev"
        assert store.get("x") is not None

        saved = await mock_redis.hgetall(get_repository_key("default"))
        assert saved == {"url": "https://github.com/acme/other.git", "branch": "dev"}

    @pytest.mark.asyncio
    async def test_configure_rejects_empty_url(self, mock_redis, remote):
        service, _, _ = _service(mock_redis, remote)
        with pytest.raises(ValueError):
            await service.configure("   ")

    @pytest.mark.asyncio
    async def test_restore_reads_saved_repository(self, mock_redis, remote):
        await mock_redis.hset(
            get_repository_key("default"),
            mapping={"url": "https://gitlab.com/acme/agents", "branch": "prod"},
        )
        await AgentStore(mock_redis).replace_all([{"id": "a", "name": "A", "prompt": "p"}])
        service, _, _ = _service(mock_redis, remote, repository_url="")

        restored = await service.restore()
        assert restored == 1
        status = service.status()
        assert status.repository_url == "https://gitlab.com/acme/agents"
        assert status.branch == "prod"
        assert status.last_sync_time is not None
