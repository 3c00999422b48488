# Copyright (c) 2026 AgentSync Contributors. All Rights Reserved.
"""Unit tests for Metrics."""

import pytest

from agent_sync.core.metrics import Metrics


class TestMetrics:
    def test_counter_increment(self):
        m = Metrics()
        m.inc("resource_cache_hit")
        m.inc("resource_cache_hit")
        assert m.get_counter("resource_cache_hit") == 2

    def test_counter_default_zero(self):
        m = Metrics()
        assert m.get_counter("nonexistent") == 0

    def test_gauge(self):
        m = Metrics()
        m.set_gauge("agents_loaded", 5.0)
        assert m.get_gauge("agents_loaded") == 5.0

    def test_latency_summary(self):
        m = Metrics()
        for v in (100, 200, 300):
            m.observe("resource_fetch_latency", v)
        summary = m.snapshot()["latency"]["resource_fetch_latency"]
        assert summary["count"] == 3
        assert summary["avg"] == 200.0
        assert summary["p50"] == 200
        assert summary["max"] == 300

    def test_window_keeps_recent_samples(self):
        m = Metrics(window=10)
        for i in range(25):
            m.observe("lat", i)
        summary = m.snapshot()["latency"]["lat"]
        assert summary["count"] == 10
        assert summary["max"] == 24
        assert summary["avg"] == 19.5

    def test_timed_records_on_error(self):
        m = Metrics()
        with pytest.raises(RuntimeError):
            with m.timed("resource_fetch_latency"):
                raise RuntimeError("boom")
        assert m.snapshot()["latency"]["resource_fetch_latency"]["count"] == 1

    def test_ratio(self):
        m = Metrics()
        assert m.ratio("resource_cache_hit", "resource_cache_miss") is None
        m.inc("resource_cache_hit", 3)
        m.inc("resource_cache_miss")
        assert m.ratio("resource_cache_hit", "resource_cache_miss") == 0.75

    def test_snapshot_has_uptime(self):
        snap = Metrics().snapshot()
        assert snap["uptime_seconds"] >= 0
        assert snap["latency"] == {}
