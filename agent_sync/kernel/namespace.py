# Copyright (c) 2026 AgentSync Contributors. All Rights Reserved.

"""
Namespace Helper — Redis key layout for persisted sync state.

All keys are namespaced: agentsync:{namespace}:{name}
so several deployments can share one Redis.
"""

from __future__ import annotations


def get_key(namespace: str, name: str) -> str:
    """
    Build a namespaced Redis key.

    Examples:
        get_key("default", "agents") -> "agentsync:default:agents"
    """
    return f"agentsync:{namespace}:{name}"


def get_agents_key(namespace: str) -> str:
    """JSON list of the last synced agent set."""
    return get_key(namespace, "agents")


def get_last_sync_key(namespace: str) -> str:
    """ISO-8601 timestamp of the last successful sync."""
    return get_key(namespace, "last_sync")


def get_repository_key(namespace: str) -> str:
    """Hash holding the configured repository ``url`` and ``branch``."""
    return get_key(namespace, "repository")
