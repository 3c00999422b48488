# Copyright (c) 2026 AgentSync Contributors. All Rights Reserved.

"""
AgentStore — The active agent set, persisted to Redis.

The set is replaced wholesale on every successful sync: a new mapping is
built off to the side and swapped in with one assignment, so readers see
either the old set or the new one, never a mix. The replacement is then
written to Redis so a restart can serve agents without network access.

Incoming agents are validated again here, independently of the fetcher.

Redis keys:
  agentsync:{namespace}:agents     JSON list of agents (manifest field names)
  agentsync:{namespace}:last_sync  ISO-8601 timestamp of the last replace_all
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from agent_sync.core.errors import PersistenceError
from agent_sync.kernel.namespace import get_agents_key, get_last_sync_key
from agent_sync.protocols.schema import Agent, AgentResource, utcnow, validate_agents

logger = logging.getLogger("agentsync.agent_store")


class AgentStore:
    """Holds the validated agent set and its durable copy."""

    def __init__(self, redis: aioredis.Redis, namespace: str = "default") -> None:
        self._redis = redis
        self._namespace = namespace
        self._agents: Dict[str, Agent] = {}

    def __len__(self) -> int:
        return len(self._agents)

    # ── Replace / restore ─────────────────────────────────────

    async def replace_all(self, agents: Iterable[Any]) -> List[Agent]:
        """
        Swap in a new agent set, then persist it. Invalid agents are dropped.

        Raises:
            PersistenceError: the write failed. The new set is still the
                active in-memory set.
        """
        validated = validate_agents(agents)
        new_set: Dict[str, Agent] = {}
        for agent in validated:
            if agent.id in new_set:
                logger.warning("Duplicate agent id '%s'; keeping the last definition", agent.id)
            new_set[agent.id] = agent

        self._agents = new_set
        try:
            await self._persist(list(new_set.values()))
        except RedisError as e:
            raise PersistenceError(f"could not persist agent set: {e}") from e
        logger.info("Agent set replaced (%d agents)", len(new_set))
        return list(new_set.values())

    async def _persist(self, agents: List[Agent]) -> None:
        payload = json.dumps([a.to_wire() for a in agents], ensure_ascii=False)
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.set(get_agents_key(self._namespace), payload)
            pipe.set(get_last_sync_key(self._namespace), utcnow().isoformat())
            await pipe.execute()

    async def load(self) -> int:
        """Restore the persisted set into memory. Returns the number restored."""
        try:
            raw = await self._redis.get(get_agents_key(self._namespace))
        except RedisError as e:
            raise PersistenceError(f"could not read agent set: {e}") from e
        if not raw:
            return 0
        try:
            entries = json.loads(raw)
        except ValueError as e:
            logger.error("Persisted agent set is corrupt, ignoring: %s", e)
            return 0
        if not isinstance(entries, list):
            logger.error("Persisted agent set is not a list, ignoring")
            return 0
        self._agents = {a.id: a for a in validate_agents(entries)}
        logger.info("Restored %d agents from storage", len(self._agents))
        return len(self._agents)

    async def last_sync_time(self) -> Optional[datetime]:
        raw = await self._redis.get(get_last_sync_key(self._namespace))
        if not raw:
            return None
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            return None

    # ── Reads ─────────────────────────────────────────────────

    def get(self, agent_id: str) -> Optional[Agent]:
        return self._agents.get(agent_id)

    def get_by_name(self, name: str) -> Optional[Agent]:
        """Case-insensitive exact match on the display name."""
        wanted = name.casefold()
        for agent in self._agents.values():
            if agent.name.casefold() == wanted:
                return agent
        return None

    def list(self) -> List[Agent]:
        return list(self._agents.values())

    def list_enabled(self) -> List[Agent]:
        return [a for a in self._agents.values() if a.enabled]

    def resources_by_owner(self) -> Dict[str, List[AgentResource]]:
        """Resource lists keyed by agent id, for ResourceLoader.preload."""
        return {a.id: list(a.resources) for a in self._agents.values() if a.resources}
