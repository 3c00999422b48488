# Copyright (c) 2026 AgentSync Contributors. All Rights Reserved.

"""
Agents API — Read the active agent set and load an agent's resources.

The resources endpoint is what a chat handler calls before rendering: it
returns every resource's content (fresh, cached or stale) plus a summary
of how many loaded without error.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from agent_sync.api.deps import get_context
from agent_sync.api.errors import AgentNotFoundError
from agent_sync.core.context import SyncContext
from agent_sync.protocols.schema import Agent

router = APIRouter(prefix="/agents", tags=["agents"])


class AgentSummary(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    enabled: bool = True
    tags: List[str] = []
    resource_count: int = 0


class ResourceLoadReport(BaseModel):
    agent_id: str
    resources: List[Dict[str, Any]]
    loaded: int
    total: int


def _summary(agent: Agent) -> AgentSummary:
    return AgentSummary(
        id=agent.id,
        name=agent.name,
        description=agent.description,
        enabled=agent.enabled,
        tags=agent.tags,
        resource_count=len(agent.resources),
    )


@router.get("", response_model=List[AgentSummary])
async def list_agents(
    include_disabled: bool = False,
    ctx: SyncContext = Depends(get_context),
):
    """List agents (enabled only unless ``include_disabled``)."""
    agents = ctx.store.list() if include_disabled else ctx.store.list_enabled()
    return [_summary(a) for a in agents]


@router.get("/by-name/{name}")
async def get_agent_by_name(name: str, ctx: SyncContext = Depends(get_context)):
    """Case-insensitive lookup by display name."""
    agent = ctx.store.get_by_name(name)
    if agent is None:
        raise AgentNotFoundError(name)
    return agent.to_wire()


@router.get("/{agent_id}")
async def get_agent(agent_id: str, ctx: SyncContext = Depends(get_context)):
    """Full agent definition (manifest field names)."""
    agent = ctx.store.get(agent_id)
    if agent is None:
        raise AgentNotFoundError(agent_id)
    return agent.to_wire()


@router.get("/{agent_id}/resources", response_model=ResourceLoadReport)
async def load_agent_resources(agent_id: str, ctx: SyncContext = Depends(get_context)):
    """Load the agent's resources in declaration order."""
    agent = ctx.store.get(agent_id)
    if agent is None:
        raise AgentNotFoundError(agent_id)
    contents = await ctx.loader.load_many(agent.resources)
    return ResourceLoadReport(
        agent_id=agent.id,
        resources=[c.to_dict() for c in contents],
        loaded=sum(1 for c in contents if c.ok),
        total=len(contents),
    )
