# Copyright (c) 2026 AgentSync Contributors. All Rights Reserved.

"""
AgentSync Schema — agent definitions, resources and load results.

The manifest wire format uses camelCase for a few fields
(``cacheDuration``, ``globalResources``); the models accept
both the wire name and the Python attribute name.

Validation rules:
  - ``id``, ``name`` and ``prompt`` are non-empty strings (no coercion).
  - Resource ``type`` is one of url | file | api and ``url`` is non-empty.
  - An entry that fails validation is dropped, never repaired.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from agent_sync.core.errors import AgentValidationError

logger = logging.getLogger("agentsync.schema")

ResourceType = Literal["url", "file", "api"]


def _number_as_text(v: Any) -> Any:
    # manifests in the wild write version: 1.0
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    return v


class AgentResource(BaseModel):
    """External content (web page, API response, file) an agent references."""

    model_config = ConfigDict(populate_by_name=True)

    type: ResourceType
    url: str = Field(..., min_length=1, strict=True)
    name: Optional[str] = None
    description: Optional[str] = None
    headers: Dict[str, str] = Field(default_factory=dict)
    cache_duration: Optional[float] = Field(
        default=None,
        alias="cacheDuration",
        description="Cache lifetime in milliseconds (manifest units)",
    )

    @property
    def cache_ttl(self) -> Optional[float]:
        """Cache lifetime in seconds, or None to use the loader default."""
        if not self.cache_duration or self.cache_duration < 0:
            return None
        return self.cache_duration / 1000.0

    @property
    def cache_key(self) -> str:
        """Identity for caching: (url, serialized headers)."""
        headers = json.dumps(self.headers, sort_keys=True) if self.headers else ""
        return f"{self.url}::{headers}"


class Agent(BaseModel):
    """A prompt template plus the resources it draws context from."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1, strict=True)
    name: str = Field(..., min_length=1, strict=True)
    prompt: str = Field(..., min_length=1, strict=True)
    description: Optional[str] = None
    resources: List[AgentResource] = Field(default_factory=list)
    examples: List[str] = Field(default_factory=list)
    templates: List[str] = Field(default_factory=list)
    version: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    enabled: bool = True

    @field_validator("version", mode="before")
    @classmethod
    def version_as_text(cls, v: Any) -> Any:
        return _number_as_text(v)

    def to_wire(self) -> Dict[str, Any]:
        """Serialize using manifest field names (for persistence)."""
        return self.model_dump(by_alias=True, exclude_none=True)


class AgentManifest(BaseModel):
    """
    Top-level repository manifest (agents.json).

    ``agents`` and ``globalResources`` hold raw entries; each one is
    validated on its own so a single bad entry cannot fail the manifest.
    """

    model_config = ConfigDict(populate_by_name=True)

    version: str
    agents: List[Any]
    global_resources: List[Any] = Field(
        default_factory=list, alias="globalResources",
    )
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("version", mode="before")
    @classmethod
    def version_as_text(cls, v: Any) -> Any:
        return _number_as_text(v)


@dataclass(frozen=True)
class ResourceContent:
    """Result of one resource load. Immutable once built."""

    url: str
    content: str
    loaded_at: datetime
    error: Optional[str] = None
    error_kind: Optional[str] = None
    from_cache: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "url": self.url,
            "content": self.content,
            "loaded_at": self.loaded_at.isoformat(),
            "from_cache": self.from_cache,
        }
        if self.error:
            d["error"] = self.error
            d["error_kind"] = self.error_kind
        return d


@dataclass
class SyncStatus:
    """Snapshot returned by the status query."""

    last_sync_time: Optional[datetime] = None
    last_error: Optional[str] = None
    sync_in_progress: bool = False
    agent_count: int = 0
    repository_url: str = ""
    branch: str = "master"

    @property
    def is_configured(self) -> bool:
        return bool(self.repository_url)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "last_sync_time": self.last_sync_time.isoformat() if self.last_sync_time else None,
            "last_error": self.last_error,
            "sync_in_progress": self.sync_in_progress,
            "agent_count": self.agent_count,
            "repository_url": self.repository_url,
            "branch": self.branch,
            "is_configured": self.is_configured,
        }


@dataclass
class RepositorySnapshot:
    """Everything a successful fetch cycle produced."""

    version: str
    agents: List[Agent] = field(default_factory=list)
    global_resources: List[AgentResource] = field(default_factory=list)
    metadata: Optional[Dict[str, Any]] = None
    dropped: int = 0


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Validation ───────────────────────────────────────────────


def _summarize(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)


def validate_agent(entry: Any) -> Optional[Agent]:
    """Return a validated Agent, or None (logged) if the entry is malformed."""
    if isinstance(entry, Agent):
        entry = entry.model_dump(by_alias=True)
    if not isinstance(entry, Mapping):
        logger.warning("Dropping agent entry: not an object (%s)", type(entry).__name__)
        return None
    try:
        return Agent.model_validate(dict(entry))
    except ValidationError as e:
        err = AgentValidationError(f"agent '{entry.get('id', '?')}': {_summarize(e)}")
        logger.warning("Dropping invalid entry: %s", err.describe(), extra={"agent_id": entry.get("id")})
        return None


def validate_agents(entries: Iterable[Any]) -> List[Agent]:
    """Validate each entry independently, keeping only the valid ones."""
    agents = []
    for entry in entries:
        agent = validate_agent(entry)
        if agent is not None:
            agents.append(agent)
    return agents


def validate_resources(entries: Iterable[Any]) -> List[AgentResource]:
    """Validate raw resource entries independently (e.g. globalResources)."""
    resources = []
    for entry in entries:
        if isinstance(entry, AgentResource):
            resources.append(entry)
            continue
        try:
            resources.append(AgentResource.model_validate(entry))
        except ValidationError as e:
            err = AgentValidationError(f"resource: {_summarize(e)}")
            logger.warning("Dropping invalid entry: %s", err.describe())
    return resources
