# Copyright (c) 2026 AgentSync Contributors. All Rights Reserved.

"""
RepositoryFetcher — Pull agents.json and resolve ``file:`` references.

One sync cycle:
  Idle → FetchingManifest → ValidatingEntries → ResolvingReferences → Done
                          ↘ Failed (raised to the caller)

Only a manifest failure fails the cycle. Invalid entries are dropped and
unresolvable references keep their literal text, so one bad entry never
costs the rest of the agent set.
"""

from __future__ import annotations

import enum
import json
import logging
from typing import List, Optional

import httpx
from pydantic import ValidationError

from agent_sync.core.errors import AgentSyncError, FormatError, ReferenceResolutionError
from agent_sync.protocols.schema import (
    Agent,
    AgentManifest,
    RepositorySnapshot,
    validate_agents,
    validate_resources,
)
from agent_sync.repository.urls import build_raw_url
from agent_sync.resources.http import http_get

logger = logging.getLogger("agentsync.repository.fetcher")

MANIFEST_FILE = "agents.json"
FILE_REF_PREFIX = "file:"
AGENTS_DIR = "agents"
TEMPLATES_DIR = "templates"

_NO_CACHE = {"Cache-Control": "no-cache"}


class FetchState(str, enum.Enum):
    IDLE = "idle"
    FETCHING_MANIFEST = "fetching_manifest"
    VALIDATING_ENTRIES = "validating_entries"
    RESOLVING_REFERENCES = "resolving_references"
    DONE = "done"
    FAILED = "failed"


def is_file_reference(value: str) -> bool:
    return value.startswith(FILE_REF_PREFIX)


class RepositoryFetcher:
    """Fetches and validates the agent set published in a repository."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        *,
        manifest_timeout: float = 10.0,
        reference_timeout: float = 5.0,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(follow_redirects=True)
        self._manifest_timeout = manifest_timeout
        self._reference_timeout = reference_timeout
        self.state = FetchState.IDLE

    async def fetch_manifest(self, repo_url: str, branch: str) -> AgentManifest:
        """
        Fetch and parse the manifest.

        Raises:
            NetworkError / HttpStatusError: the request failed.
            FormatError: the body is not JSON or lacks ``version``/``agents``.
        """
        url = build_raw_url(repo_url, branch, MANIFEST_FILE)
        logger.info("Fetching agents from: %s", url, extra={"url": url})
        resp = await http_get(
            self._client,
            url,
            headers={"Accept": "application/json", **_NO_CACHE},
            timeout=self._manifest_timeout,
        )
        try:
            data = json.loads(resp.text)
        except ValueError as e:
            raise FormatError(f"manifest is not valid JSON: {e}", url=url) from e
        if not isinstance(data, dict):
            raise FormatError("Invalid agent configuration format", url=url)
        try:
            return AgentManifest.model_validate(data)
        except ValidationError as e:
            raise FormatError(
                f"Invalid agent configuration format ({e.error_count()} errors)", url=url,
            ) from e

    async def fetch_agents(self, repo_url: str, branch: str) -> RepositorySnapshot:
        """Run one full fetch cycle. Raises only if the manifest itself fails."""
        self.state = FetchState.FETCHING_MANIFEST
        try:
            manifest = await self.fetch_manifest(repo_url, branch)
        except AgentSyncError:
            self.state = FetchState.FAILED
            raise
        logger.info(
            "Fetched %d agents (version: %s)", len(manifest.agents), manifest.version,
        )

        self.state = FetchState.VALIDATING_ENTRIES
        agents = validate_agents(manifest.agents)
        dropped = len(manifest.agents) - len(agents)
        if dropped:
            logger.warning("Dropped %d invalid agent entries", dropped)

        self.state = FetchState.RESOLVING_REFERENCES
        resolved = [await self.resolve_references(a, repo_url, branch) for a in agents]

        self.state = FetchState.DONE
        return RepositorySnapshot(
            version=manifest.version,
            agents=resolved,
            global_resources=validate_resources(manifest.global_resources),
            metadata=manifest.metadata,
            dropped=dropped,
        )

    async def resolve_references(self, agent: Agent, repo_url: str, branch: str) -> Agent:
        """Return a copy of ``agent`` with file: prompt/templates substituted."""
        updates = {}

        if is_file_reference(agent.prompt):
            try:
                updates["prompt"] = await self._fetch_reference(
                    repo_url, branch, AGENTS_DIR, agent.prompt,
                )
            except ReferenceResolutionError as e:
                logger.warning(
                    "Keeping literal prompt for agent %s: %s", agent.id, e.describe(),
                    extra={"agent_id": agent.id},
                )

        if any(is_file_reference(t) for t in agent.templates):
            templates: List[str] = []
            for template in agent.templates:
                if not is_file_reference(template):
                    templates.append(template)
                    continue
                try:
                    templates.append(await self._fetch_reference(
                        repo_url, branch, TEMPLATES_DIR, template,
                    ))
                except ReferenceResolutionError as e:
                    logger.warning(
                        "Failed to fetch template %s: %s", template, e.describe(),
                        extra={"agent_id": agent.id},
                    )
                    templates.append(template)
            updates["templates"] = templates

        return agent.model_copy(update=updates) if updates else agent

    async def _fetch_reference(self, repo_url: str, branch: str, directory: str, ref: str) -> str:
        file_name = ref[len(FILE_REF_PREFIX):].strip()
        url = build_raw_url(repo_url, branch, f"{directory}/{file_name}")
        try:
            resp = await http_get(
                self._client,
                url,
                headers={"Accept": "text/plain", **_NO_CACHE},
                timeout=self._reference_timeout,
            )
        except AgentSyncError as e:
            raise ReferenceResolutionError(f"{ref}: {e.describe()}", url=url) from e
        if not resp.text:
            raise ReferenceResolutionError(f"{ref}: empty file", url=url)
        return resp.text

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
