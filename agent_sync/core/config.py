# Copyright (c) 2026 AgentSync Contributors. All Rights Reserved.

"""
AgentSync Configuration — Environment-driven settings.

All configuration is loaded from environment variables (or .env file).
Durations are in seconds unless the field name says otherwise.
"""

from __future__ import annotations

from pydantic_settings import BaseSettings
from pydantic import Field


class AgentSyncSettings(BaseSettings):
    """Service-wide configuration loaded from environment."""

    # --- Redis ---
    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL (durable agent set storage)",
    )
    REDIS_MAX_CONNECTIONS: int = Field(
        default=10,
        ge=1,
        description="Redis pool size (one write per sync, reads at startup)",
    )
    STORE_NAMESPACE: str = Field(
        default="default",
        description="Key namespace for the persisted agent set",
    )

    # --- Repository ---
    REPOSITORY_URL: str = Field(
        default="",
        description="Repository holding agents.json (empty = not configured)",
    )
    REPOSITORY_BRANCH: str = Field(
        default="master",
        description="Branch to read the manifest from",
    )
    MANIFEST_TIMEOUT: float = Field(
        default=10.0,
        description="Timeout for the manifest request",
    )
    REFERENCE_TIMEOUT: float = Field(
        default=5.0,
        description="Timeout for file: prompt/template lookups",
    )

    # --- Sync ---
    AUTO_SYNC: bool = Field(
        default=True,
        description="Run an initial sync and the periodic scheduler at startup",
    )
    SYNC_INTERVAL: float = Field(
        default=300.0,
        description="Periodic re-sync interval (5 min)",
    )

    # --- Resources ---
    RESOURCE_CACHE_DURATION: float = Field(
        default=3600.0,
        description="Default resource cache lifetime (1h)",
    )
    RESOURCE_TIMEOUT: float = Field(
        default=15.0,
        description="Timeout for a single resource load",
    )
    PRELOAD_BATCH_SIZE: int = Field(
        default=5,
        ge=1,
        description="Max concurrent fetches during preload",
    )
    USER_AGENT: str = Field(
        default="AgentSync-Resource-Loader",
        description="Identifying client header sent with every fetch",
    )

    # --- Platform ---
    LOG_LEVEL: str = Field(default="INFO")
    AGENTSYNC_ENV: str = Field(
        default="dev",
        description="Environment: dev | prod",
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }


settings = AgentSyncSettings()
