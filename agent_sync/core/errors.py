# Copyright (c) 2026 AgentSync Contributors. All Rights Reserved.

"""
Error taxonomy for fetching and validating agent definitions.

Every error carries a short ``kind`` string. Resource loads never raise
these to callers; the kind is copied into ``ResourceContent.error_kind``
instead. Manifest failures do raise, and the sync service handles them.
"""

from __future__ import annotations

from typing import Optional

TIMEOUT = "timeout"
HTTP_STATUS_ERROR = "http-status-error"
NETWORK_ERROR = "network-error"
SERIALIZATION_ERROR = "serialization-error"
FORMAT_ERROR = "format-error"
VALIDATION_ERROR = "validation-error"
REFERENCE_ERROR = "reference-resolution-error"
PERSISTENCE_ERROR = "persistence-error"


class AgentSyncError(Exception):
    """Base error with a machine-readable kind."""

    kind: str = "error"

    def __init__(self, message: str, *, url: Optional[str] = None) -> None:
        self.message = message
        self.url = url
        super().__init__(message)

    def describe(self) -> str:
        """Render as ``<kind>: <message>`` for status fields."""
        return f"{self.kind}: {self.message}"


class NetworkError(AgentSyncError):
    """DNS, connection or transport failure."""

    kind = NETWORK_ERROR


class TimeoutFetchError(NetworkError):
    kind = TIMEOUT


class HttpStatusError(AgentSyncError):
    kind = HTTP_STATUS_ERROR

    def __init__(self, status_code: int, message: str, *, url: Optional[str] = None) -> None:
        self.status_code = status_code
        super().__init__(message, url=url)


class FormatError(AgentSyncError):
    """Manifest is missing required fields or is not JSON."""

    kind = FORMAT_ERROR


class AgentValidationError(AgentSyncError):
    """A single agent/resource entry has the wrong shape. Never fatal."""

    kind = VALIDATION_ERROR


class ReferenceResolutionError(AgentSyncError):
    """A file: reference could not be fetched. Never fatal."""

    kind = REFERENCE_ERROR


class PersistenceError(AgentSyncError):
    """The durable copy of the agent set could not be read or written."""

    kind = PERSISTENCE_ERROR
