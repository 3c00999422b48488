# Copyright (c) 2026 AgentSync Contributors. All Rights Reserved.

"""
API Error Handling — Unified error structure.
"""

from __future__ import annotations

import uuid
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse


class APIError(Exception):
    """Base API error with structured response."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None,
        trace_id: Optional[str] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.trace_id = trace_id or str(uuid.uuid4())
        super().__init__(message)


class AgentNotFoundError(APIError):
    def __init__(self, key: str, trace_id: Optional[str] = None):
        super().__init__(
            code="AGENT_NOT_FOUND",
            message=f"Agent '{key}' not found",
            status_code=404,
            trace_id=trace_id,
        )


class InvalidRepositoryError(APIError):
    def __init__(self, detail: str, trace_id: Optional[str] = None):
        super().__init__(
            code="INVALID_REPOSITORY",
            message=detail,
            status_code=422,
            trace_id=trace_id,
        )


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Global exception handler for APIError."""
    trace_id = getattr(request.state, "trace_id", None) or exc.trace_id
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "code": exc.code,
            "message": exc.message,
            "trace_id": trace_id,
            "details": exc.details,
        },
    )
