# Copyright (c) 2026 AgentSync Contributors. All Rights Reserved.

"""
API Middleware — Trace ID propagation and request logging.

Health checks and metrics scrapes are logged at DEBUG so they do not
drown out sync and resource requests; 5xx responses are logged at WARNING.
"""

from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("agentsync.api")

TRACE_HEADER = "X-Trace-Id"
_QUIET_PATHS = frozenset({"/health", "/api/metrics"})


def _log_level(path: str, status_code: int) -> int:
    if status_code >= 500:
        return logging.WARNING
    if path in _QUIET_PATHS:
        return logging.DEBUG
    return logging.INFO


class TraceMiddleware(BaseHTTPMiddleware):
    """Reuses the caller's X-Trace-Id (or mints one) and echoes it back."""

    async def dispatch(self, request: Request, call_next):
        trace_id = request.headers.get(TRACE_HEADER) or uuid.uuid4().hex
        request.state.trace_id = trace_id

        start = time.monotonic()
        response: Response = await call_next(request)
        elapsed = (time.monotonic() - start) * 1000

        response.headers[TRACE_HEADER] = trace_id
        response.headers["X-Response-Time-Ms"] = f"{elapsed:.0f}"
        logger.log(
            _log_level(request.url.path, response.status_code),
            "[api] %s %s → %d (%.0fms)",
            request.method, request.url.path, response.status_code, elapsed,
            extra={"trace_id": trace_id},
        )
        return response
