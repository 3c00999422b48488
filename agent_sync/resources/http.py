# Copyright (c) 2026 AgentSync Contributors. All Rights Reserved.

"""
HTTP primitive shared by the resource loader and the repository fetcher.

Wraps ``httpx.AsyncClient.get`` with a per-request timeout and maps httpx
failures onto the AgentSync error taxonomy.
"""

from __future__ import annotations

from typing import Mapping, Optional

import httpx

from agent_sync.core.errors import HttpStatusError, NetworkError, TimeoutFetchError


async def http_get(
    client: httpx.AsyncClient,
    url: str,
    *,
    headers: Optional[Mapping[str, str]] = None,
    timeout: float = 15.0,
) -> httpx.Response:
    """GET ``url`` and return the 2xx response, or raise an AgentSyncError."""
    try:
        resp = await client.get(url, headers=dict(headers or {}), timeout=timeout)
    except httpx.TimeoutException as e:
        raise TimeoutFetchError(f"timed out after {timeout:g}s ({e.__class__.__name__})", url=url) from e
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        # InvalidURL is raised while building the request and is not an HTTPError
        raise NetworkError(str(e) or e.__class__.__name__, url=url) from e

    if not resp.is_success:
        raise HttpStatusError(
            resp.status_code,
            f"HTTP {resp.status_code} {resp.reason_phrase}".strip(),
            url=url,
        )
    return resp
