# Copyright (c) 2026 AgentSync Contributors. All Rights Reserved.

"""Content normalization — turn a fetched body into prompt-ready text."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Optional, Tuple

from agent_sync.core.errors import SERIALIZATION_ERROR

logger = logging.getLogger("agentsync.resources.normalize")

# (text, warning kind or None)
Normalized = Tuple[str, Optional[str]]


def _as_json_text(data: Any) -> Normalized:
    try:
        return json.dumps(data, indent=2, ensure_ascii=False), None
    except (TypeError, ValueError) as e:
        logger.warning("Could not serialize structured body, using str(): %s", e)
        return str(data), SERIALIZATION_ERROR


def _as_plain_text(data: Any) -> Normalized:
    return str(data), None


_STRUCTURED: Dict[str, Callable[[Any], Normalized]] = {
    "api": _as_json_text,
    "url": _as_json_text,
    "file": _as_plain_text,
}


def normalize_content(data: Any, resource_type: str) -> Normalized:
    """
    Normalize a response body to text.

    Strings pass through, bytes are decoded as UTF-8, structured bodies
    (dict/list) are pretty-printed JSON for ``api``/``url`` resources and
    ``str()`` for anything else. Never raises.
    """
    if isinstance(data, str):
        return data, None
    if isinstance(data, (bytes, bytearray)):
        return bytes(data).decode("utf-8", errors="replace"), None
    if isinstance(data, (dict, list)):
        strategy = _STRUCTURED.get(resource_type, _as_plain_text)
        return strategy(data)
    if data is None:
        return "", None
    return _as_plain_text(data)
