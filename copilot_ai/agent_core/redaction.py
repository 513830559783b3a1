"""Redaction and summarization helpers for audit events and the action ledger.

Summaries are what the runtime is allowed to log, emit to a UI or store next
to a pending action. They are depth-limited, size-capped and never contain the
value of a field whose key looks sensitive (``token``, ``secret``,
``password``, ``api_key``/``api-key``/``apikey``).
"""

from __future__ import annotations

import json
import re
from typing import Any, Mapping, Optional

from pydantic import BaseModel

SENSITIVE_FIELD_PATTERN = re.compile(r"(token|secret|password|api[_-]?key)", re.IGNORECASE)
REDACTED = "[redacted]"

SUMMARY_LIMIT = 240
STRING_LIMIT = 120
MAX_KEYS = 6
MAX_ITEMS = 3
MAX_DEPTH = 1


def is_sensitive_key(key: Any) -> bool:
    return bool(SENSITIVE_FIELD_PATTERN.search(str(key)))


def truncate(value: str, limit: int = SUMMARY_LIMIT) -> str:
    return f"{value[:limit]}…" if len(value) > limit else value


def _plain(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    return value


def redact(value: Any) -> Any:
    """Return a copy of ``value`` with every sensitive key replaced, at any depth."""
    value = _plain(value)
    if isinstance(value, Mapping):
        return {key: REDACTED if is_sensitive_key(key) else redact(val) for key, val in value.items()}
    if isinstance(value, (list, tuple)):
        return [redact(item) for item in value]
    return value


def summarize_value(value: Any, depth: int = 0) -> Any:
    """Shrink ``value`` to a small, redacted structure suitable for audit logs.

    Strings are trimmed and capped, lists keep their first items, mappings keep
    their first keys, and containers nested deeper than one level collapse to
    a short marker.
    """
    value = _plain(value)
    if value is None:
        return None
    if isinstance(value, str):
        return truncate(value.strip(), STRING_LIMIT)
    if isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, (list, tuple)):
        if not value:
            return []
        if depth > MAX_DEPTH:
            return f"[array length={len(value)}]"
        return [summarize_value(item, depth + 1) for item in list(value)[:MAX_ITEMS]]
    if isinstance(value, Mapping):
        if depth > MAX_DEPTH:
            return f"[object keys={len(value)}]"
        out = {}
        for key, val in list(value.items())[:MAX_KEYS]:
            out[str(key)] = REDACTED if is_sensitive_key(key) else summarize_value(val, depth + 1)
        return out
    return str(value)


def _dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, default=str, separators=(",", ":"))


def safe_summary(value: Any, limit: int = SUMMARY_LIMIT) -> Optional[str]:
    """Serialized summary of ``value`` capped at ``limit`` characters, or None for no value."""
    summarized = summarize_value(value)
    if summarized is None:
        return None
    serialized = summarized if isinstance(summarized, str) else _dumps(summarized)
    return truncate(serialized, limit)


def summarize_payload(payload: Any, limit: int = 200) -> Optional[str]:
    """Summary stored on an executed pending action.

    Keeps the first top-level keys of a mapping with sensitive keys redacted
    at every depth. Strings are only capped. Other values are not summarized.
    """
    payload = _plain(payload)
    if isinstance(payload, str):
        return truncate(payload, limit)
    if not isinstance(payload, Mapping):
        return None
    clipped = {str(key): val for key, val in list(payload.items())[:MAX_KEYS]}
    return truncate(_dumps(redact(clipped)), limit)
