"""Helpers for safe debug logging.

Requests to yagna carry the app key as a bearer token, and event polls can
return hundreds of proposals with large property documents.  Everything
logged by the transport goes through this module first.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

_SENSITIVE_KEYS: frozenset[str] = frozenset({"appkey", "app_key", "authorization", "cookie", "token"})

_MAX_DEPTH = 20


def _redact_header(name: str, value: str) -> str:
    if name.lower() != "authorization":
        return value
    scheme, _, _secret = value.partition(" ")
    return f"{scheme} <redacted>" if _secret else "<redacted>"


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Copy of HTTP *headers* with the bearer token hidden."""
    return {name: _redact_header(name, value) for name, value in headers.items()}


def redact_for_log(value: Any, *, max_string: int = 256, max_items: int = 50, _depth: int = 0) -> Any:
    """Return a copy of a JSON-like *value* that is safe to log.

    Sensitive keys are replaced by ``<redacted>``, long strings are cut
    after *max_string* characters and lists after *max_items* entries.
    """
    if _depth > _MAX_DEPTH:
        return "<max-depth>"

    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        return value if len(value) <= max_string else f"{value[:max_string]}…<truncated>"
    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"

    child = {"max_string": max_string, "max_items": max_items, "_depth": _depth + 1}
    if isinstance(value, Mapping):
        return {
            str(key): "<redacted>" if str(key).lower() in _SENSITIVE_KEYS else redact_for_log(item, **child)
            for key, item in value.items()
        }
    if isinstance(value, Sequence):
        items: list[Any] = [redact_for_log(item, **child) for item in list(value)[:max_items]]
        if len(value) > max_items:
            items.append(f"<{len(value) - max_items} more>")
        return items
    return repr(value)
