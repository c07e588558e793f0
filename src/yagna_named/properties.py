"""Path lookups in loosely typed market property documents.

Golem property documents are JSON trees whose keys are dotted names
(``golem.node.id.name``).  yagna usually sends them flattened, but
nested or partially nested forms (``{"golem": {"node.id.name": ...}}``)
are equally valid, so lookups try every split of the dotted path.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_MISSING = object()


def _walk(document: Any, parts: list[str]) -> Any:
    if not parts:
        return document
    if not isinstance(document, Mapping):
        return _MISSING

    # Longest key first: a flat key wins over a nested one.
    for split in range(len(parts), 0, -1):
        key = ".".join(parts[:split])
        if key in document:
            found = _walk(document[key], parts[split:])
            if found is not _MISSING:
                return found
    return _MISSING


def lookup_property(document: Any, path: str) -> Any | None:
    """Return the value at dotted *path* or ``None`` when it is absent."""
    parts = [part for part in path.split(".") if part]
    if not parts:
        return None
    found = _walk(document, parts)
    return None if found is _MISSING else found


def lookup_str(document: Any, path: str) -> str | None:
    """Return the value at *path* if it is a string, else ``None``."""
    value = lookup_property(document, path)
    return value if isinstance(value, str) else None
