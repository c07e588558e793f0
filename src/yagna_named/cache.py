"""Persistent cache of node names.

The cache file is a JSON object mapping canonical node ids to display
names.  The module-level functions are the pure building blocks;
:class:`NameCache` owns the in-memory state for the lifetime of the
process and decides when to write it back.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from yagna_named.exceptions import CacheLoadError, CachePersistError
from yagna_named.models.node import NodeId, parse_node_id

_logger = logging.getLogger(__name__)

_NAMES_ADAPTER: TypeAdapter[dict[NodeId, str]] = TypeAdapter(dict[NodeId, str])


def load_names(path: Path) -> dict[str, str]:
    """Read the cache file at *path*.

    A missing file yields an empty mapping.  Anything else that prevents
    reading a valid ``{node id: name}`` object raises :class:`CacheLoadError`.
    """
    try:
        content = path.read_bytes()
    except FileNotFoundError:
        _logger.debug("No cache file at %s, starting empty", path)
        return {}
    except OSError as exc:
        raise CacheLoadError(f"Failed to load cache from: {path}. {exc}", path=path) from exc

    try:
        return dict(_NAMES_ADAPTER.validate_json(content))
    except ValidationError as exc:
        raise CacheLoadError(f"Failed to load cache from: {path}. {exc}", path=path) from exc


def merge_names(state: Mapping[str, str], updates: Mapping[str, str]) -> tuple[dict[str, str], bool]:
    """Merge *updates* into a copy of *state*.

    Returns the merged mapping and whether any key was added or changed.
    *state* itself is left untouched.
    """
    merged = dict(state)
    changed = False
    for node_id, name in updates.items():
        if merged.get(node_id) != name:
            merged[node_id] = name
            changed = True
    return merged, changed


def persist_names(state: Mapping[str, str], path: Path) -> None:
    """Write *state* to *path* atomically.

    The content goes to a temporary file in the same directory which then
    replaces *path*, so readers see either the old or the new file.
    Parent directories are created as needed.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        data = json.dumps(dict(state), ensure_ascii=False, sort_keys=True)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            tmp_path.replace(path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise
    except OSError as exc:
        raise CachePersistError(f"Failed to save cache to: {path}. {exc}", path=path) from exc


def canonical_names(updates: Mapping[str, str]) -> dict[str, str]:
    """Copy of *updates* keyed by canonical node ids.

    Entries with an invalid node id or a non-string name are logged and
    dropped, so they never reach the cache file.
    """
    canonical: dict[str, str] = {}
    for node_id, name in updates.items():
        try:
            key = parse_node_id(node_id)
        except ValueError as exc:
            _logger.warning("Dropping cache entry with invalid node id: %s", exc)
            continue
        if not isinstance(name, str):
            _logger.warning("Dropping cache entry for %s: name is %s, not a string", key, type(name).__name__)
            continue
        canonical[key] = name
    return canonical


def lookup_name(state: Mapping[str, str], node_id: str) -> str | None:
    """Return the cached name for *node_id*, or ``None``."""
    return state.get(node_id)


class NameCache:
    """Node names known to this process, backed by a cache file.

    Use :meth:`open` to construct; it loads the existing file (if any).
    """

    def __init__(self, path: Path, names: Mapping[str, str] | None = None) -> None:
        self._path = Path(path)
        self._names: dict[str, str] = canonical_names(names or {})
        self._dirty = False

    @classmethod
    async def open(cls, path: Path) -> NameCache:
        """Load the cache stored at *path*.

        Raises
        ------
        CacheLoadError
            If the file exists but cannot be read or parsed.
        """
        loop = asyncio.get_running_loop()
        names = await loop.run_in_executor(None, load_names, Path(path))
        _logger.debug("Loaded %d cached node names from %s", len(names), path)
        return cls(path, names)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def names(self) -> dict[str, str]:
        """Copy of the current ``node id -> name`` mapping."""
        return dict(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, node_id: object) -> bool:
        return isinstance(node_id, str) and self.node_name(node_id) is not None

    def node_name(self, node_id: str) -> str | None:
        """Cached name of *node_id*; accepts any letter case and optional ``0x``."""
        try:
            canonical = parse_node_id(node_id)
        except ValueError:
            return None
        return lookup_name(self._names, canonical)

    async def update(self, updates: Mapping[str, str]) -> bool:
        """Merge freshly collected names and persist them if anything changed.

        Node ids are canonicalized first; invalid ids are dropped.

        A failed write is logged and otherwise ignored: the merged state
        stays in memory and the write is attempted again on the next update.

        Returns
        -------
        bool
            Whether the merge changed the in-memory state.
        """
        merged, changed = merge_names(self._names, canonical_names(updates))
        if changed:
            added = len(merged) - len(self._names)
            self._names = merged
            _logger.info("Node names updated: %d new, %d known", added, len(merged))
        elif not self._dirty:
            _logger.debug("No new node names (%d known)", len(self._names))
            return False

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, persist_names, dict(self._names), self._path)
        except CachePersistError as exc:
            self._dirty = True
            _logger.warning("Failed to save updated nodes information to cache. %s", exc)
        else:
            self._dirty = False
        return changed
