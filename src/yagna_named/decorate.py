"""Attach cached node names to yagna command output rows."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from yagna_named._constants import UNKNOWN_NAME
from yagna_named.exceptions import DecorateError
from yagna_named.models.node import parse_node_id

_logger = logging.getLogger(__name__)

NODE_ID_FIELD = "nodeId"
NAME_FIELD = "name"


class NameLookup(Protocol):
    def node_name(self, node_id: str) -> str | None:
        ...


def _resolve_name(row: dict[str, Any], names: NameLookup) -> str:
    if NODE_ID_FIELD not in row:
        _logger.warning("Row doesn't contain `%s` field.", NODE_ID_FIELD)
        return UNKNOWN_NAME

    try:
        node_id = parse_node_id(row[NODE_ID_FIELD])
    except ValueError:
        _logger.warning("Failure parsing `%s` field: %r", NODE_ID_FIELD, row[NODE_ID_FIELD])
        return UNKNOWN_NAME

    return names.node_name(node_id) or UNKNOWN_NAME


def decorate_row(row: Any, names: NameLookup) -> bool:
    """Set ``name`` on a single row in place.

    Returns ``False`` (and leaves the row alone) when it is not an object.
    """
    if not isinstance(row, dict):
        _logger.warning("Expected object row, got %s. Skipping", type(row).__name__)
        return False
    row[NAME_FIELD] = _resolve_name(row, names)
    return True


def decorate_table(document: Any, names: NameLookup) -> list[Any]:
    """Add a ``name`` column to every row of a JSON array of objects.

    Bad rows are logged and never fail the batch.

    Raises
    ------
    DecorateError
        If *document* is not a JSON array.
    """
    if not isinstance(document, list):
        raise DecorateError(f"Expected an array, got {type(document).__name__}")
    for row in document:
        decorate_row(row, names)
    return document
