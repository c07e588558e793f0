"""Node identity models."""

from __future__ import annotations

import re
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict

_HEX_RE = re.compile(r"^[0-9a-f]{40}$")


def parse_node_id(value: Any) -> str:
    """Normalize a Golem node id to its canonical ``0x``-prefixed lowercase form.

    Accepts the id with or without the ``0x`` prefix, in any letter case.
    Raises :class:`ValueError` for anything that is not 20 hex-encoded bytes.
    """
    if not isinstance(value, str):
        raise ValueError(f"node id must be a string, got {type(value).__name__}")
    text = value.strip().lower()
    if text.startswith("0x"):
        text = text[2:]
    if not _HEX_RE.match(text):
        raise ValueError(f"invalid node id: {value!r}")
    return f"0x{text}"


NodeId = Annotated[str, BeforeValidator(parse_node_id)]
"""Annotated type that validates and canonicalizes Golem node ids."""


class NodeInfo(BaseModel):
    """A node id paired with the display name it advertises."""

    model_config = ConfigDict(frozen=True)

    id: NodeId
    name: str
