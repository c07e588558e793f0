"""Render decorated command output as a table or JSON."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, TextIO

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from yagna_named.exceptions import DecorateError


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


@dataclass
class ResponseTable:
    """Column headers plus one value list per row."""

    headers: list[str] = field(default_factory=list)
    values: list[list[Any]] = field(default_factory=list)
    rows: list[Any] | None = field(default=None, repr=False)
    """Source rows, printed unchanged in JSON mode."""

    @classmethod
    def from_json(cls, document: Any) -> ResponseTable:
        """Build a table from a JSON array of objects.

        Headers are the union of row keys in first-seen order.  A document
        already shaped as ``{"headers": [...], "values": [[...]]}`` is taken
        as is.
        """
        if isinstance(document, dict) and "headers" in document and "values" in document:
            return cls(headers=list(document["headers"]), values=[list(row) for row in document["values"]])
        if not isinstance(document, list):
            raise DecorateError(f"Expected an array, got {type(document).__name__}")

        headers: list[str] = []
        for row in document:
            if isinstance(row, dict):
                for key in row:
                    if key not in headers:
                        headers.append(key)

        values = [[row.get(header) for header in headers] for row in document if isinstance(row, dict)]
        return cls(headers=headers, values=values, rows=document)

    def to_json(self) -> list[Any]:
        """The source rows when known, otherwise one object per table row."""
        if self.rows is not None:
            return list(self.rows)
        return [dict(zip(self.headers, row, strict=False)) for row in self.values]


class CommandOutput:
    """Printable command result."""

    def __init__(self, table: ResponseTable) -> None:
        self._table = table

    def render_table(self) -> Table:
        table = Table(box=box.SIMPLE, show_header=True, padding=(0, 1))
        for header in self._table.headers:
            table.add_column(Text(str(header)))
        for row in self._table.values:
            table.add_row(*(Text(_cell(value)) for value in row))
        return table

    def print(self, json_output: bool, *, file: TextIO | None = None) -> None:
        """Write the output as pretty JSON or as a table."""
        if json_output:
            console = Console(file=file, soft_wrap=True)
            console.print_json(data=self._table.to_json())
            return
        Console(file=file).print(self.render_table())

