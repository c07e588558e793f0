from __future__ import annotations

import logging
from pathlib import Path

import pytest

from yagna_named.cache import NameCache
from yagna_named.decorate import decorate_row, decorate_table
from yagna_named.exceptions import DecorateError

N2 = "0x" + "2" * 40
N9 = "0x" + "9" * 40


@pytest.fixture
def cache(tmp_path: Path) -> NameCache:
    return NameCache(tmp_path / "yagna-named.cache", {N2: "Bob"})


def test_known_unknown_and_missing_node_ids(cache: NameCache, caplog: pytest.LogCaptureFixture) -> None:
    rows = [{"nodeId": N2}, {"nodeId": N9}, {"amount": "1.0"}]

    with caplog.at_level(logging.WARNING, logger="yagna_named.decorate"):
        result = decorate_table(rows, cache)

    assert result == [
        {"nodeId": N2, "name": "Bob"},
        {"nodeId": N9, "name": "-"},
        {"amount": "1.0", "name": "-"},
    ]
    assert "doesn't contain `nodeId`" in caplog.text


@pytest.mark.parametrize("node_id", [None, 42, "not-a-node-id"])
def test_unparseable_node_id_gets_placeholder(
    cache: NameCache,
    caplog: pytest.LogCaptureFixture,
    node_id: object,
) -> None:
    row: dict[str, object] = {"nodeId": node_id}
    with caplog.at_level(logging.WARNING, logger="yagna_named.decorate"):
        assert decorate_row(row, cache) is True
    assert row["name"] == "-"
    assert "Failure parsing `nodeId`" in caplog.text


def test_node_id_case_is_ignored(cache: NameCache) -> None:
    row = {"nodeId": N2.upper().replace("0X", "0x")}
    decorate_row(row, cache)
    assert row["name"] == "Bob"


def test_non_object_rows_do_not_fail_batch(cache: NameCache) -> None:
    rows = ["text", {"nodeId": N2}, 7]
    assert decorate_table(rows, cache) == ["text", {"nodeId": N2, "name": "Bob"}, 7]


def test_non_array_document_is_rejected(cache: NameCache) -> None:
    with pytest.raises(DecorateError, match="Expected an array"):
        decorate_table({"nodeId": N2}, cache)
