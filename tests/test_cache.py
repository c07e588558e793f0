from __future__ import annotations

import json
from pathlib import Path

import pytest

from yagna_named import cache as cache_module
from yagna_named.cache import NameCache, load_names, lookup_name, merge_names, persist_names
from yagna_named.exceptions import CacheLoadError, CachePersistError

N1 = "0x" + "1" * 40
N2 = "0x" + "2" * 40
N3 = "0x" + "3" * 40


# ------------------------------------------------------------------
# Pure operations
# ------------------------------------------------------------------


class TestMergeNames:
    def test_new_key_is_a_change(self) -> None:
        merged, changed = merge_names({N1: "Alice"}, {N1: "Alice", N2: "Bob"})
        assert merged == {N1: "Alice", N2: "Bob"}
        assert changed is True

    def test_same_values_are_not_a_change(self) -> None:
        merged, changed = merge_names({N1: "Alice", N2: "Bob"}, {N1: "Alice", N2: "Bob"})
        assert merged == {N1: "Alice", N2: "Bob"}
        assert changed is False

    def test_renamed_node_is_a_change(self) -> None:
        merged, changed = merge_names({N1: "Alice"}, {N1: "Alicia"})
        assert merged == {N1: "Alicia"}
        assert changed is True

    def test_state_is_not_mutated(self) -> None:
        state = {N1: "Alice"}
        merge_names(state, {N2: "Bob"})
        assert state == {N1: "Alice"}

    @pytest.mark.parametrize(
        ("state", "updates"),
        [
            ({}, {}),
            ({}, {N1: "Alice"}),
            ({N1: "Alice"}, {N1: "Alicia", N2: "Bob"}),
            ({N1: "Alice", N3: "Carol"}, {N2: "Bob"}),
        ],
    )
    def test_merge_is_idempotent(self, state: dict[str, str], updates: dict[str, str]) -> None:
        once, _ = merge_names(state, updates)
        twice, changed_again = merge_names(once, updates)
        assert twice == once
        assert changed_again is False

    def test_updated_keys_take_update_values(self) -> None:
        state = {N1: "Alice", N2: "Bob"}
        updates = {N2: "Bobby", N3: "Carol"}
        merged, _ = merge_names(state, updates)
        for key, value in updates.items():
            assert lookup_name(merged, key) == value
        assert lookup_name(merged, N1) == "Alice"


def test_lookup_name_missing_is_none() -> None:
    assert lookup_name({N1: "Alice"}, N2) is None


def test_load_missing_file_returns_empty(tmp_path: Path) -> None:
    assert load_names(tmp_path / "nope" / "yagna-named.cache") == {}


def test_persist_then_load_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "data" / "nested" / "yagna-named.cache"
    state = {N1: "Alice", N2: "Bob ünïcode"}

    persist_names(state, path)

    assert load_names(path) == state
    assert json.loads(path.read_text(encoding="utf-8")) == state
    # No temporary files left behind.
    assert [p.name for p in path.parent.iterdir()] == ["yagna-named.cache"]


def test_persist_replaces_previous_content(tmp_path: Path) -> None:
    path = tmp_path / "yagna-named.cache"
    persist_names({N1: "Alice", N2: "Bob"}, path)
    persist_names({N3: "Carol"}, path)
    assert load_names(path) == {N3: "Carol"}


def test_load_canonicalizes_node_ids(tmp_path: Path) -> None:
    path = tmp_path / "yagna-named.cache"
    path.write_text(json.dumps({"0x" + "AB" * 20: "Alice"}), encoding="utf-8")
    assert load_names(path) == {"0x" + "ab" * 20: "Alice"}


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        "",
        '["0x1111111111111111111111111111111111111111"]',
        '{"not-a-node-id": "Alice"}',
        '{"0x1111111111111111111111111111111111111111": 42}',
    ],
)
def test_load_malformed_file_raises(tmp_path: Path, content: str) -> None:
    path = tmp_path / "yagna-named.cache"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(CacheLoadError) as excinfo:
        load_names(path)

    assert excinfo.value.path == path
    assert excinfo.value.__cause__ is not None
    assert str(path) in str(excinfo.value)


def test_persist_failure_raises_persist_error(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory", encoding="utf-8")

    with pytest.raises(CachePersistError) as excinfo:
        persist_names({N1: "Alice"}, blocker / "yagna-named.cache")

    assert excinfo.value.path == blocker / "yagna-named.cache"


# ------------------------------------------------------------------
# NameCache
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_open_missing_file_starts_empty(tmp_path: Path) -> None:
    cache = await NameCache.open(tmp_path / "yagna-named.cache")
    assert len(cache) == 0
    assert cache.node_name(N1) is None


@pytest.mark.asyncio
async def test_open_malformed_file_is_fatal(tmp_path: Path) -> None:
    path = tmp_path / "yagna-named.cache"
    path.write_text("garbage", encoding="utf-8")
    with pytest.raises(CacheLoadError):
        await NameCache.open(path)


@pytest.mark.asyncio
async def test_update_scenario_writes_only_on_change(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "yagna-named.cache"
    path.write_text(json.dumps({N1: "Alice"}), encoding="utf-8")

    writes: list[dict[str, str]] = []
    real_persist = cache_module.persist_names

    def recording_persist(state: dict[str, str], target: Path) -> None:
        writes.append(dict(state))
        real_persist(state, target)

    monkeypatch.setattr(cache_module, "persist_names", recording_persist)

    cache = await NameCache.open(path)

    changed = await cache.update({N1: "Alice", N2: "Bob"})
    assert changed is True
    assert cache.names == {N1: "Alice", N2: "Bob"}
    assert load_names(path) == {N1: "Alice", N2: "Bob"}
    assert len(writes) == 1

    changed = await cache.update({N1: "Alice", N2: "Bob"})
    assert changed is False
    assert len(writes) == 1


@pytest.mark.asyncio
async def test_update_keeps_state_when_persist_fails(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    path = tmp_path / "yagna-named.cache"
    attempts: list[dict[str, str]] = []

    def flaky_persist(state: dict[str, str], target: Path) -> None:
        attempts.append(dict(state))
        if len(attempts) == 1:
            raise CachePersistError("disk full", path=target)
        persist_names(state, target)

    monkeypatch.setattr(cache_module, "persist_names", flaky_persist)
    cache = await NameCache.open(path)

    with caplog.at_level("WARNING", logger="yagna_named.cache"):
        changed = await cache.update({N1: "Alice"})

    assert changed is True
    assert cache.node_name(N1) == "Alice"
    assert not path.exists()
    assert "Failed to save" in caplog.text

    # Nothing new, but the pending write is retried.
    changed = await cache.update({N1: "Alice"})
    assert changed is False
    assert len(attempts) == 2
    assert load_names(path) == {N1: "Alice"}


@pytest.mark.asyncio
async def test_node_name_accepts_non_canonical_ids(tmp_path: Path) -> None:
    cache = NameCache(tmp_path / "yagna-named.cache", {N1: "Alice"})
    assert cache.node_name(N1.upper().replace("0X", "0x")) == "Alice"
    assert cache.node_name(N1[2:]) == "Alice"
    assert cache.node_name("garbage") is None
    assert N1 in cache
    assert N2 not in cache


@pytest.mark.asyncio
async def test_update_canonicalizes_node_ids(tmp_path: Path) -> None:
    path = tmp_path / "yagna-named.cache"
    mixed_case = "0x" + "AB" * 20
    cache = await NameCache.open(path)

    assert await cache.update({mixed_case: "Alice"}) is True

    assert cache.node_name(mixed_case) == "Alice"
    assert cache.names == {"0x" + "ab" * 20: "Alice"}
    assert await cache.update({"0x" + "ab" * 20: "Alice"}) is False


@pytest.mark.asyncio
async def test_update_drops_invalid_entries(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / "yagna-named.cache"
    cache = await NameCache.open(path)

    with caplog.at_level("WARNING", logger="yagna_named.cache"):
        changed = await cache.update({"N1": "Bob", N2: 42, N3: "Carol"})  # type: ignore[dict-item]

    assert changed is True
    assert cache.names == {N3: "Carol"}
    assert "invalid node id" in caplog.text

    reopened = await NameCache.open(path)
    assert reopened.names == {N3: "Carol"}


@pytest.mark.asyncio
async def test_update_with_only_invalid_entries_writes_nothing(tmp_path: Path) -> None:
    path = tmp_path / "yagna-named.cache"
    cache = await NameCache.open(path)

    assert await cache.update({"not-a-node": "Bob"}) is False
    assert not path.exists()
