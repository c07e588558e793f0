from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

from yagna_named import cli
from yagna_named import yagna as yagna_module

N1 = "0x" + "ab" * 20


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    for name in ("YAGNA_APPKEY", "YAGNA_API_URL", "YAGNA_DATADIR", "YAGNA_DATA_DIR", "YAGNA_JSON_OUTPUT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fake_yagna(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """A script standing in for the yagna binary that started us."""
    script = tmp_path / "payment-accounts.py"
    script.write_text(
        "import json, sys\n"
        "assert sys.argv[1:] == ['--json'], sys.argv\n"
        f"print(json.dumps([{{'nodeId': '{N1.upper()}', 'platform': 'erc20-polygon'}}]))\n"
    )
    monkeypatch.setattr(yagna_module, "parent_process", lambda: Path(sys.executable))
    return script


def test_no_command_prints_usage(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main([]) == 2
    assert "usage" in capsys.readouterr().err


def test_missing_appkey_is_an_error() -> None:
    assert cli.main(["collect"]) == 1


def test_decorated_json_output(fake_yagna: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (tmp_path / "yagna-named.cache").write_text(json.dumps({N1: "alice"}))

    code = cli.main(["--appkey", "k", "--datadir", str(tmp_path), "--json", str(fake_yagna)])

    assert code == 0
    assert json.loads(capsys.readouterr().out) == [
        {"nodeId": N1.upper(), "platform": "erc20-polygon", "name": "alice"},
    ]


def test_decorated_table_output(
    fake_yagna: Path,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setenv("YAGNA_APPKEY", "k")
    monkeypatch.setenv("YAGNA_DATADIR", str(tmp_path))

    assert cli.main([str(fake_yagna)]) == 0

    out = capsys.readouterr().out
    assert "nodeId" in out
    assert "platform" in out
    assert "-" in out


def test_failed_yagna_command(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(yagna_module, "parent_process", lambda: tmp_path / "missing-yagna")
    assert cli.main(["--appkey", "k", "--datadir", str(tmp_path), "payment", "status"]) == 1
