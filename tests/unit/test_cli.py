"""Tests for the docaudit click CLI."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
import structlog
from click.testing import CliRunner

from docaudit.cli import main as cli_main
from docaudit.cli.main import cli
from docaudit.sinks import read_records


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep log lines out of the captured stdout the tests parse."""

    def _setup(level: str, json_output: bool = True) -> None:
        structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(logging.CRITICAL))

    monkeypatch.setattr(cli_main, "setup_logging", _setup)
    for key in ("LOG_LEVEL", "IGNORED_FIELDS", "ID_FIELD", "ACTOR_FIELD", "STORAGE_PATH", "WEBHOOK_URL_REF"):
        monkeypatch.delenv(f"DOCAUDIT_{key}", raising=False)
    yield
    structlog.reset_defaults()


def _write(path: Path, data: Any) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture
def documents(tmp_path: Path) -> tuple[Path, Path]:
    before = _write(tmp_path / "before.json", {"_id": "1", "__v": 0, "name": "A", "tags": ["x"]})
    after = _write(tmp_path / "after.json", {"_id": "1", "__v": 1, "name": "B", "tags": ["x", "y"]})
    return before, after


class TestDiffCommand:
    def test_prints_record(self, documents: tuple[Path, Path]) -> None:
        before, after = documents
        result = CliRunner().invoke(
            cli,
            ["diff", str(before), str(after), "--actor", "alice", "--subject-type", "User"],
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["actor"] == "alice"
        assert data["action"] == "save"
        assert data["subjectType"] == "User"
        assert data["changes"] == {
            "name": {"from": "A", "to": "B", "type": "Edit"},
            "tags": {"from": ["x"], "to": ["x", "y"], "type": "Edit"},
        }

    def test_no_changes_prints_empty_object(self, tmp_path: Path) -> None:
        before = _write(tmp_path / "a.json", {"_id": "1", "updatedAt": "t0", "name": "A"})
        after = _write(tmp_path / "b.json", {"_id": "1", "updatedAt": "t1", "name": "A"})
        result = CliRunner().invoke(cli, ["diff", str(before), str(after), "--actor", "alice"])
        assert result.exit_code == 0
        assert json.loads(result.stdout) == {}

    def test_missing_actor_exits_1(self, documents: tuple[Path, Path]) -> None:
        before, after = documents
        result = CliRunner().invoke(cli, ["diff", str(before), str(after)])
        assert result.exit_code == 1
        assert "Actor missing" in result.output

    def test_ignore_option_replaces_filter(self, documents: tuple[Path, Path]) -> None:
        before, after = documents
        result = CliRunner().invoke(
            cli,
            ["diff", str(before), str(after), "--actor", "alice", "--ignore", "name", "--ignore", "_id"],
        )
        changes = json.loads(result.stdout)["changes"]
        assert "name" not in changes
        assert changes["__v"] == {"from": 0, "to": 1, "type": "Edit"}

    def test_invalid_json_reported(self, tmp_path: Path) -> None:
        bad = tmp_path / "bad.json"
        bad.write_text("{nope", encoding="utf-8")
        result = CliRunner().invoke(cli, ["diff", str(bad), str(bad), "--actor", "alice"])
        assert result.exit_code != 0
        assert "invalid JSON" in result.output

    def test_store_appends_and_tail_reads(self, documents: tuple[Path, Path], tmp_path: Path) -> None:
        before, after = documents
        store = tmp_path / "audit.jsonl"
        runner = CliRunner()
        result = runner.invoke(cli, ["diff", str(before), str(after), "--actor", "alice", "--store", str(store)])
        assert result.exit_code == 0, result.output
        assert len(read_records(store)) == 1

        tail = runner.invoke(cli, ["tail", str(store), "-n", "5"])
        assert tail.exit_code == 0
        lines = tail.stdout.strip().splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0])["actor"] == "alice"

    def test_storage_path_from_environment(
        self, documents: tuple[Path, Path], tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        before, after = documents
        store = tmp_path / "env-audit.jsonl"
        monkeypatch.setenv("DOCAUDIT_STORAGE_PATH", str(store))
        result = CliRunner().invoke(cli, ["diff", str(before), str(after), "--actor", "alice"])
        assert result.exit_code == 0, result.output
        records = read_records(store)
        assert len(records) == 1
        assert records[0].record_id == json.loads(result.stdout)["recordId"]

    def test_no_storage_configured_writes_no_file(self, documents: tuple[Path, Path], tmp_path: Path) -> None:
        before, after = documents
        result = CliRunner().invoke(cli, ["diff", str(before), str(after), "--actor", "alice"])
        assert result.exit_code == 0, result.output
        assert not list(tmp_path.glob("*.jsonl"))
