"""Tests for the audit sinks and the fan-out dispatcher."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

import httpx
import pytest

from docaudit.models.audit import AuditRecord
from docaudit.models.changes import ChangeDescriptor, ChangeType
from docaudit.models.config import DocAuditConfig, StorageConfig, WebhookConfig
from docaudit.sinks import (
    AuditSink,
    JsonLinesSink,
    LogSink,
    SinkDispatcher,
    WebhookSink,
    build_sink_dispatcher,
    read_records,
)

_TS = datetime(2026, 2, 18, 12, 0, 0, tzinfo=UTC)


def _make_record(record_id: str = "rec-1", name: str = "B") -> AuditRecord:
    return AuditRecord(
        subject_id="1",
        subject_type="User",
        action="save",
        changes={"name": ChangeDescriptor(type=ChangeType.EDIT, from_value="A", to_value=name)},
        original_document={"_id": "1", "name": "A"},
        actor="alice",
        record_id=record_id,
        created_at=_TS,
    )


class _StubSink(AuditSink):
    def __init__(self, name: str, result: bool | Exception) -> None:
        self._name = name
        self._result = result
        self.received: list[AuditRecord] = []

    @property
    def sink_name(self) -> str:
        return self._name

    async def store(self, record: AuditRecord) -> bool:
        self.received.append(record)
        if isinstance(self._result, Exception):
            raise self._result
        return self._result


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------


class TestSinkDispatcher:
    async def test_every_sink_receives_record(self) -> None:
        first, second = _StubSink("a", True), _StubSink("b", True)
        accepted = await SinkDispatcher([first, second]).dispatch(_make_record())
        assert accepted == 2
        assert len(first.received) == len(second.received) == 1

    async def test_raising_sink_does_not_block_others(self) -> None:
        broken, healthy = _StubSink("broken", RuntimeError("boom")), _StubSink("ok", True)
        accepted = await SinkDispatcher([broken, healthy]).dispatch(_make_record())
        assert accepted == 1
        assert healthy.received[0].record_id == "rec-1"

    async def test_false_return_counts_as_failure(self) -> None:
        assert await SinkDispatcher([_StubSink("nope", False)]).dispatch(_make_record()) == 0

    def test_has_storage_reflects_sinks(self, tmp_path: Path) -> None:
        assert not SinkDispatcher([LogSink()]).has_storage
        assert SinkDispatcher([LogSink(), JsonLinesSink(tmp_path / "a.jsonl")]).has_storage


# ---------------------------------------------------------------------------
# JSON Lines
# ---------------------------------------------------------------------------


class TestJsonLinesSink:
    async def test_appends_and_reads_back(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "audit.jsonl"
        sink = JsonLinesSink(path)
        assert await sink.store(_make_record("rec-1"))
        assert await sink.store(_make_record("rec-2", name="C"))

        lines = path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 2
        assert json.loads(lines[0])["changes"] == {"name": {"from": "A", "to": "B", "type": "Edit"}}

        records = read_records(path)
        assert [r.record_id for r in records] == ["rec-1", "rec-2"]
        assert records[0].to_dict() == _make_record("rec-1").to_dict()

    async def test_last_n(self, tmp_path: Path) -> None:
        sink = JsonLinesSink(tmp_path / "audit.jsonl")
        for i in range(5):
            await sink.store(_make_record(f"rec-{i}"))
        assert [r.record_id for r in read_records(sink.path, last_n=2)] == ["rec-3", "rec-4"]
        assert read_records(sink.path, last_n=0) == []

    def test_malformed_lines_skipped(self, tmp_path: Path) -> None:
        path = tmp_path / "audit.jsonl"
        good = json.dumps(_make_record().to_dict())
        path.write_text(f"not json\n\n{good}\n", encoding="utf-8")
        assert [r.record_id for r in read_records(path)] == ["rec-1"]

    def test_missing_file_reads_empty(self, tmp_path: Path) -> None:
        assert read_records(tmp_path / "absent.jsonl") == []

    async def test_unwritable_path_returns_false(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")
        sink = JsonLinesSink(blocker / "audit.jsonl")
        assert await sink.store(_make_record()) is False


# ---------------------------------------------------------------------------
# Webhook
# ---------------------------------------------------------------------------


class TestWebhookSink:
    def test_empty_url_rejected(self) -> None:
        with pytest.raises(ValueError):
            WebhookSink(url="")

    async def test_posts_wire_form(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201)

        sink = WebhookSink(
            url="https://audit.example.com/ingest",
            headers={"Authorization": "Bearer t"},
            transport=httpx.MockTransport(handler),
        )
        assert await sink.store(_make_record())
        assert seen[0].headers["Authorization"] == "Bearer t"
        assert seen[0].headers["Content-Type"] == "application/json"
        assert json.loads(seen[0].content)["recordId"] == "rec-1"

    async def test_non_2xx_returns_false(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(503, text="busy"))
        sink = WebhookSink(url="https://audit.example.com/ingest", transport=transport)
        assert await sink.store(_make_record()) is False

    async def test_timeout_returns_false(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        sink = WebhookSink(url="https://audit.example.com/ingest", transport=httpx.MockTransport(handler))
        assert await sink.store(_make_record()) is False

    async def test_connection_error_returns_false(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        sink = WebhookSink(url="https://audit.example.com/ingest", transport=httpx.MockTransport(handler))
        assert await sink.store(_make_record()) is False


# ---------------------------------------------------------------------------
# Log sink and factory
# ---------------------------------------------------------------------------


async def test_log_sink_accepts_record() -> None:
    assert await LogSink().store(_make_record())


class TestBuildSinkDispatcher:
    def test_falls_back_to_log_sink(self) -> None:
        dispatcher = build_sink_dispatcher(DocAuditConfig())
        assert [s.sink_name for s in dispatcher.sinks] == ["log"]
        assert not dispatcher.has_storage

    def test_storage_path_adds_jsonl(self, tmp_path: Path) -> None:
        config = DocAuditConfig(storage=StorageConfig(path=str(tmp_path / "audit.jsonl")))
        dispatcher = build_sink_dispatcher(config)
        assert [s.sink_name for s in dispatcher.sinks] == ["jsonl"]
        assert dispatcher.has_storage

    def test_webhook_from_secret_ref(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AUDIT_HOOK_URL", "https://audit.example.com/ingest")
        config = DocAuditConfig(webhook=WebhookConfig(url_secret_ref="AUDIT_HOOK_URL"))
        assert [s.sink_name for s in build_sink_dispatcher(config).sinks] == ["webhook"]

    def test_empty_secret_ref_value_skipped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("AUDIT_HOOK_URL", raising=False)
        config = DocAuditConfig(webhook=WebhookConfig(url_secret_ref="AUDIT_HOOK_URL"))
        assert [s.sink_name for s in build_sink_dispatcher(config).sinks] == ["log"]
