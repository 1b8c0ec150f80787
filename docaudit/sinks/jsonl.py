"""JSON Lines file sink.

Appends one JSON object per record.  The file doubles as the persistent
audit store: ``read_records`` loads it back for the CLI and tests.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import structlog

from docaudit.models.audit import AuditRecord
from docaudit.sinks.manager import AuditSink

_log = structlog.get_logger(component="sinks.jsonl")


class JsonLinesSink(AuditSink):
    """Appends records to a ``.jsonl`` file.

    Args:
        path: Target file. Parent directories are created on first write.
    """

    def __init__(self, path: str | Path) -> None:
        if not str(path):
            raise ValueError("JsonLinesSink path must not be empty")
        self._path = Path(path)
        self._lock = asyncio.Lock()

    @property
    def sink_name(self) -> str:
        return "jsonl"

    @property
    def has_storage(self) -> bool:
        return True

    @property
    def path(self) -> Path:
        return self._path

    async def store(self, record: AuditRecord) -> bool:
        line = json.dumps(record.to_dict(), default=str) + "\n"
        try:
            async with self._lock:
                await asyncio.to_thread(self._append, line)
        except OSError as exc:
            _log.warning("jsonl_write_failed", path=str(self._path), error=str(exc))
            return False
        return True

    def _append(self, line: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as f:
            f.write(line)


def read_records(path: str | Path, last_n: int | None = None) -> list[AuditRecord]:
    """Read records back from a JSON Lines audit file.

    Malformed lines are skipped.  Returns oldest first; *last_n* keeps
    only the most recent entries.
    """
    log_path = Path(path)
    if not log_path.exists():
        return []

    records = []
    with log_path.open("r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                records.append(AuditRecord.from_dict(json.loads(line)))
            except (json.JSONDecodeError, KeyError, ValueError) as exc:
                _log.warning("jsonl_malformed_line", path=str(log_path), line=lineno, error=str(exc))

    if last_n is not None:
        return records[-last_n:] if last_n > 0 else []
    return records
