"""Log-stream sink, used when no persistent storage is configured."""

from __future__ import annotations

import structlog

from docaudit.models.audit import AuditRecord
from docaudit.sinks.manager import AuditSink

_log = structlog.get_logger(component="sinks.log")


class LogSink(AuditSink):
    """Surfaces each record on the operator log stream as an ``audit_record`` event."""

    @property
    def sink_name(self) -> str:
        return "log"

    async def store(self, record: AuditRecord) -> bool:
        _log.info("audit_record", **record.to_dict())
        return True
