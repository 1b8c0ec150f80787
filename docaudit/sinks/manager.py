"""Audit sink interface and fan-out dispatcher.

AuditSink       -- ABC every sink must implement.
SinkDispatcher  -- Hands a finished record to every registered sink;
                   a failing sink never blocks the others or the caller.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod

import structlog

from docaudit.models.audit import AuditRecord
from docaudit.observability.metrics import sink_writes_total

_log = structlog.get_logger(component="sinks.manager")


class AuditSink(ABC):
    """Abstract base class for all audit sinks.

    ``store`` should not raise: return ``False`` instead.  The dispatcher
    still guards against sinks that do.
    """

    @property
    @abstractmethod
    def sink_name(self) -> str:
        """Identifier used in metrics and logs."""

    @property
    def has_storage(self) -> bool:
        """True when the sink persists records somewhere durable."""
        return False

    @abstractmethod
    async def store(self, record: AuditRecord) -> bool:
        """Deliver *record* via this sink.

        Returns:
            True  -- record accepted.
            False -- delivery failed (already logged inside implementation).
        """


class SinkDispatcher:
    """Delivers each audit record to every registered sink concurrently.

    * Never raises; exceptions from individual sinks are caught and logged.
    * Returns the number of sinks that accepted the record.
    """

    def __init__(self, sinks: list[AuditSink]) -> None:
        self._sinks = sinks

    @property
    def sinks(self) -> list[AuditSink]:
        return list(self._sinks)

    @property
    def has_storage(self) -> bool:
        return any(sink.has_storage for sink in self._sinks)

    async def dispatch(self, record: AuditRecord) -> int:
        """Deliver *record* to every sink and wait for all of them."""
        results = await asyncio.gather(
            *(self._store_one(sink, record) for sink in self._sinks),
            return_exceptions=True,
        )
        return sum(1 for result in results if result is True)

    async def _store_one(self, sink: AuditSink, record: AuditRecord) -> bool:
        """Deliver to a single sink, recording metrics regardless of outcome."""
        try:
            success = await sink.store(record)
        except Exception as exc:  # noqa: BLE001
            _log.error(
                "audit_sink_unexpected_error",
                sink=sink.sink_name,
                record_id=record.record_id,
                error=str(exc),
            )
            success = False

        label = "true" if success else "false"
        sink_writes_total.labels(sink=sink.sink_name, success=label).inc()

        if success:
            _log.debug(
                "audit_record_stored",
                sink=sink.sink_name,
                record_id=record.record_id,
                action=record.action,
            )
        else:
            _log.warning(
                "audit_sink_failed",
                sink=sink.sink_name,
                record_id=record.record_id,
            )
        return success
