"""Audit engine: the per-event entry point.

Wires the structural diff, the classifier and the record builder, and hands
finished records to the sink dispatcher.  ``audit`` is pure and synchronous;
``record`` adds the (async, failure-tolerant) sink hand-off.
"""

from __future__ import annotations

from collections.abc import Collection
from typing import Any

from docaudit.diff.adapter import compute_changes, normalize
from docaudit.engine.builder import build_audit_record, has_actor
from docaudit.engine.classifier import classify
from docaudit.exceptions import MissingActorError
from docaudit.models.audit import AuditRecord
from docaudit.models.config import DEFAULT_IGNORED_FIELDS, DocAuditConfig
from docaudit.observability.logging import get_logger
from docaudit.observability.metrics import missing_actor_total, records_total
from docaudit.sinks import build_sink_dispatcher
from docaudit.sinks.log import LogSink
from docaudit.sinks.manager import SinkDispatcher

_logger = get_logger("engine.recorder")


class AuditEngine:
    """Computes audit records for document mutations.

    Args:
        dispatcher:     Where finished records go. Defaults to the log stream.
        ignored_fields: Root keys never reported as changes.
        id_field:       Key holding the document identity.
        actor_field:    Payload key a caller may use to attach the actor
                        to a single call; it wins over the ``actor`` argument.
    """

    def __init__(
        self,
        dispatcher: SinkDispatcher | None = None,
        ignored_fields: Collection[str] = DEFAULT_IGNORED_FIELDS,
        id_field: str = "_id",
        actor_field: str = "__user",
    ) -> None:
        self._dispatcher = dispatcher or SinkDispatcher([LogSink()])
        self._ignored_fields = tuple(ignored_fields)
        self._id_field = id_field
        self._actor_field = actor_field

    @classmethod
    def from_config(cls, config: DocAuditConfig, dispatcher: SinkDispatcher | None = None) -> AuditEngine:
        """Build an engine from *config*.

        Records go to the sinks the storage and webhook settings enable, or
        to the log stream when neither is set, unless *dispatcher* is given.
        """
        return cls(
            dispatcher=dispatcher or build_sink_dispatcher(config),
            ignored_fields=config.diff.ignored_fields,
            id_field=config.diff.id_field,
            actor_field=config.diff.actor_field,
        )

    @property
    def id_field(self) -> str:
        return self._id_field

    @property
    def actor_field(self) -> str:
        return self._actor_field

    @property
    def dispatcher(self) -> SinkDispatcher:
        return self._dispatcher

    def resolve_actor(self, current: Any, actor: Any = None) -> tuple[Any, Any]:
        """Return ``(actor, payload)`` for one call.

        An actor attached to *current* under ``actor_field`` overrides the
        explicit *actor*.  The returned payload is a shallow copy of
        *current* without the attachment, so it never shows up as a change.
        """
        if isinstance(current, dict) and self._actor_field in current:
            payload = dict(current)
            attached = payload.pop(self._actor_field)
            if has_actor(attached):
                return attached, payload
            return actor, payload
        return actor, current

    def audit(
        self,
        current: Any,
        original: Any,
        action: str | None,
        *,
        actor: Any,
        subject_type: str | None = None,
    ) -> AuditRecord | None:
        """Compute the audit record for one mutation.

        The actor is checked before anything else, so a missing actor fails
        even when nothing changed.

        Raises:
            MissingActorError: no actor passed or attached to *current*.

        Returns:
            The record, or None when the mutation touched no audited field.
        """
        actor, current = self.resolve_actor(current, actor)
        if not has_actor(actor):
            missing_actor_total.labels(action=action or "").inc()
            _logger.warning("audit_missing_actor", action=action, subject_type=subject_type)
            raise MissingActorError(action)

        before = normalize(original)
        after = normalize(current)
        operations = compute_changes(before, after, self._ignored_fields)
        if not operations:
            _logger.debug("audit_no_changes", action=action, subject_type=subject_type)
            return None

        changes = classify(operations, before, after)
        return build_audit_record(
            after,
            before,
            changes,
            actor,
            action,
            subject_type=subject_type,
            id_field=self._id_field,
        )

    async def record(
        self,
        current: Any,
        original: Any,
        action: str | None,
        *,
        actor: Any,
        subject_type: str | None = None,
    ) -> AuditRecord | None:
        """Compute the record and hand it to the sinks.

        Sink failures are absorbed by the dispatcher; only
        ``MissingActorError`` propagates.
        """
        record = self.audit(current, original, action, actor=actor, subject_type=subject_type)
        if record is None:
            return None

        records_total.labels(action=action or "").inc()
        _logger.info(
            "audit_record_built",
            record_id=record.record_id,
            action=action,
            subject_type=subject_type,
            subject_id=record.subject_id,
            changes=len(record.changes),
        )
        await self._dispatcher.dispatch(record)
        return record
