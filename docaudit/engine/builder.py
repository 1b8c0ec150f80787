"""Audit record builder."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from docaudit.exceptions import MissingActorError
from docaudit.models.audit import AuditRecord
from docaudit.models.changes import ChangeDescriptor


def has_actor(actor: Any) -> bool:
    if actor is None:
        return False
    if isinstance(actor, str):
        return bool(actor.strip())
    return True


def build_audit_record(
    current: Any,
    original: Any,
    changes: Mapping[str, ChangeDescriptor],
    actor: Any,
    action: str | None,
    *,
    subject_type: str | None = None,
    id_field: str = "_id",
) -> AuditRecord | None:
    """Assemble the audit record for one mutation.

    Raises:
        MissingActorError: if *actor* is None or blank.

    Returns:
        The record, or None when *changes* is empty (nothing worth auditing).
    """
    if not has_actor(actor):
        raise MissingActorError(action)

    if not changes:
        return None

    subject_id = current.get(id_field) if isinstance(current, dict) else None

    return AuditRecord(
        subject_id=subject_id,
        subject_type=subject_type,
        action=action,
        changes=changes,
        original_document=original if isinstance(original, dict) else {},
        actor=actor,
    )
