"""Audit record data structure."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any
from uuid import uuid4

from docaudit.models.changes import ChangeDescriptor


@dataclass(frozen=True)
class AuditRecord:
    """Structured log entry describing one mutation event.

    Produced by the record builder, consumed by the sinks.  ``changes`` is
    wrapped in a read-only mapping on construction; nothing downstream may
    alter the change map once the record exists.
    """

    subject_id: Any
    subject_type: str | None
    action: str | None
    changes: Mapping[str, ChangeDescriptor]
    original_document: dict[str, Any]
    actor: Any
    record_id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    def __post_init__(self) -> None:
        object.__setattr__(self, "changes", MappingProxyType(dict(self.changes)))

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the camelCase wire form used by every sink."""
        return {
            "recordId": self.record_id,
            "subjectId": self.subject_id,
            "subjectType": self.subject_type,
            "action": self.action,
            "changes": {key: desc.to_dict() for key, desc in self.changes.items()},
            "originalDocument": self.original_document,
            "actor": self.actor,
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AuditRecord:
        """Rebuild a record from its wire form (e.g. a JSON Lines entry)."""
        created_at = data.get("createdAt")
        return cls(
            subject_id=data.get("subjectId"),
            subject_type=data.get("subjectType"),
            action=data.get("action"),
            changes={key: ChangeDescriptor.from_dict(value) for key, value in data.get("changes", {}).items()},
            original_document=data.get("originalDocument") or {},
            actor=data.get("actor"),
            record_id=data.get("recordId") or str(uuid4()),
            created_at=datetime.fromisoformat(created_at) if created_at else datetime.now(tz=UTC),
        )
