"""Core data structures for docaudit."""

from docaudit.models.audit import AuditRecord
from docaudit.models.changes import (
    UNSET,
    ChangeDescriptor,
    ChangeOperation,
    ChangeType,
    OperationKind,
    PathSegment,
)
from docaudit.models.config import DEFAULT_IGNORED_FIELDS, DocAuditConfig

__all__ = [
    "DEFAULT_IGNORED_FIELDS",
    "UNSET",
    "AuditRecord",
    "ChangeDescriptor",
    "ChangeOperation",
    "ChangeType",
    "DocAuditConfig",
    "OperationKind",
    "PathSegment",
]
