"""docaudit: change detection and audit records for JSON documents."""

from docaudit.engine.recorder import AuditEngine
from docaudit.exceptions import AuditError, MissingActorError
from docaudit.hooks import AuditHooks, DocumentStore, UpdateQuery
from docaudit.models import AuditRecord, ChangeDescriptor, ChangeOperation, ChangeType, OperationKind

__version__ = "0.1.0"

__all__ = [
    "AuditEngine",
    "AuditError",
    "AuditHooks",
    "AuditRecord",
    "ChangeDescriptor",
    "ChangeOperation",
    "ChangeType",
    "DocumentStore",
    "MissingActorError",
    "OperationKind",
    "UpdateQuery",
    "__version__",
]
