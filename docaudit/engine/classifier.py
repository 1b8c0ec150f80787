"""Change classifier.

Folds the tree-diff operations into a flat ``key -> ChangeDescriptor``
mapping.  Keys are the operation path joined with underscores, or
``"newObject"`` when the whole document was replaced.

Rules by operation kind:

    DELETED  -- sub-object handler, ``from`` side, Delete
    NEW      -- sub-object handler, ``to`` side, Add
    EDITED   -- ``{from, to, Edit}`` under the key
    ARRAY    -- full-array reconciliation, inserted only if the key is free
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any, Literal

from docaudit.engine.arrays import reconcile_array
from docaudit.models.changes import (
    ChangeDescriptor,
    ChangeOperation,
    ChangeType,
    OperationKind,
    PathSegment,
)
from docaudit.observability.logging import get_logger

_logger = get_logger("engine.classifier")

WHOLE_OBJECT_KEY = "newObject"
IDENTITY_KEYS = frozenset({"_id", "id"})

Side = Literal["from", "to"]


def change_key(path: Sequence[PathSegment]) -> str:
    """Join *path* with underscores; the empty path maps to ``newObject``."""
    if not path:
        return WHOLE_OBJECT_KEY
    return "_".join(str(segment) for segment in path)


def is_empty(value: Any) -> bool:
    """True for None, empty containers and blank strings.

    ``0`` and ``False`` are real values and are never empty.
    """
    match value:
        case None:
            return True
        case dict() | list():
            return len(value) == 0
        case str():
            return not value.strip()
        case _:
            return False


def _descriptor(side: Side, value: Any, change_type: ChangeType) -> ChangeDescriptor:
    if side == "from":
        return ChangeDescriptor(type=change_type, from_value=value)
    return ChangeDescriptor(type=change_type, to_value=value)


def handle_sub_object(
    payload: Any,
    side: Side,
    change_type: ChangeType,
    changes: dict[str, ChangeDescriptor],
    key: str,
) -> None:
    """Record an added or deleted payload under *key*.

    Identity-bearing mappings (carrying ``_id`` or ``id``) are kept whole.
    Other containers are split one level down into ``key_member`` entries,
    skipping empty members.  Scalars are recorded as they are.
    """
    match payload:
        case dict() if IDENTITY_KEYS.intersection(payload):
            changes[key] = _descriptor(side, payload, change_type)
        case dict():
            for member, value in payload.items():
                if not is_empty(value):
                    changes[f"{key}_{member}"] = _descriptor(side, value, change_type)
        case list():
            for position, value in enumerate(payload):
                if not is_empty(value):
                    changes[f"{key}_{position}"] = _descriptor(side, value, change_type)
        case _:
            changes[key] = _descriptor(side, payload, change_type)


def classify(
    operations: Iterable[ChangeOperation],
    original: Any,
    current: Any,
) -> dict[str, ChangeDescriptor]:
    """Build the change map for *operations* computed between *original* and *current*.

    *original* and *current* must be the normalized snapshots the operations
    were computed from; array operations are resolved against them.
    """
    changes: dict[str, ChangeDescriptor] = {}

    for op in operations:
        key = change_key(op.path)
        match op.kind:
            case OperationKind.DELETED:
                handle_sub_object(op.lhs, "from", ChangeType.DELETE, changes, key)
            case OperationKind.NEW:
                handle_sub_object(op.rhs, "to", ChangeType.ADD, changes, key)
            case OperationKind.ARRAY:
                # First write wins: later element operations on the same
                # array are already covered by the reconciled descriptor.
                if key in changes:
                    _logger.debug("array_change_already_recorded", key=key, index=op.index)
                    continue
                changes[key] = reconcile_array(op.path, original, current)
            case _:
                changes[key] = ChangeDescriptor(type=ChangeType.EDIT, from_value=op.lhs, to_value=op.rhs)

    return changes
