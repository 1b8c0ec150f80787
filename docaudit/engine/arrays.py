"""Array reconciliation.

The tree diff reports surplus elements of a sequence one index at a time.
For the audit trail we want the whole array on both sides, so this module
walks back into both snapshots and infers the net effect from what it finds.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from docaudit.models.changes import ChangeDescriptor, ChangeType, PathSegment


def _step(container: Any, segment: PathSegment) -> Any:
    match container:
        case dict():
            return container.get(segment)
        case list() if isinstance(segment, int) and 0 <= segment < len(container):
            return container[segment]
        case _:
            return None


def resolve_path(document: Any, path: Sequence[PathSegment]) -> list[Any]:
    """Return the array found at *path* in *document*.

    All segments but the last select nested containers, the last selects
    the array.  A path that does not resolve to a list yields ``[]``.
    """
    value = document
    for segment in path:
        value = _step(value, segment)
        if value is None:
            return []
    return value if isinstance(value, list) else []


def reconcile_array(path: Sequence[PathSegment], original: Any, current: Any) -> ChangeDescriptor:
    """Describe the full before/after contents of the array at *path*."""
    before = resolve_path(original, path)
    after = resolve_path(current, path)

    if before and not after:
        change_type = ChangeType.DELETE
    elif after and not before:
        change_type = ChangeType.ADD
    else:
        # Both non-empty, or both empty (degenerate): recorded as an edit.
        change_type = ChangeType.EDIT

    return ChangeDescriptor(type=change_type, from_value=before, to_value=after)
