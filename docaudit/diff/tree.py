"""Recursive JSON tree diff producing ChangeOperation lists.

Operates on plain JSON values only (dict, list, str, int, float, bool,
None); callers normalize richer objects first.  The walk mirrors the
classic deep-diff layout:

* mapping keys only on the left are ``DELETED``, only on the right ``NEW``;
* sequences are compared index by index, surplus elements become
  ``ARRAY`` operations carrying a nested NEW/DELETED ``item``;
* values of different JSON kinds, or unequal scalars, are ``EDITED``.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from typing import Any

from docaudit.models.changes import ChangeOperation, OperationKind, PathSegment

Prefilter = Callable[[tuple[PathSegment, ...], PathSegment], bool]

_MISSING: Any = object()


def _json_kind(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int | float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _is_nan(value: Any) -> bool:
    return isinstance(value, float) and math.isnan(value)


def diff(lhs: Any, rhs: Any, prefilter: Prefilter | None = None) -> list[ChangeOperation]:
    """Return the operations turning *lhs* into *rhs*.

    *prefilter* is called as ``prefilter(parent_path, key)`` before a child
    is visited; a truthy return skips that child entirely.
    """
    changes: list[ChangeOperation] = []
    _walk(lhs, rhs, (), prefilter, changes)
    return changes


def _walk(
    lhs: Any,
    rhs: Any,
    path: tuple[PathSegment, ...],
    prefilter: Prefilter | None,
    changes: list[ChangeOperation],
) -> None:
    if lhs is _MISSING:
        changes.append(ChangeOperation(OperationKind.NEW, path, rhs=rhs))
        return
    if rhs is _MISSING:
        changes.append(ChangeOperation(OperationKind.DELETED, path, lhs=lhs))
        return

    lkind, rkind = _json_kind(lhs), _json_kind(rhs)
    if lkind != rkind:
        changes.append(ChangeOperation(OperationKind.EDITED, path, lhs=lhs, rhs=rhs))
        return

    match lhs:
        case dict():
            _walk_mapping(lhs, rhs, path, prefilter, changes)
        case list():
            _walk_sequence(lhs, rhs, path, prefilter, changes)
        case _:
            if lhs != rhs and not (_is_nan(lhs) and _is_nan(rhs)):
                changes.append(ChangeOperation(OperationKind.EDITED, path, lhs=lhs, rhs=rhs))


def _walk_mapping(
    lhs: dict[str, Any],
    rhs: dict[str, Any],
    path: tuple[PathSegment, ...],
    prefilter: Prefilter | None,
    changes: list[ChangeOperation],
) -> None:
    for key, value in lhs.items():
        if prefilter is not None and prefilter(path, key):
            continue
        _walk(value, rhs.get(key, _MISSING), (*path, key), prefilter, changes)
    for key, value in rhs.items():
        if key in lhs:
            continue
        if prefilter is not None and prefilter(path, key):
            continue
        _walk(_MISSING, value, (*path, key), prefilter, changes)


def _walk_sequence(
    lhs: list[Any],
    rhs: list[Any],
    path: tuple[PathSegment, ...],
    prefilter: Prefilter | None,
    changes: list[ChangeOperation],
) -> None:
    for index, value in enumerate(lhs):
        if index >= len(rhs):
            item = ChangeOperation(OperationKind.DELETED, lhs=value)
            changes.append(ChangeOperation(OperationKind.ARRAY, path, index=index, item=item))
        elif prefilter is None or not prefilter(path, index):
            _walk(value, rhs[index], (*path, index), prefilter, changes)
    for index in range(len(lhs), len(rhs)):
        item = ChangeOperation(OperationKind.NEW, rhs=rhs[index])
        changes.append(ChangeOperation(OperationKind.ARRAY, path, index=index, item=item))
