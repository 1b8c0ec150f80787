"""Structural diff adapter.

Normalizes two document snapshots to plain JSON and runs the tree diff with
a root-level filter that hides bookkeeping fields (identity, version and
timestamps).  Nested keys with the same names are diffed normally.
"""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Collection
from datetime import date, datetime, time
from typing import Any

from docaudit.diff.tree import Prefilter, diff
from docaudit.models.changes import ChangeOperation, PathSegment
from docaudit.models.config import DEFAULT_IGNORED_FIELDS


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime | date | time):
        return value.isoformat()
    if isinstance(value, set | frozenset):
        return sorted(value, key=repr)
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    # UUID, Decimal, ObjectId and friends serialise through their string form
    return str(value)


def normalize(document: Any) -> Any:
    """Deep-copy *document* into plain JSON values.

    Tuples become lists, non-string mapping keys become strings, and rich
    leaves (datetimes, UUIDs, Decimals, dataclasses) are flattened.  NaN and
    the infinities have no JSON form and become None.
    """
    return json.loads(json.dumps(document, default=_json_default), parse_constant=lambda _: None)


def root_filter(ignored_fields: Collection[str]) -> Prefilter:
    """Build a prefilter that skips *ignored_fields* at the document root only."""
    ignored = frozenset(ignored_fields)

    def _filter(path: tuple[PathSegment, ...], key: PathSegment) -> bool:
        return len(path) == 0 and key in ignored

    return _filter


def compute_changes(
    original: Any,
    current: Any,
    ignored_fields: Collection[str] = DEFAULT_IGNORED_FIELDS,
) -> list[ChangeOperation]:
    """Diff two snapshots, ignoring root bookkeeping fields.

    Returns an empty list when the snapshots are structurally identical
    after filtering.
    """
    return diff(normalize(original), normalize(current), root_filter(ignored_fields))
