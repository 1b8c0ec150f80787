"""Change operation and change descriptor data structures."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

PathSegment = str | int


class OperationKind(StrEnum):
    """Kind of a low-level tree-diff operation."""

    NEW = "N"
    DELETED = "D"
    EDITED = "E"
    ARRAY = "A"


class ChangeType(StrEnum):
    """Net effect recorded in an audit change map."""

    ADD = "Add"
    EDIT = "Edit"
    DELETE = "Delete"


class _Unset:
    """Marker for a descriptor side that was never assigned."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


@dataclass(frozen=True)
class ChangeOperation:
    """One entry produced by the tree diff.

    ``path`` runs from the document root to the changed node.  For
    ``ARRAY`` operations ``path`` points at the sequence itself, ``index``
    is the affected position and ``item`` is the nested NEW/DELETED
    operation describing the element.
    """

    kind: OperationKind
    path: tuple[PathSegment, ...] = ()
    lhs: Any = UNSET
    rhs: Any = UNSET
    index: int | None = None
    item: ChangeOperation | None = None


@dataclass(frozen=True)
class ChangeDescriptor:
    """Normalized ``{from, to, type}`` description of one logical change."""

    type: ChangeType
    from_value: Any = UNSET
    to_value: Any = UNSET

    def __post_init__(self) -> None:
        if self.from_value is UNSET and self.to_value is UNSET:
            raise ValueError("ChangeDescriptor needs at least one of from_value / to_value")

    @property
    def has_from(self) -> bool:
        return self.from_value is not UNSET

    @property
    def has_to(self) -> bool:
        return self.to_value is not UNSET

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the ``{"from", "to", "type"}`` wire form."""
        data: dict[str, Any] = {}
        if self.has_from:
            data["from"] = self.from_value
        if self.has_to:
            data["to"] = self.to_value
        data["type"] = self.type.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChangeDescriptor:
        return cls(
            type=ChangeType(data["type"]),
            from_value=data.get("from", UNSET),
            to_value=data.get("to", UNSET),
        )
