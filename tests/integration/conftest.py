"""Shared fixtures for docaudit integration tests.

Provides an in-memory document store, recording / failing sinks and an
engine wired to them, so hook and pipeline tests can exercise the full
path without a real database.
"""

from __future__ import annotations

import copy
from collections.abc import AsyncGenerator
from typing import Any

import pytest

from docaudit.engine.recorder import AuditEngine
from docaudit.hooks import AuditHooks
from docaudit.models.audit import AuditRecord
from docaudit.sinks.manager import AuditSink, SinkDispatcher

# ---------------------------------------------------------------------------
# Collaborator doubles
# ---------------------------------------------------------------------------


class InMemoryStore:
    """DocumentStore over a dict keyed by ``_id``; returns copies like a real driver."""

    def __init__(self, documents: list[dict[str, Any]] | None = None) -> None:
        self.documents: dict[Any, dict[str, Any]] = {}
        for doc in documents or []:
            self.documents[doc["_id"]] = copy.deepcopy(doc)
        self.fail = False
        self.find_one_calls: list[Any] = []
        self.open_cursors = 0

    async def find_one(self, identity: Any) -> dict[str, Any] | None:
        self.find_one_calls.append(identity)
        if self.fail:
            raise ConnectionError("store unavailable")
        doc = self.documents.get(identity)
        return copy.deepcopy(doc) if doc is not None else None

    async def find(self, conditions: dict[str, Any]) -> AsyncGenerator[dict[str, Any], None]:
        if self.fail:
            raise ConnectionError("store unavailable")
        self.open_cursors += 1
        try:
            for doc in list(self.documents.values()):
                if all(doc.get(key) == value for key, value in conditions.items()):
                    yield copy.deepcopy(doc)
        finally:
            self.open_cursors -= 1


class RecordingSink(AuditSink):
    """Keeps every record it is handed."""

    def __init__(self) -> None:
        self.records: list[AuditRecord] = []

    @property
    def sink_name(self) -> str:
        return "recording"

    async def store(self, record: AuditRecord) -> bool:
        self.records.append(record)
        return True


class FailingSink(AuditSink):
    """Raises on every store call."""

    def __init__(self) -> None:
        self.calls = 0

    @property
    def sink_name(self) -> str:
        return "failing"

    async def store(self, record: AuditRecord) -> bool:
        self.calls += 1
        raise RuntimeError("disk full")


class Continuation:
    """Stands in for the lifecycle ``next`` callback."""

    def __init__(self) -> None:
        self.calls: list[BaseException | None] = []

    def __call__(self, error: BaseException | None = None) -> None:
        self.calls.append(error)


# ---------------------------------------------------------------------------
# Document factories
# ---------------------------------------------------------------------------


def make_user(**overrides: Any) -> dict[str, Any]:
    """Create a persisted user document with bookkeeping fields."""
    doc: dict[str, Any] = {
        "_id": "u1",
        "__v": 0,
        "createdAt": "2026-01-01T00:00:00+00:00",
        "updatedAt": "2026-01-01T00:00:00+00:00",
        "name": "Ada",
        "status": "open",
        "tags": ["x"],
        "address": {"city": "Lyon", "zip": "69001"},
        "profile": {"_id": "p1", "bio": "mathematician"},
    }
    doc.update(overrides)
    return doc


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def engine(recording_sink: RecordingSink) -> AuditEngine:
    """Engine whose records land in ``recording_sink``."""
    return AuditEngine(dispatcher=SinkDispatcher([recording_sink]))


@pytest.fixture
def store() -> InMemoryStore:
    """Store holding two open users."""
    return InMemoryStore(
        [
            make_user(),
            make_user(_id="u2", name="Grace", tags=[], profile={"_id": "p2", "bio": "admiral"}),
        ]
    )


@pytest.fixture
def hooks(engine: AuditEngine, store: InMemoryStore) -> AuditHooks:
    return AuditHooks(engine, store, subject_type="User")


@pytest.fixture
def next_() -> Continuation:
    return Continuation()
