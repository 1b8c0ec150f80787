"""Lifecycle hooks: adapters between a persistence layer and the engine.

Each hook is invoked for one lifecycle event (save, update, replace,
delete, insert), fetches whatever before-image it needs through a
``DocumentStore``, runs the engine, and then resumes the interrupted
lifecycle by calling ``next`` exactly once:

    next(None)                -- audit done, skipped, or failed harmlessly
    next(MissingActorError)   -- the mutation cannot be attributed

Every other failure (store errors, sink errors) is logged and absorbed so
auditing never blocks the primary operation.
"""

from __future__ import annotations

import copy
import inspect
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import aclosing
from dataclasses import dataclass, field
from typing import Any, Protocol

from docaudit.engine.builder import has_actor
from docaudit.engine.recorder import AuditEngine
from docaudit.exceptions import MissingActorError
from docaudit.observability.logging import audit_context, get_logger

_logger = get_logger("hooks")

Continuation = Callable[[BaseException | None], Any]


class DocumentStore(Protocol):
    """Read access the hooks need from the persistence layer."""

    async def find_one(self, identity: Any) -> dict[str, Any] | None:
        """Return the persisted snapshot for *identity*, or None."""
        ...

    def find(self, conditions: dict[str, Any]) -> AsyncGenerator[dict[str, Any], None]:
        """Yield every persisted document matching *conditions*."""
        ...


@dataclass
class UpdateQuery:
    """An update / replace / delete-by-query request as seen by a hook.

    ``options`` carries per-call settings; an actor may be attached under
    the engine's actor field (``__user`` by default).
    """

    conditions: dict[str, Any] = field(default_factory=dict)
    update: dict[str, Any] = field(default_factory=dict)
    options: dict[str, Any] = field(default_factory=dict)
    subject_type: str | None = None


def flatten_update(update: dict[str, Any]) -> dict[str, Any]:
    """Merge update operators (``$set``, ``$inc``...) into one flat mapping.

    Operator keys contribute their contents; plain keys are kept as they are.
    """
    flat: dict[str, Any] = {}
    for key, value in update.items():
        if key.startswith("$"):
            if isinstance(value, dict):
                flat.update(value)
        else:
            flat[key] = value
    return flat


def apply_update(before: dict[str, Any], update: dict[str, Any]) -> dict[str, Any]:
    """Return the document *before* would become after *update*.

    Dotted keys (``address.city``) are applied as nested assignments;
    numeric parts index into lists (``items.0.qty``).
    """
    after = copy.deepcopy(before)
    for key, value in flatten_update(update).items():
        *parents, last = key.split(".")
        target = _descend(after, parents)
        if isinstance(target, dict):
            target[last] = value
        elif isinstance(target, list) and _list_index(target, last) is not None:
            target[int(last)] = value
    return after


def _list_index(items: list[Any], part: str) -> int | None:
    if part.isdecimal() and int(part) < len(items):
        return int(part)
    return None


def _descend(document: dict[str, Any], parts: list[str]) -> Any:
    """Walk *parts* into *document*, creating missing objects on the way.

    Returns None when a part cannot be followed (a list index that is out
    of range, or a list element that is not an object).
    """
    target: Any = document
    for part in parts:
        if isinstance(target, list):
            index = _list_index(target, part)
            if index is None:
                return None
            target = target[index]
            continue
        if not isinstance(target, dict):
            return None
        child = target.get(part)
        if not isinstance(child, dict | list):
            child = {}
            target[part] = child
        target = child
    return target


async def _resume(next_: Continuation, error: BaseException | None) -> None:
    result = next_(error)
    if inspect.isawaitable(result):
        await result


class AuditHooks:
    """Lifecycle entry points for one document collection.

    Args:
        engine:       The audit engine.
        store:        Before-image source for the collection.
        subject_type: Logical name of the collection's documents.
    """

    def __init__(self, engine: AuditEngine, store: DocumentStore, subject_type: str | None = None) -> None:
        self._engine = engine
        self._store = store
        self._subject_type = subject_type

    # ------------------------------------------------------------------
    # Shared plumbing
    # ------------------------------------------------------------------

    async def _run(self, next_: Continuation, action: str, work: Callable[[], Awaitable[None]]) -> None:
        error: BaseException | None = None
        with audit_context(hook_action=action, collection=self._subject_type):
            try:
                await work()
            except MissingActorError as exc:
                error = exc
            except Exception as exc:  # noqa: BLE001
                _logger.error("audit_hook_failed", error=str(exc), exc_info=True)
        await _resume(next_, error)

    def _require_actor(self, payload: dict[str, Any], actor: Any, action: str) -> Any:
        resolved, _ = self._engine.resolve_actor(payload, actor)
        if not has_actor(resolved):
            raise MissingActorError(action)
        return resolved

    def _attached(self, options: dict[str, Any]) -> dict[str, Any]:
        field_name = self._engine.actor_field
        return {field_name: options[field_name]} if field_name in options else {}

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    async def on_save(
        self,
        document: dict[str, Any],
        next_: Continuation,
        *,
        actor: Any = None,
        action: str = "save",
    ) -> None:
        """Audit a save of *document* against its persisted before-image."""

        async def work() -> None:
            self._require_actor(document, actor, action)
            identity = document.get(self._engine.id_field)
            original = await self._store.find_one(identity) if identity is not None else None
            await self._engine.record(document, original, action, actor=actor, subject_type=self._subject_type)

        await self._run(next_, action, work)

    # ------------------------------------------------------------------
    # Update / replace
    # ------------------------------------------------------------------

    async def on_update(
        self,
        query: UpdateQuery,
        next_: Continuation,
        *,
        actor: Any = None,
        action: str = "update",
        multi: bool = False,
    ) -> None:
        """Audit an update applied to the documents matched by *query*.

        Only the first match is audited unless *multi* is set.
        """

        async def work() -> None:
            attached = self._attached(query.options)
            self._require_actor(attached, actor, action)
            async with aclosing(self._store.find(query.conditions)) as matches:
                async for before in matches:
                    current = {**attached, **apply_update(before, query.update)}
                    await self._engine.record(
                        current,
                        before,
                        action,
                        actor=actor,
                        subject_type=query.subject_type or self._subject_type,
                    )
                    if not multi:
                        break

        await self._run(next_, action, work)

    async def on_replace(
        self,
        query: UpdateQuery,
        next_: Continuation,
        *,
        actor: Any = None,
        action: str = "replaceOne",
    ) -> None:
        """Audit a whole-document replacement of the first match of *query*.

        ``query.update`` is the replacement document; the identity field of
        the persisted document is carried over.
        """
        id_field = self._engine.id_field

        async def work() -> None:
            attached = self._attached(query.options)
            self._require_actor(attached, actor, action)
            async with aclosing(self._store.find(query.conditions)) as matches:
                async for before in matches:
                    current = {**attached, **query.update}
                    if id_field in before:
                        current[id_field] = before[id_field]
                    await self._engine.record(
                        current,
                        before,
                        action,
                        actor=actor,
                        subject_type=query.subject_type or self._subject_type,
                    )
                    break

        await self._run(next_, action, work)

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    async def _audit_delete(
        self,
        document: dict[str, Any],
        attached: dict[str, Any],
        actor: Any,
        action: str,
        subject_type: str | None,
    ) -> None:
        id_field = self._engine.id_field
        original = {key: value for key, value in document.items() if key != self._engine.actor_field}
        current = {**attached, id_field: document.get(id_field)}
        await self._engine.record(current, original, action, actor=actor, subject_type=subject_type)

    async def on_delete(
        self,
        document: dict[str, Any],
        next_: Continuation,
        *,
        actor: Any = None,
        action: str = "remove",
    ) -> None:
        """Audit the removal of *document*: every field is reported as deleted."""

        async def work() -> None:
            attached = self._attached(document)
            self._require_actor(attached, actor, action)
            await self._audit_delete(document, attached, actor, action, self._subject_type)

        await self._run(next_, action, work)

    async def on_delete_by_query(
        self,
        query: UpdateQuery,
        next_: Continuation,
        *,
        actor: Any = None,
        action: str = "deleteMany",
        multi: bool = True,
    ) -> None:
        """Audit the removal of the documents matched by *query*.

        Use ``multi=False`` for find-one-and-delete style operations.
        """

        async def work() -> None:
            attached = self._attached(query.options)
            self._require_actor(attached, actor, action)
            async with aclosing(self._store.find(query.conditions)) as matches:
                async for document in matches:
                    await self._audit_delete(document, attached, actor, action, query.subject_type or self._subject_type)
                    if not multi:
                        break

        await self._run(next_, action, work)

    # ------------------------------------------------------------------
    # Insert
    # ------------------------------------------------------------------

    async def on_insert(
        self,
        document: dict[str, Any],
        next_: Continuation,
        *,
        actor: Any = None,
        action: str = "insert",
    ) -> None:
        """Audit a new *document*: every field is reported as added."""

        async def work() -> None:
            await self._engine.record(document, {}, action, actor=actor, subject_type=self._subject_type)

        await self._run(next_, action, work)

    async def on_insert_many(
        self,
        documents: list[dict[str, Any]],
        next_: Continuation,
        *,
        actor: Any = None,
        action: str = "insertMany",
    ) -> None:
        """Audit a bulk insert, one record per document."""

        async def work() -> None:
            if not documents:
                self._require_actor({}, actor, action)
            for document in documents:
                await self._engine.record(document, {}, action, actor=actor, subject_type=self._subject_type)

        await self._run(next_, action, work)
