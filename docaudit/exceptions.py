"""Exceptions raised across the docaudit boundary."""

from __future__ import annotations


class AuditError(Exception):
    """Base class for docaudit errors."""


class MissingActorError(AuditError):
    """Raised when a mutation cannot be attributed to an actor.

    This is the only error the engine lets through to the calling
    lifecycle; the caller decides whether to abort the mutation.
    """

    def __init__(self, action: str | None = None) -> None:
        msg = "Actor missing in audit log"
        if action:
            msg += f" (action={action!r})"
        super().__init__(msg)
        self.action = action
