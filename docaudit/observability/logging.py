"""Structured logging configuration using structlog.

Library code only ever calls ``get_logger``; applications (or the CLI) call
``setup_logging`` once.  Per-event fields such as the action label are bound
with ``audit_context`` so every line logged while auditing one mutation
carries them.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog


def setup_logging(level: str = "info", json_output: bool = True) -> None:
    """Configure structlog for output to stderr.

    JSON lines by default; ``json_output=False`` switches to the console
    renderer for interactive use.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    renderer: Any = structlog.processors.JSONRenderer(default=str) if json_output else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Get a logger bound with a component name."""
    return structlog.get_logger(component=component)  # type: ignore[return-value]


@contextmanager
def audit_context(**fields: Any) -> Iterator[None]:
    """Bind *fields* to every log line emitted inside the block."""
    with structlog.contextvars.bound_contextvars(**{k: v for k, v in fields.items() if v is not None}):
        yield
