"""Audit sinks for docaudit.

Exports:
    AuditSink        -- Abstract base for all sink implementations.
    SinkDispatcher   -- Sends a record to every registered sink; failures
                        are logged and never reach the caller.
    LogSink          -- Operator log stream (used when no storage is set up).
    JsonLinesSink    -- Append-only JSON Lines file.
    WebhookSink      -- Generic JSON POST webhook.
    build_sink_dispatcher -- Factory driven by DocAuditConfig.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import structlog

from docaudit.sinks.jsonl import JsonLinesSink, read_records
from docaudit.sinks.log import LogSink
from docaudit.sinks.manager import AuditSink, SinkDispatcher
from docaudit.sinks.webhook import WebhookSink

if TYPE_CHECKING:
    from docaudit.models.config import DocAuditConfig

_log = structlog.get_logger(component="sinks")

__all__ = [
    "AuditSink",
    "JsonLinesSink",
    "LogSink",
    "SinkDispatcher",
    "WebhookSink",
    "build_sink_dispatcher",
    "read_records",
]


def build_sink_dispatcher(config: DocAuditConfig) -> SinkDispatcher:
    """Build a SinkDispatcher from configuration.

    JSON Lines storage:
        DOCAUDIT_STORAGE_PATH -> file the records are appended to.

    Webhook:
        DOCAUDIT_WEBHOOK_URL_REF (env var name) -> env var value is the URL.

    When neither yields a sink with storage, records are written to the
    log stream instead.
    """
    sinks: list[AuditSink] = []

    if config.storage.enabled:
        try:
            sinks.append(JsonLinesSink(config.storage.path))
            _log.info("jsonl_sink_enabled", path=config.storage.path)
        except ValueError as exc:
            _log.warning("jsonl_sink_disabled", reason=str(exc))

    webhook_ref = config.webhook.url_secret_ref
    if webhook_ref:
        webhook_url = os.environ.get(webhook_ref, "")
        if webhook_url:
            try:
                sinks.append(WebhookSink(url=webhook_url, timeout=config.webhook.timeout_seconds))
                _log.info("webhook_sink_enabled")
            except ValueError as exc:
                _log.warning("webhook_sink_disabled", reason=str(exc))
        else:
            _log.debug("webhook_sink_skipped", reason="secret ref env var is empty")

    if not sinks:
        _log.info("no_audit_storage_configured", fallback="log")
        sinks.append(LogSink())

    return SinkDispatcher(sinks=sinks)
