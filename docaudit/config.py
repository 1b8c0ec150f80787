"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from docaudit.models.config import (
    DEFAULT_IGNORED_FIELDS,
    DiffConfig,
    DocAuditConfig,
    LogConfig,
    StorageConfig,
    WebhookConfig,
)


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"DOCAUDIT_{key}", default)


def _env_float(key: str, default: float, min_val: float | None = None) -> float:
    val = float(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    return val


def _env_list(key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = _env(key, ",".join(default))
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def _validate_field_name(value: str, key: str) -> str:
    if not value or value.strip() != value:
        raise ValueError(f"Invalid field name for {key}: {value!r}")
    return value


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def load_config() -> DocAuditConfig:
    """Load configuration from DOCAUDIT_* environment variables."""
    return DocAuditConfig(
        diff=DiffConfig(
            ignored_fields=_env_list("IGNORED_FIELDS", DEFAULT_IGNORED_FIELDS),
            id_field=_validate_field_name(_env("ID_FIELD", "_id"), "ID_FIELD"),
            actor_field=_validate_field_name(_env("ACTOR_FIELD", "__user"), "ACTOR_FIELD"),
        ),
        storage=StorageConfig(
            path=_env("STORAGE_PATH", ""),
        ),
        webhook=WebhookConfig(
            url_secret_ref=_env("WEBHOOK_URL_REF", ""),
            timeout_seconds=_env_float("WEBHOOK_TIMEOUT", 10.0, min_val=1.0),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
        ),
    )
