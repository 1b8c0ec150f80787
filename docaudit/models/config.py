"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_IGNORED_FIELDS: tuple[str, ...] = ("_id", "__v", "createdAt", "updatedAt")


@dataclass
class DiffConfig:
    """Structural diff configuration."""

    ignored_fields: tuple[str, ...] = DEFAULT_IGNORED_FIELDS
    id_field: str = "_id"
    actor_field: str = "__user"


@dataclass
class StorageConfig:
    """Persistent audit storage configuration.

    An empty ``path`` means no persistent storage: records go to the log stream.
    """

    path: str = ""

    @property
    def enabled(self) -> bool:
        return bool(self.path)


@dataclass
class WebhookConfig:
    """Webhook sink configuration."""

    url_secret_ref: str = ""
    timeout_seconds: float = 10.0


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class DocAuditConfig:
    """Top-level docaudit configuration."""

    diff: DiffConfig = field(default_factory=DiffConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    webhook: WebhookConfig = field(default_factory=WebhookConfig)
    log: LogConfig = field(default_factory=LogConfig)
