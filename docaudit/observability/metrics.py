"""Prometheus counters for the audit pipeline."""

from __future__ import annotations

from prometheus_client import Counter

records_total = Counter(
    "docaudit_records_total",
    "Audit records emitted, by action label",
    ["action"],
)

sink_writes_total = Counter(
    "docaudit_sink_writes_total",
    "Audit record deliveries per sink",
    ["sink", "success"],
)

missing_actor_total = Counter(
    "docaudit_missing_actor_total",
    "Mutations rejected by the audit step for lack of an actor",
    ["action"],
)
