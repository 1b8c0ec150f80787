"""Audit engine for docaudit.

Submodules:
    classifier  -- Folds diff operations into a flat change map.
    arrays      -- Full-array reconciliation for sequence length changes.
    builder     -- Audit record assembly and the actor requirement.
    recorder    -- AuditEngine entry point wiring diff, classifier, builder, sinks.
"""

from docaudit.engine.arrays import reconcile_array, resolve_path
from docaudit.engine.builder import build_audit_record
from docaudit.engine.classifier import change_key, classify, handle_sub_object, is_empty
from docaudit.engine.recorder import AuditEngine

__all__ = [
    "AuditEngine",
    "build_audit_record",
    "change_key",
    "classify",
    "handle_sub_object",
    "is_empty",
    "reconcile_array",
    "resolve_path",
]
