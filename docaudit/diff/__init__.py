"""Structural diff for docaudit.

Submodules:
    tree     -- Recursive JSON tree diff producing ChangeOperation lists.
    adapter  -- Snapshot normalization and root bookkeeping-field filter.
"""

from docaudit.diff.adapter import compute_changes, normalize, root_filter
from docaudit.diff.tree import diff

__all__ = ["compute_changes", "diff", "normalize", "root_filter"]
