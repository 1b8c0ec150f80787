"""Entry point for `python -m docaudit`.

Usage:
    python -m docaudit diff before.json after.json --actor alice
    uv run python -m docaudit tail audit.jsonl
"""

from __future__ import annotations

from docaudit.cli.main import cli

cli()
