"""docaudit command-line interface.

Exposes:
    cli -- Click group entry point (registered as ``docaudit`` script).
"""

from docaudit.cli.main import cli

__all__ = ["cli"]
