"""CLI entrypoint for docaudit."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import click

from docaudit import __version__
from docaudit.config import load_config
from docaudit.engine.recorder import AuditEngine
from docaudit.exceptions import MissingActorError
from docaudit.observability.logging import setup_logging
from docaudit.sinks import read_records


def _load_json(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as exc:
        raise click.ClickException(f"{path}: invalid JSON ({exc})") from exc


@click.group()
@click.version_option(__version__, prog_name="docaudit")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """docaudit - audit records for document mutations."""
    ctx.ensure_object(dict)
    config = load_config()
    setup_logging(config.log.level, json_output=not sys.stderr.isatty())
    ctx.obj["config"] = config


@cli.command()
@click.argument("original", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("current", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--action", default="save", show_default=True, help="Operation label recorded in the audit record")
@click.option("--actor", default=None, help="Identity of whoever performed the mutation")
@click.option("--subject-type", default=None, help="Logical name of the document kind (e.g. User)")
@click.option(
    "--ignore",
    "ignored",
    multiple=True,
    metavar="FIELD",
    help="Root field to ignore (repeatable; replaces the configured list)",
)
@click.option(
    "--store",
    "store_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Append the record to this JSON Lines file (overrides DOCAUDIT_STORAGE_PATH)",
)
@click.pass_context
def diff(
    ctx: click.Context,
    original: Path,
    current: Path,
    action: str,
    actor: str | None,
    subject_type: str | None,
    ignored: tuple[str, ...],
    store_path: Path | None,
) -> None:
    """Print the audit record for ORIGINAL -> CURRENT as JSON.

    The record is also handed to the configured sinks. Prints {} when
    nothing audited changed. Exits 1 when no actor is given.
    """
    config = ctx.obj["config"]
    if ignored:
        config.diff.ignored_fields = ignored
    if store_path is not None:
        config.storage.path = str(store_path)

    engine = AuditEngine.from_config(config)

    before = _load_json(original)
    after = _load_json(current)
    try:
        record = asyncio.run(engine.record(after, before, action, actor=actor, subject_type=subject_type))
    except MissingActorError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    click.echo(json.dumps(record.to_dict() if record else {}, indent=2, default=str))


@cli.command()
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
@click.option("-n", "last_n", type=int, default=10, show_default=True, help="Number of records to show")
def tail(path: Path, last_n: int) -> None:
    """Print the last records of a JSON Lines audit file."""
    for record in read_records(path, last_n=last_n):
        click.echo(json.dumps(record.to_dict(), default=str))
