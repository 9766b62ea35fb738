"""
Root Typer application for the gridspine CLI.

Commands operate on a JSON file holding an array of record objects::

    gridspine schema users.json
    gridspine show users.json --by-date joined --expand Today
    gridspine edit users.json 1 age 31 --write
"""

from __future__ import annotations

from datetime import date
from pathlib import Path

import typer
from rich.markup import escape

from gridspine.cli.utils import (
    console,
    err_console,
    load_records,
    print_columns,
    print_groups,
    print_json,
    write_records,
)
from gridspine.core.errors import GridError
from gridspine.core.logging import configure_logging
from gridspine.core.result import Err, Ok, from_optional
from gridspine.core.settings import get_settings
from gridspine.core.timestamps import parse_calendar_date
from gridspine.engine.edits import Committed, InMemoryEditSink
from gridspine.engine.grouping import by_field, date_bucket
from gridspine.engine.table import TableEngine, single_group
from gridspine.engine.types import ExpandState

app = typer.Typer(
    name="gridspine",
    help="gridspine: infer, group and edit tabular JSON data.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from gridspine import __version__

        typer.echo(f"gridspine {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Inspect schema, render grouped tables, submit edits."""
    try:
        settings = get_settings()
    except GridError as e:
        err_console.print(f"[bold red]Config error[/bold red]: {escape(e.message)}")
        raise typer.Exit(code=2) from e
    configure_logging(level=settings.log_level, json_format=settings.json_logs)


# ── Helpers ──────────────────────────────────────────────────────────────


def _build_engine(path: Path, sink: InMemoryEditSink | None = None) -> TableEngine:
    records = load_records(path)
    try:
        return TableEngine(records, sink=sink, name=path.stem)
    except GridError as e:
        err_console.print(f"[bold red]Error[/bold red]: {escape(e.message)}")
        raise typer.Exit(code=1) from e


def _match_row_id(engine: TableEngine, raw: str) -> object:
    """Map a command-line row id onto the typed identity of a loaded row."""
    for record in engine.rows():
        row_id = engine.store.row_id(record)
        if str(row_id) == raw:
            return row_id
    return raw


# ── Commands ─────────────────────────────────────────────────────────────


@app.command("schema")
def schema(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON array file."),
    json_out: bool = typer.Option(False, "--json", help="Print columns as JSON."),
) -> None:
    """Infer and print the column definitions of a dataset."""
    engine = _build_engine(path)
    if json_out:
        print_json([
            {
                "field": c.field,
                "header": c.header,
                "semantic_type": c.semantic_type.value,
                "editable": c.editable,
                "size_hint": c.size_hint,
                "filter_kind": c.filter_kind,
            }
            for c in engine.columns
        ])
        return
    console.print(f"[dim]row key:[/dim] {escape(engine.store.key_field or '-')}")
    print_columns(engine.columns)


@app.command("show")
def show(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON array file."),
    group_by: str | None = typer.Option(None, "--group-by", "-g", help="Group by a field's value."),
    by_date: str | None = typer.Option(None, "--by-date", help="Group a date field into buckets."),
    today: str | None = typer.Option(None, "--today", help="Reference date (YYYY-MM-DD) for --by-date."),
    expand: list[str] = typer.Option([], "--expand", "-e", help="Expand a group (repeatable)."),
    expand_all: bool = typer.Option(False, "--expand-all", "-a", help="Expand every group."),
) -> None:
    """Render the dataset as a grouped, formatted table."""
    if group_by and by_date:
        err_console.print("[bold red]Error[/bold red]: use either --group-by or --by-date")
        raise typer.Exit(code=2)

    reference: date | None = None
    if today is not None:
        match from_optional(parse_calendar_date(today), ValueError(f"invalid --today date: {today}")):
            case Ok(parsed):
                reference = parsed
            case Err(error):
                err_console.print(f"[bold red]Error[/bold red]: {escape(str(error))}")
                raise typer.Exit(code=2)

    engine = _build_engine(path)
    if by_date:
        engine.set_grouping(date_bucket(by_date, reference))
    elif group_by:
        engine.set_grouping(by_field(group_by))
    else:
        engine.set_grouping(single_group)

    engine.groups()
    if expand_all:
        engine.grouping.expand_all()
    for key in expand:
        if engine.grouping.state_of(key) is not ExpandState.EXPANDED:
            engine.toggle(key)

    print_groups(engine.columns, engine.render())


@app.command("edit")
def edit(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON array file."),
    row_id: str = typer.Argument(..., help="Identity of the row to edit."),
    field: str = typer.Argument(..., help="Field to edit."),
    value: str = typer.Argument(..., help="Raw input, coerced to the column's type."),
    write: bool = typer.Option(False, "--write", "-w", help="Write the committed dataset back."),
) -> None:
    """Submit one cell edit and print the outcome as JSON."""
    sink = InMemoryEditSink()
    engine = _build_engine(path, sink)
    result = engine.submit(_match_row_id(engine, row_id), field, value)
    print_json(result.to_dict())

    if not isinstance(result, Committed):
        raise typer.Exit(code=1)
    if write and sink.drain():
        write_records(path, [dict(record) for record in engine.rows()])
        err_console.print(f"[green]Wrote[/green] {path}")


if __name__ == "__main__":
    app()
