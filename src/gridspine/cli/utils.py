"""
CLI utility helpers -- record loading and output formatting.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from gridspine.core.result import Err, Ok, Result, try_result
from gridspine.engine.table import GroupView
from gridspine.engine.types import ColumnDefinition

console = Console()
err_console = Console(stderr=True)


# ── Input ────────────────────────────────────────────────────────────────


def read_records(path: Path) -> Result[list[dict[str, Any]]]:
    """Read a JSON array of objects from ``path``."""
    match try_result(lambda: json.loads(path.read_text(encoding="utf-8"))):
        case Err(error):
            return Err(error)
        case Ok(data):
            pass
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        return Err(ValueError(f"{path} must contain a JSON array of objects"))
    return Ok(data)


def load_records(path: Path) -> list[dict[str, Any]]:
    """Read records or exit with an error message."""
    match read_records(path):
        case Ok(records):
            return records
        case Err(error):
            err_console.print(
                f"[bold red]Error[/bold red]: cannot read {escape(str(path))}: {escape(str(error))}"
            )
            raise typer.Exit(code=1)


def write_records(path: Path, records: list[dict[str, Any]]) -> None:
    path.write_text(json.dumps(records, indent=2, default=str) + "\n", encoding="utf-8")


# ── Output helpers ───────────────────────────────────────────────────────


def print_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, default=str))


def print_columns(columns: tuple[ColumnDefinition, ...]) -> None:
    """Render column definitions as a Rich table."""
    if not columns:
        console.print("[dim]No columns.[/dim]")
        return
    table = Table(title="Columns", show_lines=False, pad_edge=False)
    for name in ("field", "header", "type", "editable", "size", "filter"):
        table.add_column(name, overflow="fold")
    for c in columns:
        table.add_row(
            Text(c.field),
            Text(c.header),
            c.semantic_type.value,
            "yes" if c.editable else "no",
            str(c.size_hint),
            c.filter_kind or "-",
        )
    console.print(table)


def print_groups(columns: tuple[ColumnDefinition, ...], views: tuple[GroupView, ...]) -> None:
    """Render grouped rows as one Rich table with a header line per group."""
    if not views:
        console.print("[dim]No rows.[/dim]")
        return
    table = Table(show_lines=False, pad_edge=False)
    for c in columns:
        justify = "right" if c.semantic_type.value == "number" else "left"
        table.add_column(Text(c.header), justify=justify, overflow="fold")
    width = max(len(columns), 1)
    for view in views:
        marker = "▾" if view.expanded else "▸"
        table.add_row(
            Text.assemble((f"{marker} {view.key}", "bold"), " ", (f"({view.count})", "dim")),
            *([""] * (width - 1)),
        )
        for row in view.rows:
            table.add_row(*(Text(cell) for cell in row.cells))
    console.print(table)
