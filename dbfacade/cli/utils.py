"""Shared CLI utilities for dbfacade."""

from __future__ import annotations

from typing import Any, Dict, Iterable

import click
import yaml
from rich.console import Console
from rich.table import Table

from dbfacade.db.base import RowSet

# Single console instance reused across CLI modules
console = Console()


def parse_pairs(pairs: Iterable[str], option_name: str) -> Dict[str, Any]:
    """Parse repeated ``key=value`` options, typing values as YAML scalars."""
    parsed: Dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw_value = pair.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"expected key=value, got '{pair}'", param_hint=option_name)
        parsed[key.strip()] = yaml.safe_load(raw_value) if raw_value else ""
    return parsed


def render_rows(rows: RowSet, title: str | None = None) -> None:
    """Print a row set as a rich table."""
    if rows.is_empty:
        console.print("[yellow]No rows returned[/yellow]")
        return

    table = Table(title=title, show_header=True, header_style="bold magenta")
    for column in rows.columns:
        table.add_column(str(column), style="cyan")
    for row in rows:
        table.add_row(*("NULL" if row.get(c) is None else str(row.get(c)) for c in rows.columns))

    console.print(table)
    console.print(f"\n{rows.row_count} row(s)")
