"""Database CLI commands."""

from __future__ import annotations

from typing import Optional, Tuple

import click
from rich.markup import escape
from rich.table import Table

from dbfacade.cli.utils import console, parse_pairs, render_rows
from dbfacade.db.base import RowSet
from dbfacade.exceptions import EXECUTION_ERRORS, FacadeError
from dbfacade.facade import Database


def _open(ctx: click.Context, backend: Optional[str]) -> Database:
    return Database.from_config_file(ctx.obj.get("config"), backend or ctx.obj.get("backend"))


@click.group(name="db")
@click.pass_context
def db_group(ctx: click.Context) -> None:
    """🗄️  Run operations against a configured backend."""
    pass


@db_group.command(name="test")
@click.option("--backend", "-b", help="Backend to test (default: default backend)")
@click.pass_context
def test_connection_command(ctx: click.Context, backend: Optional[str]) -> None:
    """Open a connection and report the driver class."""
    try:
        with _open(ctx, backend) as database:
            database.get_connection()
            console.print(
                f"[green]✅ Connected[/green] driver=[cyan]{database.get_driver()}[/cyan] "
                f"class=[cyan]{database.driver_class.value}[/cyan]"
            )
    except FacadeError as exc:
        console.print(f"[red]Error: {escape(str(exc))}[/red]")
        raise SystemExit(1) from exc


@db_group.command(name="info")
@click.option("--backend", "-b", help="Backend to describe (default: default backend)")
@click.pass_context
def info_command(ctx: click.Context, backend: Optional[str]) -> None:
    """Show the configuration of a backend without connecting."""
    try:
        database = _open(ctx, backend)
        table = Table(show_header=False, box=None)
        table.add_column("Property", style="cyan", width=15)
        table.add_column("Value", style="green")
        for key, value in database.config.masked().items():
            if value not in (None, "", {}):
                table.add_row(f"{key.replace('_', ' ').title()}:", str(value))
        table.add_row("Driver Class:", database.driver_class.value)
        console.print(table)
    except FacadeError as exc:
        console.print(f"[red]Error: {escape(str(exc))}[/red]")
        raise SystemExit(1) from exc


@db_group.command(name="query")
@click.argument("sql")
@click.option("--param", "-p", "params", multiple=True, help="Named parameter as key=value")
@click.option("--backend", "-b", help="Backend to query (default: default backend)")
@click.pass_context
def query_command(ctx: click.Context, sql: str, params: Tuple[str, ...], backend: Optional[str]) -> None:
    """Run a raw SQL statement on a relational backend."""
    bound = parse_pairs(params, "--param")
    try:
        with _open(ctx, backend) as database:
            outcome = database.raw_query(sql, bound)
        if isinstance(outcome, RowSet):
            render_rows(outcome)
        else:
            console.print(f"[green]{outcome.count} row(s) affected[/green]")
    except (FacadeError, *EXECUTION_ERRORS) as exc:
        console.print(f"[red]Error: {escape(str(exc))}[/red]")
        raise SystemExit(1) from exc


@db_group.command(name="select")
@click.argument("table")
@click.option("--where", "-w", "conditions", multiple=True, help="Condition as column=value")
@click.option("--columns", "-c", help="Comma separated columns to return")
@click.option("--order", "-o", help="Order expression, e.g. 'age DESC'")
@click.option("--limit", "-l", type=int, help="Maximum number of rows")
@click.option("--offset", type=int, help="Rows to skip (requires --limit)")
@click.option("--backend", "-b", help="Backend to query (default: default backend)")
@click.pass_context
def select_command(
    ctx: click.Context,
    table: str,
    conditions: Tuple[str, ...],
    columns: Optional[str],
    order: Optional[str],
    limit: Optional[int],
    offset: Optional[int],
    backend: Optional[str],
) -> None:
    """Select rows or documents from a table or collection."""
    where = parse_pairs(conditions, "--where")
    try:
        with _open(ctx, backend) as database:
            rows = database.select(
                table, where, columns=columns, order=order, limit=limit, offset=offset
            )
        render_rows(rows, title=table)
    except (FacadeError, *EXECUTION_ERRORS) as exc:
        console.print(f"[red]Error: {escape(str(exc))}[/red]")
        raise SystemExit(1) from exc
