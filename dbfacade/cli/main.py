"""Main CLI entry point for dbfacade."""

from __future__ import annotations

import click

from dbfacade import __version__
from dbfacade.cli.commands import register_commands
from dbfacade.cli.commands.configuration import config_group
from dbfacade.cli.commands.database import db_group
from dbfacade.cli.utils import console
from dbfacade.config.models import EnvironmentSettings
from dbfacade.diagnostics import configure_logging


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version information")
@click.option("--config", type=click.Path(exists=True), help="Path to configuration file")
@click.option("--backend", "-b", help="Backend name from the configuration file")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(
    ctx: click.Context,
    version: bool,
    config: str,
    backend: str,
    verbose: bool,
) -> None:
    """dbfacade - one CRUD surface over SQL, MongoDB and Redis backends."""
    ctx.ensure_object(dict)
    ctx.obj.update(
        {
            "config": config,
            "backend": backend,
            "verbose": verbose,
        }
    )

    configure_logging("DEBUG" if verbose else EnvironmentSettings().log_level)

    if version:
        console.print(f"dbfacade v{__version__}")
        return

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


COMMAND_REGISTRY = [
    db_group,
    config_group,
]

register_commands(cli, COMMAND_REGISTRY)


if __name__ == "__main__":
    cli()
