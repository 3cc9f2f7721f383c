"""Mini README: Entry point CLI for the dailybudget API.

This script exposes a Typer CLI with two commands:
    * run - start the FastAPI application under uvicorn.
    * allowance - compute an owner's allowance straight from the JSON
      ledger document, without starting the server.

Settings come from ``DAILYBUDGET_*`` environment variables when options
are omitted.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
import uvicorn

from dailybudget.allowance import allowance_for_owner
from dailybudget.configuration import get_settings
from dailybudget.dates import parse_date
from dailybudget.errors import ConfigMissing, DateOutOfRange
from dailybudget.ledger import JsonFileLedgerStore
from dailybudget.logging_utils import configure_root_logger

cli = typer.Typer(help="Launch and query the daily budget API.")


@cli.command()
def run(
    host: str = typer.Option(None, help="Host interface to bind."),
    port: int = typer.Option(None, help="Port to listen on."),
    production: bool = typer.Option(
        False, help="Use production server settings (disable auto-reload)."
    ),
    debug: bool = typer.Option(False, help="Log at DEBUG level."),
) -> None:
    """Start the FastAPI application using uvicorn."""

    settings = get_settings()
    effective_host = host or settings.interface_host
    effective_port = port or settings.interface_port
    configure_root_logger(logging.DEBUG if debug else logging.INFO)

    # 0.0.0.0 is a bind address only; browsers need a concrete host.
    browser_host = "127.0.0.1" if effective_host in {"0.0.0.0", "::"} else effective_host
    typer.echo(
        f"Starting daily budget API on {effective_host}:{effective_port}.\n"
        f"Interactive docs at http://{browser_host}:{effective_port}/docs"
    )
    uvicorn.run(
        "dailybudget.interface.web_app:create_application",
        host=effective_host,
        port=effective_port,
        factory=True,
        reload=not production,
    )


@cli.command()
def allowance(
    owner: str = typer.Argument(..., help="Owner (user id) whose ledger is queried."),
    on: str = typer.Argument(..., help="Query date, DD/MM/YYYY or YYYY-MM-DD."),
    data_file: Optional[Path] = typer.Option(None, help="JSON ledger document to read."),
) -> None:
    """Print the daily allowance for ``owner`` on a given date."""

    path = data_file or get_settings().data_file
    store = JsonFileLedgerStore(path)
    try:
        result = allowance_for_owner(store, owner, parse_date(on))
    except (ConfigMissing, DateOutOfRange, ValueError) as error:
        typer.echo(f"Error: {error}", err=True)
        raise typer.Exit(code=1) from error
    typer.echo(f"{result}")


if __name__ == "__main__":
    cli()
