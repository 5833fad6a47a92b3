# ruff: noqa: I001
"""CLI for the ``cnab_import`` package.

Typer-based console interface over :mod:`cnab_import.importer` and
:mod:`cnab_import.stores`. ``DATABASE_URL`` (and ``CNAB_IMPORT_LOG_LEVEL``)
may come from a local ``.env``, loaded with ``python-dotenv`` before any
command runs. Business logic lives in the library modules; this module only
renders results.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from .logging_setup import configure_logging

app = typer.Typer(
    name="cnab",
    help="Import CNAB fixed-width transaction files and inspect stores.",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)

DatabaseUrlOption = Annotated[
    str | None,
    typer.Option("--database-url", help="Override DATABASE_URL (falls back to env var)."),
]


@app.callback()
def _root() -> None:
    """Load ``.env`` from the working directory and configure logging."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


@app.command("init-db")
def init_db(database_url: DatabaseUrlOption = None) -> None:
    """Create the stores/transactions tables if they do not exist."""

    from db import create_schema
    from db.client import get_engine

    try:
        engine = get_engine(database_url=database_url)
    except RuntimeError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    create_schema(engine)
    console.print("[green]Schema ready.[/green]")


@app.command("import")
def import_file(
    path: Annotated[Path, typer.Argument(help="CNAB text file to import")],
    database_url: DatabaseUrlOption = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the raw result as JSON.")] = False,
) -> None:
    """Import one CNAB file; exits with status 1 when nothing was imported."""

    from .importer import import_cnab_file

    if not path.is_file():
        err_console.print(f"[red]Error:[/red] File not found: {path}")
        raise typer.Exit(1)

    try:
        result = import_cnab_file(path, database_url=database_url)
    except RuntimeError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    if as_json:
        typer.echo(result.model_dump_json(indent=2))
    elif result.success:
        console.print(
            f"[green]CNAB file processed successfully![/green] "
            f"{result.imported_count} transactions imported from "
            f"{result.stores_count} store(s).",
            soft_wrap=True,
        )
    else:
        err_console.print(f"[red]Import failed with {len(result.errors)} error(s):[/red]")
        for error in result.errors:
            err_console.print(f"  - {error}", markup=False, soft_wrap=True)

    if not result.success:
        raise typer.Exit(1)


@app.command("stores")
def show_stores(database_url: DatabaseUrlOption = None) -> None:
    """List stores with their owner, transaction count and balance."""

    from db.client import session_scope
    from .stores import list_stores

    table = Table(title="Stores")
    table.add_column("Store")
    table.add_column("Owner")
    table.add_column("Transactions", justify="right")
    table.add_column("Balance", justify="right")

    try:
        with session_scope(database_url=database_url) as session:
            for store in list_stores(session):
                table.add_row(
                    store.name or "(no name)",
                    store.owner,
                    str(len(store.transactions)),
                    f"{store.balance:.2f}",
                )
    except RuntimeError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    console.print(table)


if __name__ == "__main__":  # pragma: no cover
    app()
