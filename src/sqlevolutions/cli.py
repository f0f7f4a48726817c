"""Command line interface for sqlevolutions."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from sqlalchemy.engine import make_url

from .config import Config, get_settings
from .db import Database
from .engine import EvolutionEngine
from .errors import EvolutionError
from .loader import load, load_from_files
from .schema import resolve_schema

app = typer.Typer(help="Checksum-verified SQL schema evolutions.")
console = Console()
err_console = Console(stderr=True)


@dataclass(frozen=True)
class CliOptions:
    dsn: str
    config: Config
    folder: Path


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@contextmanager
def _open_engine(options: CliOptions, folder: Path | None) -> Iterator[EvolutionEngine]:
    database = Database(options.dsn)
    try:
        with database.connect() as connection:
            if folder is None:
                yield load([], connection, options.config)
            else:
                yield load_from_files(folder, connection, options.config)
    finally:
        database.close()


@app.callback()
def main(
    ctx: typer.Context,
    dsn: Optional[str] = typer.Option(None, "--dsn", "-d", help="SQLAlchemy database URL."),
    schema: Optional[str] = typer.Option(None, "--schema", "-s", help="Database schema."),
    allow_down: bool = typer.Option(
        False,
        "--allow-down",
        help="Apply down evolutions. DON'T DO THIS IN PRODUCTION !!!",
    ),
    ignore_down: bool = typer.Option(
        False,
        "--ignore-down",
        help="Skip pending down evolutions and only apply ups.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every executed statement."),
) -> None:
    """Global options, falling back to EVOLUTIONS_* environment variables."""

    settings = get_settings()
    _configure_logging(verbose)
    try:
        config = Config(
            schema=schema or settings.schema,
            allow_down=allow_down or settings.allow_down,
            ignore_down=ignore_down or settings.ignore_down,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--schema") from exc
    ctx.obj = CliOptions(dsn=dsn or settings.db_dsn, config=config, folder=settings.folder)


@app.command()
def apply(
    ctx: typer.Context,
    folder: Optional[Path] = typer.Argument(None, help="Folder with evolutions."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask before applying down evolutions."),
) -> None:
    """Apply the evolutions of a folder to the database."""

    options: CliOptions = ctx.obj
    try:
        with _open_engine(options, folder or options.folder) as engine:
            if options.config.allow_down and not yes and engine.has_down():
                confirmed = typer.confirm(
                    "You're about to apply down evolutions.\n"
                    "-- THIS WILL DESTROY DATA --\n"
                    " Are you sure?",
                    default=False,
                )
                if not confirmed:
                    console.print("Aborted")
                    raise typer.Exit(code=2)
            engine.apply()
            snapshot = engine.status()
    except EvolutionError as exc:
        console.print(f"[bold red]{type(exc).__name__}[/bold red]: {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    console.print(
        f"[bold green]Up to date[/bold green] at version {snapshot.current_version}"
        f" [dim]({snapshot.current_checksum})[/dim]"
    )


@app.command("down-to")
def down_to(
    ctx: typer.Context,
    version: int = typer.Argument(..., help="Version to rollback to."),
) -> None:
    """Roll the database back to VERSION using the recorded down statements."""

    options: CliOptions = ctx.obj
    try:
        with _open_engine(options, None) as engine:
            engine.down_to(version)
            current = engine.get_current()
    except EvolutionError as exc:
        console.print(f"[bold red]{type(exc).__name__}[/bold red]: {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    console.print(f"[bold yellow]Downgraded[/bold yellow] to version {current.version if current else 0}")


@app.command()
def status(
    ctx: typer.Context,
    folder: Optional[Path] = typer.Argument(None, help="Folder with evolutions."),
) -> None:
    """Compare the database with the evolutions of a folder."""

    options: CliOptions = ctx.obj
    try:
        with _open_engine(options, folder or options.folder) as engine:
            snapshot = engine.status()
            records = engine.get_records()
            schema = engine.config.schema
    except EvolutionError as exc:
        console.print(f"[bold red]{type(exc).__name__}[/bold red]: {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    console.print(f"Current version: {snapshot.current_version} [dim]({snapshot.current_checksum})[/dim]")
    console.print(f"Requested version: {snapshot.requested_version} [dim]({snapshot.requested_checksum})[/dim]")
    if snapshot.has_down:
        console.print("[bold red]Down evolutions pending[/bold red]")
    console.print(f"Pending up evolutions: {snapshot.pending}")

    table = Table(title=f"{schema}.evolutions")
    table.add_column("version", justify="right")
    table.add_column("checksum")
    table.add_column("applied")
    table.add_column("ups", justify="right")
    table.add_column("downs", justify="right")
    for record in records:
        table.add_row(
            str(record.version),
            record.checksum,
            str(record.applied or ""),
            str(len(record.ups)),
            str(len(record.downs or ())),
        )
    console.print(table)


@app.command()
def options(ctx: typer.Context) -> None:
    """Print the effective options."""

    current: CliOptions = ctx.obj
    console.print(
        {
            "dsn": make_url(current.dsn).render_as_string(hide_password=True),
            "schema": resolve_schema(current.config.schema, make_url(current.dsn).get_backend_name()),
            "allow_down": current.config.allow_down,
            "ignore_down": current.config.ignore_down,
            "folder": str(current.folder),
        }
    )


if __name__ == "__main__":  # pragma: no cover
    app()
