from __future__ import annotations

import sys
from pathlib import Path

import typer

from sqlshift.config import get_settings
from sqlshift.database import Database
from sqlshift.exceptions import ConnectionError
from sqlshift.migration.registry import MigrationRegistry
from sqlshift.reporter import render_migration_table
from sqlshift.utils.logging import configure_logging

app = typer.Typer(help="sqlshift: pooled async SQL execution and online table migrations.")


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}:***@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"pool=({settings.pool_min_idle},{settings.pool_max_size}) "
        f"timeout={settings.connection_timeout}s probe={settings.probe_timeout}s "
        f"checkpoints={'on' if settings.migration_checkpoints else 'off'}"
    )


@app.command()
def ping() -> None:
    """
    Open the pool and run the startup health check.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    try:
        db = Database.connect(settings)
    except ConnectionError as exc:
        typer.echo(f"Database unreachable: {exc}", err=True)
        raise typer.Exit(code=1)
    with db:
        healthy = db.pool.healthy
    typer.echo("Database reachable." if healthy else "Database pool is degraded.")
    if not healthy:
        raise typer.Exit(code=1)


@app.command()
def migrate(
    file: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        help='JSON list of {"table", "legacy", "target"} migration entries.',
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="List the migrations that would run without connecting.",
    ),
) -> None:
    """
    Register migrations from FILE and run them in order.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    try:
        descriptors = MigrationRegistry().load_descriptors(file)
    except (OSError, ValueError) as exc:
        typer.echo(f"Invalid migration file {file}: {exc}", err=True)
        raise typer.Exit(code=1)

    if dry_run:
        for descriptor in descriptors:
            action = "skip (no changes)" if descriptor.is_noop else "migrate"
            typer.echo(f"{descriptor.table}: {action}")
        return

    try:
        db = Database.connect(settings)
    except ConnectionError as exc:
        typer.echo(f"Database unreachable: {exc}", err=True)
        raise typer.Exit(code=1)
    with db:
        for descriptor in descriptors:
            db.create_migration(
                descriptor.table, descriptor.legacy_definition, descriptor.target_definition
            )
        outcomes = db.migrate()
    render_migration_table(outcomes)
    if any(not outcome.succeeded for outcome in outcomes):
        raise typer.Exit(code=1)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
