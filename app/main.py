"""
Task service — CLI entrypoint.

Usage:
    python -m app.main --help
    python -m app.main serve --port 3000
    python -m app.main migrate
"""

from __future__ import annotations

import atexit
import logging
import sys

import click

from app import __version__
from app.adapters.database import Database, run_migrations
from app.adapters.kafka_producer import KafkaEventService, PublishingTaskRepository
from app.adapters.sqlite_repository import SqliteTaskRepository
from app.core.config.loader import ConfigError, load_config
from app.core.config.settings import AppConfig, AppState
from app.core.errors import DomainError
from app.core.interfaces import EventProducer, TaskRepository
from app.core.observability.logging_config import configure_from_env

logger = logging.getLogger(__name__)

SERVICE_NAME = "service_template"


def bootstrap(config: AppConfig) -> AppState:
    """Open storage, apply migrations and wire the application state."""
    logger.info("Bootstrapping %s", SERVICE_NAME)

    db = Database(config.database_url, config.database)
    atexit.register(db.close)
    applied = run_migrations(db)
    logger.info("Database ready (%d migrations applied)", len(applied))

    task_repository: TaskRepository = SqliteTaskRepository(db)

    logger.info("Initializing Kafka event producer")
    event_producer: EventProducer = KafkaEventService(config.kafka_config)
    atexit.register(event_producer.close)
    task_repository = PublishingTaskRepository(task_repository, event_producer)

    app_state = AppState(
        config=config,
        task_repository=task_repository,
        event_producer=event_producer,
    )
    return app_state


def _load(ctx: click.Context) -> AppConfig:
    try:
        return load_config(config_file=ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name=SERVICE_NAME)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Optional YAML config file.",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, debug: bool, config_path: str | None) -> None:
    """Task service — HTTP API over a task store."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path

    configure_from_env(verbose=verbose, debug=debug, default_level="INFO", service=SERVICE_NAME)


@cli.command()
@click.option("--host", default=None, help="Bind address (default: from config).")
@click.option("--port", type=int, default=None, help="Port (default: from config).")
@click.option("--debug", "flask_debug", is_flag=True, help="Enable Flask debug mode.")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None, flask_debug: bool) -> None:
    """Run the HTTP server."""
    from app.ui.web.server import create_app, run_server

    config = _load(ctx)
    try:
        state = bootstrap(config)
    except DomainError as e:
        click.secho(f"❌ Failed to start: {e}", fg="red", err=True)
        sys.exit(1)

    app = create_app(state)
    run_server(
        app,
        host=host or config.server_host,
        port=port or config.server_port,
        debug=flask_debug,
    )


@cli.command()
@click.pass_context
def migrate(ctx: click.Context) -> None:
    """Apply pending database migrations and exit."""
    config = _load(ctx)
    try:
        db = Database(config.database_url, config.database)
        try:
            applied = run_migrations(db)
        finally:
            db.close()
    except DomainError as e:
        click.secho(f"❌ Migration failed: {e}", fg="red", err=True)
        sys.exit(1)

    if applied:
        for name in applied:
            click.secho(f"✅ {name}", fg="green")
    else:
        click.echo("Database is up to date.")


if __name__ == "__main__":
    cli()
