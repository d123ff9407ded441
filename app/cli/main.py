"""
Service template CLI — generate new projects from this template.

Usage:
    svc-template create my-service --github-user octocat [--without-kafka]
    svc-template scaffold my-service [--output ./services/my-service]
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from app import __version__
from app.cli.commands import execute_create, execute_scaffold
from app.cli.errors import ScaffoldError
from app.core.observability.logging_config import configure_from_env

_template_option = click.option(
    "--template",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Template root to copy (default: the installed template).",
)
_without_kafka_option = click.option(
    "--without-kafka",
    is_flag=True,
    help="Strip the Kafka event streaming integration.",
)


def _fail(error: Exception) -> None:
    click.secho(f"❌ {error}", fg="red", err=True)
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="svc-template")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
def cli(verbose: bool, debug: bool) -> None:
    """Generate new services from the service template."""
    configure_from_env(
        verbose=verbose, debug=debug, default_level="WARNING", service="svc-template"
    )


@cli.command()
@click.argument("name")
@click.option("--github-user", required=True, help="GitHub user, or org/user for an org repo.")
@click.option("--private", is_flag=True, help="Create a private repository.")
@click.option("--description", default=None, help="Repository description.")
@_without_kafka_option
@_template_option
def create(
    name: str,
    github_user: str,
    private: bool,
    description: str | None,
    without_kafka: bool,
    template: Path | None,
) -> None:
    """Create a GitHub repository and push a new service to it."""
    try:
        result = execute_create(
            name,
            github_user,
            private=private,
            description=description,
            with_events=not without_kafka,
            template=template,
            echo=click.echo,
        )
    except ScaffoldError as e:
        _fail(e)
        return

    click.secho("\n✅ Success! Repository created and pushed to GitHub.", fg="green", bold=True)
    click.echo(f"   Repository URL: {result.repository.html_url}")
    click.echo(f"   Clone URL: {result.repository.ssh_url}")
    click.echo(f"   Branch: {result.branch}")
    if without_kafka:
        click.echo("\nNote: Kafka support has been excluded from this service.")


@cli.command()
@click.argument("name")
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Output directory (default: ./NAME).",
)
@_without_kafka_option
@_template_option
def scaffold(name: str, output: Path | None, without_kafka: bool, template: Path | None) -> None:
    """Generate a new service locally."""
    try:
        target = execute_scaffold(
            name,
            output=output,
            with_events=not without_kafka,
            template=template,
            echo=click.echo,
        )
    except ScaffoldError as e:
        _fail(e)
        return

    click.secho(f"\n✅ Success! Service scaffolded at {target}", fg="green", bold=True)
    click.echo("\nNext steps:")
    click.echo(f"   cd {target}")
    click.echo("   pip install -e '.[test]'")
    click.echo("   pytest")
    click.echo("   python -m app.main serve")


if __name__ == "__main__":
    cli()
