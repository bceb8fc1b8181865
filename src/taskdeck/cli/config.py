"""Configuration management commands."""

import json

import click

from ..config.loader import ENV_PREFIX, SEARCH_PATHS, TaskdeckConfig, save_config
from .utils import error_handler, is_quiet


@click.group()
def config() -> None:
    """Manage taskdeck's own settings."""
    pass


@config.command()
@click.pass_context
@error_handler
def show(ctx: click.Context) -> None:
    """Show current configuration."""
    settings: TaskdeckConfig = ctx.obj["settings"]
    click.echo(json.dumps(settings.model_dump(mode="json"), indent=2))


@config.command()
@click.argument("key")
@click.pass_context
@error_handler
def get(ctx: click.Context, key: str) -> None:
    """Get a configuration value."""
    settings: TaskdeckConfig = ctx.obj["settings"]
    if key not in TaskdeckConfig.model_fields:
        raise click.BadParameter(f"Unknown configuration key: {key}", param_hint="KEY")
    value = settings.model_dump(mode="json")[key]
    click.echo(f"{key}: {value}")


@config.command()
@click.option("--path", help="Custom path for config file")
@click.pass_context
@error_handler
def init(ctx: click.Context, path: str | None) -> None:
    """Initialize configuration file with defaults."""
    saved_path = save_config(TaskdeckConfig(), path)
    if not is_quiet(ctx):
        click.echo(f"Configuration initialized at: {saved_path}")


@config.command()
def locations() -> None:
    """Show configuration file search locations."""
    click.echo("Configuration file search locations (in order):")
    for i, location in enumerate(SEARCH_PATHS, 1):
        shown = str(location) if str(location).startswith("~") else f"./{location}"
        click.echo(f"  {i}. {shown}")

    click.echo(f"\nEnvironment variables ({ENV_PREFIX}*):")
    for field in TaskdeckConfig.model_fields:
        click.echo(f"  {ENV_PREFIX}{field.upper()}")
