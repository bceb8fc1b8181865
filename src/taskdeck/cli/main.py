"""Main CLI entry point for taskdeck."""

from pathlib import Path

import click

from .. import __version__
from ..config.loader import load_config
from ..utils.logging import TaskdeckException, setup_logging
from .config import config
from .tasks import task


@click.group()
@click.version_option(version=__version__, prog_name="taskdeck")
@click.option("--config", "-c", "config_path", help="Configuration file path")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    help="Override log_level setting",
)
@click.pass_context
def main(
    ctx: click.Context,
    config_path: str | None,
    verbose: bool,
    quiet: bool,
    log_level: str | None,
) -> None:
    """taskdeck - Manage the tasks declared in a project manifest.

    Tasks are named shell commands stored in taskdeck.toml (or the
    [tool.taskdeck] table of pyproject.toml), optionally scoped to a
    platform or a feature.

    Use command groups to organize functionality:
    - task: Add, remove, alias and list tasks
    - config: Manage taskdeck's own settings
    """
    if verbose and quiet:
        raise click.UsageError("Cannot use both --verbose and --quiet options")

    ctx.ensure_object(dict)
    ctx.obj["config"] = config_path
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    cli_overrides = {"log_level": log_level} if log_level else {}
    if verbose and not log_level:
        cli_overrides["log_level"] = "DEBUG"
    ctx.obj["cli_overrides"] = cli_overrides

    try:
        settings = load_config(config_path, cli_overrides)
    except TaskdeckException as e:
        raise click.UsageError(e.message)
    ctx.obj["settings"] = settings

    setup_logging(
        log_level=settings.log_level,
        log_file=Path(settings.log_file).expanduser() if settings.log_file else None,
        enable_structured=settings.structured_logging,
        enable_console=verbose,
    )


main.add_command(task)
main.add_command(config)


if __name__ == "__main__":
    main()
