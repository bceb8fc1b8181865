"""CLI utilities for output formatting and common functionality."""

import sys
from collections.abc import Callable
from functools import wraps
from typing import Any

import click

from ..utils.logging import LogContext, TaskdeckException, get_logger

logger = get_logger(__name__, LogContext.CLI)


def error_handler(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator turning taskdeck errors into a message and an exit code."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except (click.ClickException, click.Abort, click.exceptions.Exit):
            raise
        except TaskdeckException as e:
            logger.error(
                f"{func.__name__} failed: {e.message}", error_context=e.context
            )
            click.echo(click.style(f"Error: {e.message}", fg="red"), err=True)
            sys.exit(e.exit_code)
        except Exception as e:
            logger.error(f"Unexpected error in {func.__name__}", exception=e)
            click.echo(click.style(f"Unexpected error: {e}", fg="red"), err=True)
            sys.exit(1)

    return wrapper


def is_quiet(ctx: click.Context) -> bool:
    return bool(ctx.obj and ctx.obj.get("quiet"))


def success_message(ctx: click.Context, message: str, marker: str = "✓") -> None:
    """Display a success message on stderr unless quiet."""
    if not is_quiet(ctx):
        click.echo(f"{click.style(marker, fg='green')} {message}", err=True)


def warning_message(message: str) -> None:
    """Display a non-fatal problem on stderr."""
    click.echo(f"{click.style('✗', fg='red')} {message}", err=True)


def print_heading(value: str) -> None:
    """Print a bold heading underlined with dashes."""
    click.echo(click.style(value, bold=True))
    click.echo("-" * len(value))


def output_columns(rows: list[tuple[str, str]], separator: str = " : ") -> None:
    """Print two columns with the first one padded to a common width."""
    if not rows:
        return
    width = max(len(click.unstyle(left)) for left, _ in rows)
    for left, right in rows:
        padding = " " * (width - len(click.unstyle(left)))
        click.echo(f"{left}{padding}{separator}{right}")


def verbose_echo(ctx: click.Context, message: str) -> None:
    """Echo message only if verbose mode is enabled."""
    if ctx.obj and ctx.obj.get("verbose"):
        click.echo(click.style(f"[VERBOSE] {message}", fg="blue"), err=True)
