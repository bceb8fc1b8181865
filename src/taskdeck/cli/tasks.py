"""Task management commands."""

from pathlib import Path

import click

from ..core.feature import FeatureName
from ..core.platform import PLATFORM_NAMES, Platform
from ..core.task import TaskName, display, fancy_display
from ..core.translate import (
    parse_key_val,
    task_from_add_args,
    task_from_alias_args,
    validate_task_name,
)
from ..manifest.environment import Environment
from ..manifest.project import Project, discovered_from_env_warning
from ..manifest.virtual_packages import (
    verify_current_platform_has_required_virtual_packages,
)
from ..utils.logging import (
    InvalidArgumentError,
    LogContext,
    UnknownEnvironmentError,
    UnsupportedVirtualPackageError,
    get_logger,
)
from .utils import (
    error_handler,
    output_columns,
    print_heading,
    success_message,
    verbose_echo,
    warning_message,
)

logger = get_logger(__name__, LogContext.CLI)

platform_option = click.option(
    "--platform",
    "-p",
    type=click.Choice(PLATFORM_NAMES),
    help="The platform the task is scoped to",
)


def _parse_env(
    ctx: click.Context, param: click.Parameter, values: tuple[str, ...]
) -> list[tuple[str, str]]:
    try:
        return [parse_key_val(value) for value in values]
    except InvalidArgumentError as e:
        raise click.BadParameter(e.message, ctx=ctx, param=param)


def _parse_task_name(
    ctx: click.Context, param: click.Parameter, value: str
) -> TaskName:
    try:
        return validate_task_name(value)
    except InvalidArgumentError as e:
        raise click.BadParameter(e.message, ctx=ctx, param=param)


def _load_project(ctx: click.Context) -> Project:
    manifest_path = ctx.obj.get("manifest_path") if ctx.obj else None
    project = Project.load_or_else_discover(manifest_path)
    verbose_echo(ctx, f"Using manifest {project.manifest_path}")
    return project


def _warn_on_discovered_from_env(ctx: click.Context) -> None:
    settings = ctx.obj.get("settings") if ctx.obj else None
    if settings is not None and not settings.manifest_env_var_warning:
        return
    message = discovered_from_env_warning(ctx.obj.get("manifest_path"))
    if message:
        warning_message(message)


@click.group()
@click.option(
    "--manifest-path",
    type=click.Path(path_type=Path),
    help="Path to taskdeck.toml, pyproject.toml or the directory holding it",
)
@click.pass_context
def task(ctx: click.Context, manifest_path: Path | None) -> None:
    """Interact with tasks in the project."""
    ctx.ensure_object(dict)
    ctx.obj["manifest_path"] = manifest_path


@task.command(context_settings={"ignore_unknown_options": True})
@click.argument("name", callback=_parse_task_name)
@click.argument("commands", nargs=-1, required=True, type=click.UNPROCESSED)
@click.option(
    "--depends-on",
    multiple=True,
    help="Task this one depends on, repeat the option for every dependency",
)
@platform_option
@click.option("--feature", "-f", help="The feature the task is added to")
@click.option(
    "--cwd",
    type=click.Path(path_type=Path),
    help="Working directory relative to the project root",
)
@click.option(
    "--env",
    "env_pairs",
    multiple=True,
    metavar="KEY=VALUE",
    callback=_parse_env,
    help="Environment variable to set, repeat for more than one",
)
@click.option(
    "--clean-env",
    is_flag=True,
    help="Run the task without inheriting the shell environment",
)
@click.pass_context
@error_handler
def add(
    ctx: click.Context,
    name: TaskName,
    commands: tuple[str, ...],
    depends_on: tuple[str, ...],
    platform: str | None,
    feature: str | None,
    cwd: Path | None,
    env_pairs: list[tuple[str, str]],
    clean_env: bool,
) -> None:
    """Add a command to the project.

    NAME: Task name
    COMMANDS: One or more commands to execute
    """
    project = _load_project(ctx)
    new_task = task_from_add_args(
        commands, depends_on=depends_on, cwd=cwd, env=env_pairs, clean_env=clean_env
    )
    feature_name = FeatureName.from_option(feature)
    target = Platform(platform) if platform else None

    project.manifest.add_task(name, new_task, target, feature_name)
    project.save()

    success_message(ctx, f"Added task `{fancy_display(name)}`: {display(new_task)}")
    _warn_on_discovered_from_env(ctx)


@task.command()
@click.argument("names", nargs=-1, required=True)
@platform_option
@click.option("--feature", "-f", help="The feature the task is removed from")
@click.pass_context
@error_handler
def remove(
    ctx: click.Context,
    names: tuple[str, ...],
    platform: str | None,
    feature: str | None,
) -> None:
    """Remove tasks from the project.

    NAMES: Task names to remove
    """
    project = _load_project(ctx)
    feature_name = FeatureName.from_option(feature)
    target = Platform(platform) if platform else None

    # Check every name before touching the manifest
    to_remove: list[TaskName] = []
    for name in names:
        if name not in project.manifest.tasks(target, feature_name):
            if target is not None:
                warning_message(
                    f"Task '{fancy_display(name)}' does not exist on "
                    f"{click.style(str(target), bold=True)}"
                )
            else:
                warning_message(
                    f"Task `{fancy_display(name)}` does not exist for the "
                    f"`{click.style(str(feature_name), bold=True)}` feature"
                )
            continue
        to_remove.append(TaskName(name))

    for name in to_remove:
        project.manifest.remove_task(name, target, feature_name)
        project.save()
        success_message(ctx, f"Removed task `{fancy_display(name)}`")

    _warn_on_discovered_from_env(ctx)


@task.command()
@click.argument("name", callback=_parse_task_name)
@click.argument("depends_on", nargs=-1, required=True)
@platform_option
@click.pass_context
@error_handler
def alias(
    ctx: click.Context,
    name: TaskName,
    depends_on: tuple[str, ...],
    platform: str | None,
) -> None:
    """Alias another specific command.

    NAME: Alias name
    DEPENDS_ON: Tasks the alias runs
    """
    project = _load_project(ctx)
    new_task = task_from_alias_args(depends_on)
    target = Platform(platform) if platform else None

    project.manifest.add_task(name, new_task, target, FeatureName.DEFAULT)
    project.save()

    success_message(
        ctx,
        f"Added alias `{fancy_display(name)}`: {display(new_task)}",
        marker=click.style("@", fg="blue"),
    )
    _warn_on_discovered_from_env(ctx)


def _runnable_tasks(project: Project) -> set[TaskName]:
    available: set[TaskName] = set()
    for environment in project.environments():
        try:
            verify_current_platform_has_required_virtual_packages(environment)
        except UnsupportedVirtualPackageError as e:
            logger.debug(f"Skipping environment '{environment.name}': {e.message}")
            continue
        available |= environment.get_filtered_tasks()
    return available


def _print_tasks_per_env(environments: list[Environment]) -> None:
    rows = []
    for environment in environments:
        names = ", ".join(
            fancy_display(name) for name in sorted(environment.get_filtered_tasks())
        )
        rows.append((click.style(environment.name, bold=True), names))
    output_columns(rows)


@task.command("list")
@click.option(
    "--summary",
    "-s",
    is_flag=True,
    help="Tasks available for this machine per environment",
)
@click.option(
    "--machine-readable",
    is_flag=True,
    hidden=True,
    help="Space separated task names of all environments, used for completion",
)
@click.option("--environment", "-e", help="The environment the list is generated for")
@click.pass_context
@error_handler
def list_tasks(
    ctx: click.Context,
    summary: bool,
    machine_readable: bool,
    environment: str | None,
) -> None:
    """List all tasks in the project."""
    project = _load_project(ctx)

    if environment is not None:
        explicit = project.environment(environment)
        if explicit is None:
            raise UnknownEnvironmentError(
                f"unknown environment '{environment}'",
                context={"environment": environment},
            )
        available = explicit.get_filtered_tasks()
    else:
        available = _runnable_tasks(project)

    if not available:
        click.echo("No tasks found", err=True)
    elif summary:
        print_heading("Tasks per environment:")
        _print_tasks_per_env(project.environments())
    elif machine_readable:
        click.echo(" ".join(sorted(available)))
    else:
        print_heading("Tasks that can run on this machine:")
        click.echo(", ".join(fancy_display(name) for name in sorted(available)))

    _warn_on_discovered_from_env(ctx)


task.add_command(add, name="a")
task.add_command(remove, name="rm")
task.add_command(remove, name="r")
task.add_command(alias, name="@")
task.add_command(list_tasks, name="ls")
task.add_command(list_tasks, name="l")
