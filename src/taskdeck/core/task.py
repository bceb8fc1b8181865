"""Task data model.

A task is one of three shapes:

- ``Plain``: a single literal command line
- ``Execute``: a command with dependencies, working directory and environment
- ``Alias``: no command of its own, only a list of tasks it depends on

``Task`` is a closed union of these; consumers dispatch on it with ``match``.
"""

import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import NewType

import click

TaskName = NewType("TaskName", str)


def fancy_display(name: str) -> str:
    """Render a task name for the terminal."""
    return click.style(name, fg="blue", bold=True)


def quote(arg: str) -> str:
    """Quote a single command line argument for a POSIX-like shell."""
    return shlex.quote(arg)


@dataclass(frozen=True)
class Single:
    """A command given as one shell line."""

    command: str


@dataclass(frozen=True)
class Multiple:
    """A command given as a list of arguments."""

    args: list[str]


CmdArgs = Single | Multiple


@dataclass(frozen=True)
class Plain:
    command: str


@dataclass(frozen=True)
class Execute:
    cmd: CmdArgs
    depends_on: list[TaskName] = field(default_factory=list)
    inputs: list[str] | None = None
    outputs: list[str] | None = None
    cwd: Path | None = None
    env: dict[str, str] | None = None
    clean_env: bool = False


@dataclass(frozen=True)
class Alias:
    depends_on: list[TaskName]


Task = Plain | Execute | Alias


def depends_on(task: Task) -> list[TaskName]:
    """Return the names the task depends on."""
    match task:
        case Plain():
            return []
        case Execute(depends_on=names) | Alias(depends_on=names):
            return list(names)
        case _:
            raise TypeError(f"not a task: {task!r}")


def as_single_command(task: Task) -> str | None:
    """Return the command line of the task, or None for an alias."""
    match task:
        case Plain(command=command):
            return command
        case Execute(cmd=Single(command=command)):
            return command
        case Execute(cmd=Multiple(args=args)):
            return " ".join(quote(arg) for arg in args)
        case Alias():
            return None
        case _:
            raise TypeError(f"not a task: {task!r}")


def display(task: Task) -> str:
    """Human readable one-line summary used in CLI messages."""
    parts = []
    command = as_single_command(task)
    if command:
        parts.append(command)

    names = depends_on(task)
    if len(names) == 1:
        parts.append(f"depends-on = '{names[0]}'")
    elif names:
        parts.append("depends-on = [" + ", ".join(f"'{n}'" for n in names) + "]")

    return ", ".join(parts)
