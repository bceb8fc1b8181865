"""Turn ``task add`` / ``task alias`` arguments into task values."""

from collections.abc import Iterable, Sequence
from pathlib import Path

from ..utils.logging import InvalidArgumentError
from .task import Alias, Execute, Plain, Single, Task, TaskName, quote


def parse_key_val(value: str) -> tuple[str, str]:
    """Parse a single ``KEY=value`` pair.

    Only the first ``=`` separates key from value, so values may contain
    ``=`` themselves.
    """
    key, sep, rest = value.partition("=")
    if not sep:
        raise InvalidArgumentError(
            f"invalid KEY=value: no `=` found in `{value}`",
            context={"argument": value},
        )
    return key, rest


def validate_task_name(name: str) -> TaskName:
    """Check a task name given on the command line.

    Names end up space separated in ``list --machine-readable``, so they
    may not be empty or contain whitespace.
    """
    if not name or any(ch.isspace() for ch in name):
        raise InvalidArgumentError(
            f"invalid task name '{name}': task names cannot be empty or "
            "contain whitespace",
            context={"task": name},
        )
    return TaskName(name)


def join_commands(commands: Sequence[str]) -> str:
    """Join command tokens into one command line.

    A single token is taken verbatim; several tokens are quoted one by one.
    """
    if len(commands) == 1:
        return commands[0]
    return " ".join(quote(arg) for arg in commands)


def task_from_add_args(
    commands: Sequence[str],
    depends_on: Sequence[str] | None = None,
    cwd: Path | None = None,
    env: Iterable[tuple[str, str]] = (),
    clean_env: bool = False,
) -> Task:
    """Pick the task shape for the given ``task add`` arguments.

    - blank command with dependencies: ``Alias``
    - no dependencies, cwd or env: ``Plain``
    - anything else: ``Execute``
    """
    names = [TaskName(name) for name in depends_on or ()]
    if len(commands) > 1 and not commands[0].strip():
        raise InvalidArgumentError(
            "the command starts with an empty argument followed by "
            f"{list(commands[1:])}; pass every dependency with its own "
            "--depends-on",
            context={"commands": list(commands)},
        )
    cmd = join_commands(commands)
    pairs = list(env)

    if not cmd.strip() and names:
        return Alias(depends_on=names)

    if not names and cwd is None and not pairs:
        return Plain(cmd)

    env_map: dict[str, str] | None = None
    if pairs:
        env_map = {}
        for key, val in pairs:
            env_map[key] = val

    return Execute(
        cmd=Single(cmd),
        depends_on=names,
        inputs=None,
        outputs=None,
        cwd=cwd,
        env=env_map,
        clean_env=clean_env,
    )


def task_from_alias_args(depends_on: Sequence[str]) -> Alias:
    """Build the task for ``task alias``."""
    if not depends_on:
        raise InvalidArgumentError("an alias needs at least one task to depend on")
    return Alias(depends_on=[TaskName(name) for name in depends_on])
