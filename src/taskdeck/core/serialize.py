"""Conversion between task values and TOML manifest items."""

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.items import Array, InlineTable, Item

from ..utils.logging import ManifestValidationError
from .task import Alias, Execute, Multiple, Plain, Single, Task, TaskName


def _string_array(values: list[str]) -> Array:
    array = tomlkit.array()
    array.extend(str(value) for value in values)
    return array


def task_to_item(task: Task) -> Item:
    """Serialize a task into a TOML value for the manifest.

    ``inputs``, ``outputs`` and ``clean_env`` of an ``Execute`` task are not
    written.
    """
    match task:
        case Plain(command=command):
            return tomlkit.item(command)

        case Execute():
            table: InlineTable = tomlkit.inline_table()
            match task.cmd:
                case Single(command=command):
                    table["cmd"] = command
                case Multiple(args=args):
                    table["cmd"] = _string_array(args)
            if task.depends_on:
                table["depends-on"] = _string_array(task.depends_on)
            if task.cwd is not None:
                table["cwd"] = str(task.cwd)
            if task.env is not None:
                env = tomlkit.inline_table()
                env.update(task.env)
                table["env"] = env
            return table

        case Alias(depends_on=names):
            table = tomlkit.inline_table()
            table["depends-on"] = _string_array(names)
            return table

        case _:
            raise TypeError(f"cannot serialize {task!r} as a task")


def _str_list(name: str, key: str, value: Any) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return [str(v) for v in value]
    raise ManifestValidationError(
        f"task '{name}': '{key}' must be a string or a list of strings",
        context={"task": name, "key": key},
    )


def task_from_item(name: str, value: Any) -> Task:
    """Parse a manifest value into a task."""
    if isinstance(value, Item):
        value = value.unwrap()

    if isinstance(value, str):
        return Plain(str(value))

    if not isinstance(value, Mapping):
        raise ManifestValidationError(
            f"task '{name}' must be a string or a table",
            context={"task": name},
        )

    raw_depends_on = value.get("depends-on", value.get("depends_on"))
    names = (
        [TaskName(n) for n in _str_list(name, "depends-on", raw_depends_on)]
        if raw_depends_on is not None
        else []
    )

    if "cmd" not in value:
        if not names:
            raise ManifestValidationError(
                f"task '{name}' needs either a 'cmd' or a non-empty 'depends-on'",
                context={"task": name},
            )
        return Alias(depends_on=names)

    raw_cmd = value["cmd"]
    if isinstance(raw_cmd, str):
        cmd: Single | Multiple = Single(str(raw_cmd))
    else:
        cmd = Multiple(_str_list(name, "cmd", raw_cmd))

    env = value.get("env")
    if env is not None:
        if not isinstance(env, Mapping):
            raise ManifestValidationError(
                f"task '{name}': 'env' must be a table",
                context={"task": name},
            )
        env = {str(k): str(v) for k, v in env.items()}

    inputs = value.get("inputs")
    outputs = value.get("outputs")
    cwd = value.get("cwd")

    return Execute(
        cmd=cmd,
        depends_on=names,
        inputs=_str_list(name, "inputs", inputs) if inputs is not None else None,
        outputs=_str_list(name, "outputs", outputs) if outputs is not None else None,
        cwd=Path(str(cwd)) if cwd is not None else None,
        env=env or None,
        clean_env=bool(value.get("clean-env", False)),
    )
