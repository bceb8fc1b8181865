"""Task model, command translation and serialization."""

from .feature import FeatureName
from .platform import Platform
from .serialize import task_from_item, task_to_item
from .task import Alias, Execute, Multiple, Plain, Single, Task, TaskName
from .translate import parse_key_val, task_from_add_args, task_from_alias_args

__all__ = [
    "Alias",
    "Execute",
    "FeatureName",
    "Multiple",
    "Plain",
    "Platform",
    "Single",
    "Task",
    "TaskName",
    "parse_key_val",
    "task_from_add_args",
    "task_from_alias_args",
    "task_from_item",
    "task_to_item",
]
