"""In-memory manifest document and the task mutation protocol.

The manifest is kept as a tomlkit document so that comments and formatting
outside the edited entries survive a round trip. Mutations only change the
document; ``save`` writes it back.
"""

from collections.abc import Mapping, MutableMapping
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import TOMLKitError
from tomlkit.toml_document import TOMLDocument

from ..core.feature import FeatureName
from ..core.platform import Platform
from ..core.serialize import task_from_item, task_to_item
from ..core.task import Task, TaskName
from ..utils.logging import (
    LogContext,
    ManifestNotFoundError,
    ManifestParseError,
    ManifestValidationError,
    ManifestWriteError,
    TaskNotFoundError,
    audit_log,
    get_logger,
)
from .schema import EnvironmentSchema, FeatureSchema, WorkspaceSchema, validate_model

logger = get_logger(__name__, LogContext.MANIFEST)

PYPROJECT_FILENAME = "pyproject.toml"


def task_table_keys(platform: Platform | None, feature: FeatureName) -> list[str]:
    """Key path of the task table for a platform/feature scope."""
    keys: list[str] = []
    if not feature.is_default:
        keys += ["feature", str(feature.name)]
    if platform is not None:
        keys += ["target", str(platform)]
    keys.append("tasks")
    return keys


class Manifest:
    """A parsed manifest file."""

    def __init__(self, path: Path, document: TOMLDocument):
        self.path = path
        self.document = document
        self.workspace: WorkspaceSchema = validate_model(
            WorkspaceSchema, self._workspace_data(), "workspace table"
        )

    @classmethod
    def from_str(cls, path: Path, contents: str) -> "Manifest":
        try:
            document = tomlkit.parse(contents)
        except TOMLKitError as e:
            raise ManifestParseError(
                f"failed to parse {path}: {e}", context={"path": str(path)}
            ) from e
        return cls(path, document)

    @classmethod
    def from_path(cls, path: Path) -> "Manifest":
        try:
            contents = path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise ManifestNotFoundError(
                f"manifest not found: {path}", context={"path": str(path)}
            ) from e
        return cls.from_str(path, contents)

    @property
    def is_pyproject(self) -> bool:
        return self.path.name == PYPROJECT_FILENAME

    @property
    def root(self) -> MutableMapping[str, Any]:
        """The table that holds the taskdeck configuration."""
        if not self.is_pyproject:
            return self.document
        tool = self.document.get("tool")
        if not isinstance(tool, MutableMapping) or not isinstance(
            tool.get("taskdeck"), MutableMapping
        ):
            raise ManifestValidationError(
                f"{self.path} has no [tool.taskdeck] table",
                context={"path": str(self.path)},
            )
        return tool["taskdeck"]

    def _workspace_data(self) -> dict[str, Any]:
        root = self.root
        data: dict[str, Any] = {}
        if self.is_pyproject:
            project = self.document.get("project")
            if isinstance(project, Mapping):
                for key in ("name", "version", "description"):
                    if key in project:
                        data[key] = project[key]
        section = root.get("workspace", root.get("project"))
        if section is not None:
            if not isinstance(section, Mapping):
                raise ManifestValidationError("the workspace section must be a table")
            data.update(section.unwrap() if hasattr(section, "unwrap") else section)
        return data

    # Table navigation

    def _get_table(self, keys: list[str]) -> MutableMapping[str, Any] | None:
        current: Any = self.root
        for i, key in enumerate(keys):
            current = current.get(key)
            if current is None:
                return None
            if not isinstance(current, MutableMapping):
                raise ManifestValidationError(
                    f"'{'.'.join(keys[: i + 1])}' is not a table",
                    context={"keys": keys},
                )
        return current

    def _get_or_insert_table(self, keys: list[str]) -> MutableMapping[str, Any]:
        current: MutableMapping[str, Any] = self.root
        for i, key in enumerate(keys):
            if key not in current:
                is_last = i == len(keys) - 1
                current[key] = tomlkit.table(is_super_table=not is_last)
            child = current[key]
            if not isinstance(child, MutableMapping):
                raise ManifestValidationError(
                    f"'{'.'.join(keys[: i + 1])}' is not a table",
                    context={"keys": keys},
                )
            current = child
        return current

    # Tasks

    def tasks(
        self, platform: Platform | None, feature: FeatureName
    ) -> dict[TaskName, Task]:
        """Tasks defined in exactly this platform/feature scope."""
        table = self._get_table(task_table_keys(platform, feature))
        if table is None:
            return {}
        return {
            TaskName(str(name)): task_from_item(name, value)
            for name, value in table.items()
        }

    @audit_log("add task")
    def add_task(
        self,
        name: TaskName,
        task: Task,
        platform: Platform | None,
        feature: FeatureName,
    ) -> None:
        """Insert or overwrite a task in the given scope."""
        table = self._get_or_insert_table(task_table_keys(platform, feature))
        table[name] = task_to_item(task)
        logger.debug(
            f"Set task '{name}'",
            task_name=name,
            platform=str(platform) if platform else None,
            feature=str(feature),
        )

    @audit_log("remove task")
    def remove_task(
        self, name: TaskName, platform: Platform | None, feature: FeatureName
    ) -> None:
        """Remove a task from the given scope."""
        table = self._get_table(task_table_keys(platform, feature))
        if table is None or name not in table:
            scope = f"platform '{platform}'" if platform else f"feature '{feature}'"
            raise TaskNotFoundError(
                f"task '{name}' does not exist for {scope}",
                context={
                    "task": name,
                    "platform": str(platform) if platform else None,
                    "feature": str(feature),
                },
            )
        del table[name]
        logger.debug(f"Removed task '{name}'", task_name=name)

    # Features and environments

    def feature_names(self) -> list[FeatureName]:
        """The default feature followed by every named feature."""
        features = self._get_table(["feature"]) or {}
        return [FeatureName.DEFAULT] + [FeatureName.named(str(n)) for n in features]

    def feature(self, feature: FeatureName) -> FeatureSchema:
        """Platform and system requirement settings of a feature."""
        if feature.is_default:
            data = {
                "platforms": None,
                "system-requirements": self.root.get("system-requirements", {}),
            }
        else:
            table = self._get_table(["feature", str(feature.name)])
            if table is None:
                raise ManifestValidationError(
                    f"feature '{feature}' is not defined",
                    context={"feature": str(feature)},
                )
            data = {k: v for k, v in table.items() if k not in ("tasks", "target")}
        data = {k: v.unwrap() if hasattr(v, "unwrap") else v for k, v in data.items()}
        return validate_model(FeatureSchema, data, f"feature '{feature}'")

    def environments(self) -> dict[str, EnvironmentSchema]:
        """The ``[environments]`` table, as declared."""
        table = self._get_table(["environments"])
        if table is None:
            return {}
        result: dict[str, EnvironmentSchema] = {}
        for name, value in table.items():
            value = value.unwrap() if hasattr(value, "unwrap") else value
            if isinstance(value, list):
                value = {"features": value}
            result[str(name)] = validate_model(
                EnvironmentSchema, value, f"environment '{name}'"
            )
        return result

    # Persistence

    def to_string(self) -> str:
        return tomlkit.dumps(self.document)

    @audit_log("save manifest")
    def save(self) -> None:
        """Write the document back to ``self.path``."""
        try:
            self.path.write_text(self.to_string(), encoding="utf-8")
        except OSError as e:
            raise ManifestWriteError(
                f"failed to write {self.path}: {e}", context={"path": str(self.path)}
            ) from e
