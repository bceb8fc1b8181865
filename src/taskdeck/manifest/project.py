"""Locating, loading and saving the project manifest."""

import os
from pathlib import Path

import tomlkit
from tomlkit.exceptions import TOMLKitError

from ..utils.logging import LogContext, ManifestNotFoundError, get_logger
from .environment import Environment, resolve_environments
from .manifest import PYPROJECT_FILENAME, Manifest

logger = get_logger(__name__, LogContext.MANIFEST)

MANIFEST_FILENAME = "taskdeck.toml"
MANIFEST_ENV_VAR = "TASKDECK_MANIFEST"


def _is_taskdeck_pyproject(path: Path) -> bool:
    try:
        document = tomlkit.parse(path.read_text(encoding="utf-8"))
    except (OSError, TOMLKitError):
        return False
    tool = document.get("tool")
    return isinstance(tool, dict) and "taskdeck" in tool


def find_manifest_in(directory: Path) -> Path | None:
    """The manifest inside ``directory``, if it holds one."""
    candidate = directory / MANIFEST_FILENAME
    if candidate.is_file():
        return candidate
    candidate = directory / PYPROJECT_FILENAME
    if candidate.is_file() and _is_taskdeck_pyproject(candidate):
        return candidate
    return None


def discover_manifest(start: Path | None = None) -> Path | None:
    """Walk up from ``start`` looking for a manifest."""
    start = (start or Path.cwd()).resolve()
    for directory in [start, *start.parents]:
        found = find_manifest_in(directory)
        if found:
            return found
    return None


def _resolve_manifest_path(manifest_path: Path) -> Path:
    path = manifest_path.expanduser()
    if path.is_dir():
        found = find_manifest_in(path)
        if found is None:
            raise ManifestNotFoundError(
                f"no {MANIFEST_FILENAME} or {PYPROJECT_FILENAME} with a "
                f"[tool.taskdeck] table found in {path}",
                context={"path": str(path)},
            )
        return found
    if not path.is_file():
        raise ManifestNotFoundError(
            f"manifest not found: {path}", context={"path": str(path)}
        )
    return path


class Project:
    """A loaded manifest together with its environments.

    One invocation owns one Project; changes go through ``manifest`` and
    are persisted only when ``save`` is called.
    """

    def __init__(self, manifest: Manifest):
        self.manifest = manifest

    @property
    def root(self) -> Path:
        return self.manifest.path.parent

    @property
    def manifest_path(self) -> Path:
        return self.manifest.path

    @classmethod
    def load(cls, manifest_path: Path) -> "Project":
        path = _resolve_manifest_path(manifest_path)
        logger.debug(f"Loading manifest {path}", manifest_path=str(path))
        return cls(Manifest.from_path(path))

    @classmethod
    def load_or_else_discover(cls, manifest_path: Path | None = None) -> "Project":
        """Load the given manifest, else ``$TASKDECK_MANIFEST``, else search upwards."""
        if manifest_path is not None:
            return cls.load(manifest_path)

        from_env = os.environ.get(MANIFEST_ENV_VAR)
        if from_env:
            return cls.load(Path(from_env))

        discovered = discover_manifest()
        if discovered is None:
            raise ManifestNotFoundError(
                f"could not find {MANIFEST_FILENAME} or a {PYPROJECT_FILENAME} with "
                f"a [tool.taskdeck] table in {Path.cwd()} or any parent directory"
            )
        return cls.load(discovered)

    def save(self) -> None:
        self.manifest.save()

    def environments(self) -> list[Environment]:
        return resolve_environments(self.manifest)

    def environment(self, name: str) -> Environment | None:
        for environment in self.environments():
            if environment.name == name:
                return environment
        return None


def discovered_from_env_warning(manifest_path: Path | None) -> str | None:
    """A warning when the manifest named by the environment shadows a local one."""
    if manifest_path is not None:
        return None
    from_env = os.environ.get(MANIFEST_ENV_VAR)
    if not from_env:
        return None
    local = discover_manifest()
    if local is None:
        return None
    try:
        env_path = _resolve_manifest_path(Path(from_env)).resolve()
    except ManifestNotFoundError:
        return None
    if env_path == local.resolve():
        return None
    return (
        f"Using manifest {env_path} from the {MANIFEST_ENV_VAR} environment "
        f"variable rather than the local {local}"
    )
