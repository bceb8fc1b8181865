"""Environments and the tasks that can run in them."""

from dataclasses import dataclass
from typing import Any

from ..core.feature import FeatureName
from ..core.platform import Platform
from ..core.task import Task, TaskName
from ..utils.logging import LogContext, ManifestValidationError, get_logger
from .manifest import Manifest

logger = get_logger(__name__, LogContext.ENVIRONMENT)

DEFAULT_ENVIRONMENT = "default"


@dataclass
class Environment:
    """A named combination of features from one manifest."""

    name: str
    manifest: Manifest
    features: list[FeatureName]

    def platforms(self) -> list[Platform]:
        """Workspace platforms, narrowed by every feature that restricts them."""
        platforms = list(self.manifest.workspace.platforms)
        for feature in self.features:
            restricted = self.manifest.feature(feature).platforms
            if restricted is not None:
                platforms = [p for p in platforms if p in restricted]
        return platforms

    def best_platform(self, current: Platform | None = None) -> Platform | None:
        """The platform whose tasks are shown on this machine."""
        current = current or Platform.current()
        platforms = self.platforms()
        if not platforms:
            return None
        if current in platforms:
            return current
        # Emulated fallbacks
        if current == Platform.OSX_ARM64 and Platform.OSX_64 in platforms:
            return Platform.OSX_64
        if current == Platform.WIN_ARM64 and Platform.WIN_64 in platforms:
            return Platform.WIN_64
        return platforms[0]

    def system_requirements(self) -> dict[str, Any]:
        requirements: dict[str, Any] = {}
        for feature in self.features:
            requirements.update(self.manifest.feature(feature).system_requirements)
        return requirements

    def tasks(self, platform: Platform | None) -> dict[TaskName, Task]:
        """Tasks of all features, platform specific definitions taking precedence."""
        tasks: dict[TaskName, Task] = {}
        for feature in self.features:
            tasks.update(self.manifest.tasks(None, feature))
            if platform is not None:
                tasks.update(self.manifest.tasks(platform, feature))
        return tasks

    def get_filtered_tasks(self, current: Platform | None = None) -> set[TaskName]:
        """Names of the tasks available in this environment on this machine."""
        return set(self.tasks(self.best_platform(current)))


def resolve_environments(manifest: Manifest) -> list[Environment]:
    """All environments of the manifest, the default one first."""
    known = set(manifest.feature_names())
    declared = manifest.environments()

    environments = []
    if DEFAULT_ENVIRONMENT not in declared:
        environments.append(
            Environment(DEFAULT_ENVIRONMENT, manifest, [FeatureName.DEFAULT])
        )

    for name, spec in declared.items():
        features = [FeatureName.named(f) for f in spec.features]
        for feature in features:
            if feature not in known:
                raise ManifestValidationError(
                    f"environment '{name}' references unknown feature '{feature}'",
                    context={"environment": name, "feature": str(feature)},
                )
        if not spec.no_default_feature:
            features.insert(0, FeatureName.DEFAULT)
        environment = Environment(name, manifest, features)
        if name == DEFAULT_ENVIRONMENT:
            environments.insert(0, environment)
        else:
            environments.append(environment)

    logger.debug(
        "Resolved environments", environments=[env.name for env in environments]
    )
    return environments
