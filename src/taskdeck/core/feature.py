"""Feature names used to scope manifest entries."""

import re
from dataclasses import dataclass
from typing import ClassVar

from ..utils.logging import ManifestValidationError

_VALID_NAME = re.compile(r"^[A-Za-z0-9_.-]+$")


@dataclass(frozen=True)
class FeatureName:
    """Either the implicit default feature (``name is None``) or a named one."""

    name: str | None = None

    DEFAULT: ClassVar["FeatureName"]

    @classmethod
    def named(cls, name: str) -> "FeatureName":
        """Build a named feature, validating the name."""
        if not name or not _VALID_NAME.match(name):
            raise ManifestValidationError(
                f"invalid feature name '{name}': only letters, digits, '-', '_' "
                "and '.' are allowed",
                context={"feature": name},
            )
        if name == "default":
            raise ManifestValidationError(
                "the feature name 'default' is reserved for the default feature",
                context={"feature": name},
            )
        return cls(name)

    @classmethod
    def from_option(cls, value: str | None) -> "FeatureName":
        """Map an optional ``--feature`` value to a feature name."""
        if value is None:
            return cls.DEFAULT
        return cls.named(value)

    @property
    def is_default(self) -> bool:
        return self.name is None

    def __str__(self) -> str:
        return self.name if self.name is not None else "default"


FeatureName.DEFAULT = FeatureName()
