"""Pydantic models for the non-task parts of the manifest."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..core.platform import Platform
from ..utils.logging import ManifestValidationError


class WorkspaceSchema(BaseModel):
    """The ``[workspace]`` (or ``[project]``) table."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str | None = Field(default=None, description="Name of the project")
    version: str | None = Field(default=None, description="Project version")
    description: str | None = Field(default=None, description="Short description")
    platforms: list[Platform] = Field(
        default_factory=list, description="Platforms the project supports"
    )


class FeatureSchema(BaseModel):
    """A ``[feature.<name>]`` table, without its tasks."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    platforms: list[Platform] | None = Field(
        default=None, description="Platforms this feature is restricted to"
    )
    system_requirements: dict[str, Any] = Field(
        default_factory=dict,
        alias="system-requirements",
        description="Virtual packages the feature needs on the machine",
    )


class EnvironmentSchema(BaseModel):
    """An entry of the ``[environments]`` table."""

    model_config = ConfigDict(populate_by_name=True)

    features: list[str] = Field(default_factory=list)
    no_default_feature: bool = Field(default=False, alias="no-default-feature")


def validate_model(model: type[BaseModel], data: Any, where: str) -> Any:
    """Validate ``data`` against ``model``, raising ManifestValidationError."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ManifestValidationError(
            f"invalid {where}: {e}", context={"section": where}
        ) from e
