"""Configuration loading and management."""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..utils.logging import ConfigurationError, LogLevel

ENV_PREFIX = "TASKDECK_"


class TaskdeckConfig(BaseModel):
    """Settings of the taskdeck command line tool itself."""

    # Logging
    log_level: LogLevel = Field(default=LogLevel.WARNING, description="Logging level")
    log_file: str | None = Field(default=None, description="Log file path")
    structured_logging: bool = Field(
        default=False, description="Write log records as JSON lines"
    )

    # Manifest discovery
    manifest_env_var_warning: bool = Field(
        default=True,
        description="Warn when TASKDECK_MANIFEST shadows a local manifest",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


SEARCH_PATHS = [
    Path("taskdeck.yaml"),
    Path("taskdeck.yml"),
    Path("~/.config/taskdeck/config.yaml"),
    Path("~/.taskdeck.yaml"),
]


def find_config_file(custom_path: str | None = None) -> Path | None:
    """Find configuration file in standard locations."""
    if custom_path:
        path = Path(custom_path).expanduser()
        if path.exists():
            return path
        raise ConfigurationError(f"Config file not found: {custom_path}")

    for candidate in SEARCH_PATHS:
        path = candidate.expanduser()
        if not path.is_absolute():
            path = Path.cwd() / path
        if path.exists():
            return path

    return None


def load_config_file(config_path: Path) -> dict[str, Any]:
    """Load configuration from YAML file."""
    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config file {config_path}: {e}")
    except OSError as e:
        raise ConfigurationError(f"Failed to read config file {config_path}: {e}")

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping")
    return data


def load_env_vars() -> dict[str, Any]:
    """Load configuration from environment variables."""
    config: dict[str, Any] = {}

    env_mappings = {
        f"{ENV_PREFIX}LOG_LEVEL": "log_level",
        f"{ENV_PREFIX}LOG_FILE": "log_file",
        f"{ENV_PREFIX}STRUCTURED_LOGGING": "structured_logging",
        f"{ENV_PREFIX}MANIFEST_ENV_VAR_WARNING": "manifest_env_var_warning",
    }

    for env_var, config_key in env_mappings.items():
        if env_var in os.environ:
            env_value = os.environ[env_var]
            if config_key in ("structured_logging", "manifest_env_var_warning"):
                config[config_key] = env_value.lower() in ("true", "1", "yes", "on")
            else:
                config[config_key] = env_value

    return config


def load_config(
    config_path: str | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> TaskdeckConfig:
    """Load configuration from file and environment variables.

    Precedence order (highest to lowest):
    1. CLI flag overrides
    2. Environment variables
    3. Configuration file
    4. Default values
    """
    config_data: dict[str, Any] = {}

    config_file = find_config_file(config_path)
    if config_file:
        config_data.update(load_config_file(config_file))

    config_data.update(load_env_vars())

    if cli_overrides:
        config_data.update(cli_overrides)

    try:
        return TaskdeckConfig(**config_data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}")


def save_config(config: TaskdeckConfig, config_path: str | None = None) -> Path:
    """Save configuration to file."""
    if config_path:
        path = Path(config_path).expanduser()
    else:
        config_dir = Path.home() / ".config" / "taskdeck"
        config_dir.mkdir(parents=True, exist_ok=True)
        path = config_dir / "config.yaml"

    with open(path, "w") as f:
        yaml.dump(
            config.model_dump(mode="json"), f, default_flow_style=False, sort_keys=True
        )

    return path
