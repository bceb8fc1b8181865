"""Configuration management module."""

from .loader import TaskdeckConfig, find_config_file, load_config, save_config

__all__ = ["TaskdeckConfig", "load_config", "save_config", "find_config_file"]
