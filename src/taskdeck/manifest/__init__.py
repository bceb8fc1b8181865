"""Manifest loading, mutation and environment resolution."""

from .environment import Environment, resolve_environments
from .manifest import Manifest
from .project import Project

__all__ = ["Environment", "Manifest", "Project", "resolve_environments"]
