"""taskdeck: define, edit and list the tasks of a project manifest."""

__version__ = "0.1.0"

__all__ = ["__version__"]
