"""
Logging and error handling framework for taskdeck.

This module provides:
- Structured logging configuration
- The taskdeck exception hierarchy
- Context-aware logging utilities
- Audit logging for manifest mutations
"""

import functools
import json
import logging
import sys
import traceback
from collections.abc import Callable
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any


class LogLevel(str, Enum):
    """Log level enumeration for type safety."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogContext(str, Enum):
    """Log context categories for structured logging."""

    CLI = "cli"
    TASK = "task"
    MANIFEST = "manifest"
    ENVIRONMENT = "environment"
    CONFIG = "config"


class TaskdeckException(Exception):
    """Base exception class for all taskdeck errors."""

    exit_code = 1

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)


class InvalidArgumentError(TaskdeckException):
    """A command line value could not be interpreted."""

    exit_code = 2


class TaskNotFoundError(TaskdeckException):
    """The task does not exist in the requested platform/feature scope."""

    pass


class UnknownEnvironmentError(TaskdeckException):
    """An environment name that is not defined in the manifest."""

    pass


class ManifestError(TaskdeckException):
    """Errors related to reading or changing the manifest."""

    pass


class ManifestNotFoundError(ManifestError):
    """No manifest could be located."""

    pass


class ManifestParseError(ManifestError):
    """The manifest is not valid TOML."""

    pass


class ManifestValidationError(ManifestError):
    """The manifest, or a requested change to it, violates the schema."""

    pass


class ManifestWriteError(ManifestError):
    """The manifest could not be written back to disk."""

    pass


class UnsupportedVirtualPackageError(TaskdeckException):
    """The current machine does not provide a required virtual package."""

    pass


class ConfigurationError(TaskdeckException):
    """Errors related to tool configuration and setup."""

    pass


class StructuredFormatter(logging.Formatter):
    """Custom formatter for structured JSON logging."""

    standard_fields = {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "getMessage",
        "context",
        "task_name",
        "manifest_path",
    }

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if hasattr(record, "context"):
            log_data["context"] = record.context

        if getattr(record, "task_name", None):
            log_data["task_name"] = record.task_name

        if getattr(record, "manifest_path", None):
            log_data["manifest_path"] = record.manifest_path

        # Everything passed through `extra` that is not a LogRecord attribute
        for key, value in record.__dict__.items():
            if key not in self.standard_fields and not key.startswith("_"):
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info),
            }

        return json.dumps(log_data, default=str)


class ContextualLogger:
    """Logger with context management for structured logging."""

    def __init__(self, name: str, context: LogContext):
        self.logger = logging.getLogger(name)
        self.context = context.value
        self.task_name: str | None = None
        self.manifest_path: str | None = None

    def set_task_name(self, task_name: str) -> None:
        """Set the task name for all subsequent log messages."""
        self.task_name = task_name

    def set_manifest_path(self, manifest_path: str | Path) -> None:
        """Set the manifest path for all subsequent log messages."""
        self.manifest_path = str(manifest_path)

    def _extra(self, extra_context: dict[str, Any] | None = None) -> dict[str, Any]:
        extra: dict[str, Any] = {"context": self.context}

        if self.task_name:
            extra["task_name"] = self.task_name

        if self.manifest_path:
            extra["manifest_path"] = self.manifest_path

        if extra_context:
            extra.update(extra_context)

        return extra

    def _log(
        self, level: int, message: str, extra_context: dict[str, Any] | None = None
    ) -> None:
        """Internal logging method with context injection."""
        self.logger.log(level, message, extra=self._extra(extra_context))

    def debug(self, message: str, **kwargs) -> None:
        """Log debug message with context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs) -> None:
        """Log info message with context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs) -> None:
        """Log warning message with context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, exception: Exception | None = None, **kwargs) -> None:
        """Log error message with context and optional exception."""
        if exception:
            self.logger.error(message, exc_info=exception, extra=self._extra(kwargs))
        else:
            self._log(logging.ERROR, message, kwargs)


def get_logger(name: str, context: LogContext) -> ContextualLogger:
    """Get a contextual logger instance."""
    return ContextualLogger(name, context)


def setup_logging(
    log_level: str | LogLevel = LogLevel.WARNING,
    log_file: Path | None = None,
    enable_structured: bool = False,
    enable_console: bool = False,
) -> None:
    """
    Setup logging for a taskdeck invocation.

    Console output goes to stderr so it never mixes with listings written
    to stdout.

    Args:
        log_level: Minimum log level to capture
        log_file: Optional file path for log output
        enable_structured: Use JSON structured logging format
        enable_console: Enable console output
    """
    if isinstance(log_level, LogLevel):
        log_level = log_level.value

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

    if enable_structured:
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handlers: list[logging.Handler] = []

    if enable_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        # Keeps logging's last-resort handler from printing to the terminal
        handlers.append(logging.NullHandler())

    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)


def audit_log(action: str, log_context: LogContext = LogContext.MANIFEST):
    """Decorator for audit logging of manifest changes."""

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger = get_logger(f"{func.__module__}.audit", log_context)

            logger.debug(
                f"Audit: {action} started",
                action=action,
                function=func.__name__,
            )

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    f"Audit: {action} failed",
                    action=action,
                    function=func.__name__,
                    status="error",
                    error=str(e),
                )
                raise

            logger.info(
                f"Audit: {action} completed successfully",
                action=action,
                function=func.__name__,
                status="success",
            )
            return result

        return wrapper

    return decorator
