"""Check whether this machine provides an environment's virtual packages.

Virtual packages are declared under ``system-requirements``:

    [system-requirements]
    linux = "4.18"
    libc = { family = "glibc", version = "2.28" }
    cuda = "12"

Detected values can be overridden with ``TASKDECK_OVERRIDE_<NAME>``
environment variables, which is also the only way to declare a CUDA
driver version.
"""

import os
import platform as _platform
import re
from typing import Any

from ..core.platform import Platform
from ..utils.logging import LogContext, UnsupportedVirtualPackageError, get_logger
from .environment import Environment

logger = get_logger(__name__, LogContext.ENVIRONMENT)

OVERRIDE_PREFIX = "TASKDECK_OVERRIDE_"


def parse_version(value: str) -> tuple[int, ...]:
    """Leading numeric components, e.g. ``5.15.0-91-generic`` -> (5, 15, 0)."""
    parts = []
    for piece in str(value).split("."):
        match = re.match(r"\d+", piece)
        if not match:
            break
        parts.append(int(match.group()))
        if match.end() != len(piece):
            break
    return tuple(parts)


def _override(name: str) -> str | None:
    value = os.environ.get(f"{OVERRIDE_PREFIX}{name.upper()}")
    return value or None


def detect_virtual_packages(platform: Platform | None = None) -> dict[str, str]:
    """Versions of the virtual packages present on this machine."""
    platform = platform or Platform.current()
    detected: dict[str, str] = {}

    if platform.is_linux:
        detected["linux"] = _override("linux") or _platform.release()
        family, version = _platform.libc_ver()
        libc = _override("glibc") or (version if family == "glibc" else None)
        if libc:
            detected["libc"] = libc
    elif platform.is_osx:
        macos = _override("osx") or _platform.mac_ver()[0]
        if macos:
            detected["macos"] = macos

    cuda = _override("cuda")
    if cuda:
        detected["cuda"] = cuda

    return detected


def _required_version(requirement: Any) -> str:
    if isinstance(requirement, dict):
        return str(requirement.get("version", "0"))
    return str(requirement)


def verify_current_platform_has_required_virtual_packages(
    environment: Environment,
    platform: Platform | None = None,
    detected: dict[str, str] | None = None,
) -> None:
    """Raise if the machine lacks a virtual package the environment requires."""
    requirements = environment.system_requirements()
    if not requirements:
        return

    if detected is None:
        detected = detect_virtual_packages(platform)

    missing = []
    for name, requirement in requirements.items():
        if name == "archspec":
            continue
        required = _required_version(requirement)
        available = detected.get(name)
        if (
            name == "libc"
            and isinstance(requirement, dict)
            and requirement.get("family", "glibc") != "glibc"
        ):
            # Only glibc is detected
            available = None
        if available is None:
            missing.append(f"{name} {required} is not available on this machine")
        elif parse_version(available) < parse_version(required):
            missing.append(
                f"{name} {required} is required but {available} was detected"
            )

    if missing:
        logger.debug(
            f"Environment '{environment.name}' is not supported on this machine",
            missing=missing,
        )
        raise UnsupportedVirtualPackageError(
            f"environment '{environment.name}' cannot run on this machine: "
            + "; ".join(missing),
            context={"environment": environment.name, "missing": missing},
        )
