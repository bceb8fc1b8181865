"""
Pytest configuration and shared fixtures for taskdeck tests.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from taskdeck.core.platform import Platform
from taskdeck.manifest.manifest import Manifest

SAMPLE_MANIFEST = """\
# Demo project
[workspace]
name = "demo"
platforms = ["linux-64", "osx-arm64", "win-64"]

[tasks]
build = "cargo build"  # keep me
test = { cmd = "pytest", depends-on = ["build"] }

[target.win-64.tasks]
clean = "del target"

[feature.cuda]
platforms = ["linux-64"]
system-requirements = { cuda = "12" }

[feature.cuda.tasks]
train = "python train.py"

[feature.lint.tasks]
fmt = "ruff format"

[environments]
cuda = ["cuda"]
lint = { features = ["lint"], no-default-feature = true }
"""


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep the caller's taskdeck variables out of the tests."""
    for name in (
        "TASKDECK_MANIFEST",
        "TASKDECK_LOG_LEVEL",
        "TASKDECK_LOG_FILE",
        "TASKDECK_STRUCTURED_LOGGING",
        "TASKDECK_MANIFEST_ENV_VAR_WARNING",
        "TASKDECK_OVERRIDE_CUDA",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_workspace(tmp_path: Path) -> Path:
    """A temporary project directory."""
    return tmp_path


@pytest.fixture
def manifest_path(temp_workspace: Path) -> Path:
    """A taskdeck.toml with tasks in several scopes."""
    path = temp_workspace / "taskdeck.toml"
    path.write_text(SAMPLE_MANIFEST, encoding="utf-8")
    return path


@pytest.fixture
def manifest(manifest_path: Path) -> Manifest:
    return Manifest.from_path(manifest_path)


@pytest.fixture
def linux_machine(monkeypatch):
    """Pretend the tests run on linux-64."""
    monkeypatch.setattr(
        Platform, "current", classmethod(lambda cls: Platform.LINUX_64)
    )
    return Platform.LINUX_64
