"""
Pytest configuration and shared fixtures for relpack tests.

This module provides reusable fixtures and test utilities used across
the test suite.
"""

from __future__ import annotations

from pathlib import Path
import threading
from typing import Any

import pytest
import yaml

from relpack.build import BuildOptions, DeltaMode
from relpack.runtime import Rid


class RecordingLogger:
    """Logger that keeps every message for assertions."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.steps: list[tuple[int, int, str]] = []
        self.messages: list[tuple[str, str, str]] = []

    def step(self, step: int, total: int, message: str) -> None:
        with self._lock:
            self.steps.append((step, total, message))

    def verbose(self, prefix: str, message: str) -> None:
        with self._lock:
            self.messages.append(("verbose", prefix, message))

    def debug(self, prefix: str, message: str) -> None:
        with self._lock:
            self.messages.append(("debug", prefix, message))

    def warning(self, prefix: str, message: str) -> None:
        with self._lock:
            self.messages.append(("warning", prefix, message))

    @property
    def warnings(self) -> list[str]:
        return [m for level, _, m in self.messages if level == "warning"]


class RecordingTask:
    def __init__(self) -> None:
        self.updates: list[int] = []
        self.completed = False

    def update(self, percent: int) -> None:
        self.updates.append(percent)

    def complete(self) -> None:
        self.completed = True


class RecordingReporter:
    """Progress reporter that keeps one RecordingTask per stage name."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.tasks: dict[str, RecordingTask] = {}

    def start_task(self, name: str) -> RecordingTask:
        task = RecordingTask()
        with self._lock:
            self.tasks[name] = task
        return task


@pytest.fixture
def tmp_test_dir(tmp_path: Path) -> Path:
    """
    Provide a temporary directory for test artifacts.

    Automatically cleaned up after test completion.
    """
    return tmp_path


@pytest.fixture
def logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def pack_dir(tmp_test_dir: Path) -> Path:
    """
    Provide a published application directory.

    Contains three regular files plus three files matched by the exclusion
    rules (debug symbols, crash dump tool, host shim).
    """
    root = tmp_test_dir / "publish"
    (root / "sub").mkdir(parents=True)
    (root / "MyApp.exe").write_bytes(b"MZ main executable")
    (root / "core.dll").write_bytes(b"MZ library")
    (root / "sub" / "data.txt").write_text("payload", encoding="utf-8")
    (root / "MyApp.pdb").write_bytes(b"symbols")
    (root / "createdump.exe").write_bytes(b"dump tool")
    (root / "sub" / "MyApp.vshost.exe").write_bytes(b"host shim")
    return root


@pytest.fixture
def release_dir(tmp_test_dir: Path) -> Path:
    return tmp_test_dir / "releases"


@pytest.fixture
def make_options(pack_dir: Path, release_dir: Path):
    """
    Factory fixture for BuildOptions.

    Usage:
        options = make_options(version="1.1.0", delta_mode=DeltaMode.BEST_SPEED)
    """

    def _create(
        version: str = "1.0.0",
        channel: str | None = "stable",
        runtime: str = "win-x64",
        delta_mode: DeltaMode = DeltaMode.NONE,
        package_id: str = "MyApp",
        package_directory: Path | None = None,
        **kwargs: Any,
    ) -> BuildOptions:
        return BuildOptions(
            target_runtime=Rid.parse(runtime),
            release_dir=release_dir,
            package_id=package_id,
            package_version=version,
            package_directory=package_directory or pack_dir,
            channel=channel,
            delta_mode=delta_mode,
            **kwargs,
        )

    return _create


@pytest.fixture
def sample_pack_config() -> dict[str, Any]:
    """
    Provide sample pack configuration data.

    Paths are relative so tests exercise resolution against the file.
    """
    return {
        "apiVersion": "relpack/v1",
        "package": {
            "id": "MyApp",
            "title": "My App",
            "authors": "Example Corp",
            "version": "1.0.0",
            "directory": "publish",
        },
        "target": {
            "runtime": "win-x64",
            "channel": "stable",
        },
        "output": {
            "release_dir": "releases",
        },
        "delta": {
            "mode": "none",
        },
    }


@pytest.fixture
def create_yaml_file(tmp_test_dir: Path):
    """
    Factory fixture for creating temporary YAML files.

    Usage:
        yaml_path = create_yaml_file("test.yaml", {"key": "value"})
    """

    def _create(filename: str, data: dict[str, Any]) -> Path:
        path = tmp_test_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.dump(data, f)
        return path

    return _create
