# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Progress reporting for pack stages.

Every stage reports progress as an integer percentage (0-100) through a
plain callback. Stages that delegate part of their work to another
operation scale the callback into a sub-range, e.g. release assembly
reports file copying as 0-30% and archiving as 30-100%:

    copy_files(src, dst, scale_progress(progress, 0, 30))
    archiver.create_archive_from_directory(out, staging, scale_progress(progress, 30, 100))

A ProgressReporter hands out one task per stage. The default reporter logs
through relpack.logging; tests use their own recording reporters.
"""

from __future__ import annotations

from collections.abc import Callable
import threading
from typing import Protocol

from relpack.logging import Logger, get_global_logger

ProgressCallback = Callable[[int], None]


def scale_progress(progress: ProgressCallback, start: int, end: int) -> ProgressCallback:
    """Map a 0-100 callback onto the ``start``-``end`` range of ``progress``.

    Example:
        >>> seen = []
        >>> scaled = scale_progress(seen.append, 30, 100)
        >>> scaled(0); scaled(50); scaled(100)
        >>> seen
        [30, 65, 100]
    """
    span = end - start

    def _scaled(percent: int) -> None:
        percent = max(0, min(100, percent))
        progress(int(start + span * percent / 100))

    return _scaled


def no_progress(percent: int) -> None:
    """Progress callback that discards updates."""
    pass


class ProgressTask(Protocol):
    """Progress handle for one pipeline stage."""

    def update(self, percent: int) -> None: ...

    def complete(self) -> None: ...


class ProgressReporter(Protocol):
    """Factory for per-stage progress tasks."""

    def start_task(self, name: str) -> ProgressTask: ...


class _LoggerTask:
    def __init__(self, name: str, logger: Logger) -> None:
        self._name = name
        self._logger = logger
        self._lock = threading.Lock()
        self._last_decile = -1
        self.value = 0

    def update(self, percent: int) -> None:
        with self._lock:
            self.value = percent
            decile = percent // 10
            if decile == self._last_decile:
                return
            self._last_decile = decile
        self._logger.debug("PACK", f"{self._name}: {percent}%")

    def complete(self) -> None:
        self.update(100)
        self._logger.verbose("PACK", f"Complete: {self._name}")


class LoggerProgressReporter:
    """Reports stage progress through a relpack Logger.

    Stage start and completion go to verbose output; percentage updates go
    to debug output, at most once per 10% so worker threads don't flood it.
    """

    def __init__(self, logger: Logger | None = None) -> None:
        self._logger = logger or get_global_logger()

    def start_task(self, name: str) -> ProgressTask:
        self._logger.verbose("PACK", f"Started: {name}")
        return _LoggerTask(name, self._logger)
