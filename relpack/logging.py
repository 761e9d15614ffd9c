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

"""Console output for relpack builds.

Packing reports through a small Logger object rather than the CLI, so the
build stages, the release index and the file helpers can be driven from
tests or other tools with their own output handling.

Output kinds, by how much of the run they describe:

=========  ==========================================  ===================
Kind       Used for                                    Shown
=========  ==========================================  ===================
step       The four pack phases ``[2/4] Building...``  always
warning    Skipped deltas, files rollback left behind  always
verbose    Index changes, archive and copy summaries   ``--verbose``
debug      Per-file decisions (exclusions, signing)    ``--debug``
=========  ==========================================  ===================

Tagged lines carry the component that wrote them, e.g. ``[INDEX]``,
``[PACK]``, ``[COPY]``, ``[DELTA]`` or ``[SIGN]``.

Example:
    >>> from relpack.logging import get_logger
    >>> log = get_logger(verbose=True)
    >>> log.verbose("INDEX", "Registered full release 1.1.0-stable")
    [INDEX] Registered full release 1.1.0-stable
    >>> log.debug("COPY", "Skipping debug symbols: MyApp.pdb")

Modules that are not handed a logger fall back to the process-wide one,
which stays silent until ``relpack`` commands install a console logger.
"""

from __future__ import annotations

import threading
from typing import Protocol


class Logger(Protocol):
    """What build code may call to report progress."""

    def step(self, step: int, total: int, message: str) -> None:
        """Announce pack phase ``step`` of ``total``."""
        ...

    def verbose(self, prefix: str, message: str) -> None:
        """Report a detail from component ``prefix``."""
        ...

    def debug(self, prefix: str, message: str) -> None:
        """Report a per-file decision from component ``prefix``."""
        ...

    def warning(self, prefix: str, message: str) -> None:
        """Report a problem the build recovered from."""
        ...


class DefaultLogger:
    """Console logger used by the ``relpack`` commands.

    The portable and setup packages are built on worker threads while the
    release archive is written, so whole lines are printed under a lock to
    keep stage output from interleaving.

    Args:
        verbose: Show ``verbose`` lines.
        debug: Show ``debug`` lines as well; turns on ``verbose``.
    """

    def __init__(self, verbose: bool = False, debug: bool = False) -> None:
        self._verbose = verbose or debug
        self._debug = debug
        self._lock = threading.Lock()

    def _emit(self, line: str) -> None:
        with self._lock:
            print(line, flush=True)

    def step(self, step: int, total: int, message: str) -> None:
        self._emit(f"[{step}/{total}] {message}")

    def verbose(self, prefix: str, message: str) -> None:
        if self._verbose:
            self._emit(f"[{prefix}] {message}")

    def debug(self, prefix: str, message: str) -> None:
        if self._debug:
            self._emit(f"[{prefix}] {message}")

    def warning(self, prefix: str, message: str) -> None:
        self._emit(f"[WARNING] [{prefix}] {message}")


class SilentLogger:
    """Discards everything; the process-wide default."""

    def step(self, step: int, total: int, message: str) -> None:
        pass

    def verbose(self, prefix: str, message: str) -> None:
        pass

    def debug(self, prefix: str, message: str) -> None:
        pass

    def warning(self, prefix: str, message: str) -> None:
        pass


_global_logger: Logger = SilentLogger()


def get_logger(verbose: bool = False, debug: bool = False) -> Logger:
    """Build the console logger for a command's ``--verbose``/``--debug`` flags."""
    return DefaultLogger(verbose=verbose, debug=debug)


def get_global_logger() -> Logger:
    """Return the logger used when a caller passes none."""
    return _global_logger


def set_global_logger(logger: Logger) -> None:
    """Install ``logger`` as the fallback for the whole process.

    Each ``relpack`` command does this once after parsing its flags. Tests
    that drive commands should restore the previous logger afterwards.
    """
    global _global_logger
    _global_logger = logger
