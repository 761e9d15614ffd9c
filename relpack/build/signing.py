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

"""Code signing of staged application files.

Signing runs on the preprocessed package directory, in place, before any
archive is built. relpack does not produce signatures itself; it drives an
external tool (signtool, codesign, ...) through CommandSigner:

    signer = CommandSigner(["signtool", "sign", "/a", "/fd", "SHA256", "{file}"])
    signer.sign(find_signable_files(pack_dir, RuntimeOs.WINDOWS))

The ``{file}`` placeholder in each argument is replaced with the path of
the file being signed. Arguments without a placeholder are passed as-is.
"""

from __future__ import annotations

from collections.abc import Sequence
import os
from pathlib import Path
import subprocess
from typing import Protocol

from relpack.build.progress import ProgressCallback, no_progress
from relpack.exceptions import SigningError
from relpack.logging import Logger, get_global_logger
from relpack.runtime import RuntimeOs

_WINDOWS_SIGNABLE = {".exe", ".dll"}
_OSX_SIGNABLE = {".dylib"}


class CodeSigner(Protocol):
    """Signs files in place."""

    def sign(self, files: Sequence[Path], progress: ProgressCallback = no_progress) -> None: ...


def find_signable_files(pack_dir: Path, os_: RuntimeOs) -> list[Path]:
    """List the files of a package directory that should be signed.

    Windows: ``.exe`` and ``.dll`` files. macOS: ``.dylib`` files and any
    file with the executable bit set. Linux: nothing.
    """
    files = sorted(p for p in pack_dir.rglob("*") if p.is_file())
    if os_ is RuntimeOs.WINDOWS:
        return [p for p in files if p.suffix.lower() in _WINDOWS_SIGNABLE]
    if os_ is RuntimeOs.OSX:
        return [
            p
            for p in files
            if p.suffix.lower() in _OSX_SIGNABLE or os.access(p, os.X_OK)
        ]
    return []


class CommandSigner:
    """Signs each file by running an external command.

    Attributes:
        command: Argument template; ``{file}`` is replaced per file.
        timeout: Per-file timeout in seconds.
    """

    def __init__(
        self,
        command: Sequence[str],
        timeout: int = 300,
        logger: Logger | None = None,
    ) -> None:
        if not command:
            raise ValueError("Signing command must not be empty")
        self.command = list(command)
        self.timeout = timeout
        self._logger = logger or get_global_logger()

    def _argv(self, file: Path) -> list[str]:
        return [arg.replace("{file}", str(file)) for arg in self.command]

    def sign(self, files: Sequence[Path], progress: ProgressCallback = no_progress) -> None:
        """Sign every file, stopping at the first failure.

        Raises:
            SigningError: If the command fails, times out, or cannot be
                started.
        """
        total = len(files)
        for i, file in enumerate(files, start=1):
            cmd = self._argv(file)
            self._logger.verbose("SIGN", f"Running: {' '.join(cmd)}")
            try:
                result = subprocess.run(
                    cmd,
                    capture_output=True,
                    text=True,
                    check=True,
                    timeout=self.timeout,
                )
            except subprocess.CalledProcessError as err:
                error_msg = f"Signing {file.name} failed (exit code {err.returncode})"
                if err.stderr:
                    error_msg += f"\n{err.stderr}"
                raise SigningError(error_msg) from err
            except subprocess.TimeoutExpired as err:
                raise SigningError(
                    f"Signing {file.name} timed out after {err.timeout}s"
                ) from err
            except OSError as err:
                raise SigningError(f"Cannot run signing command {cmd[0]!r}: {err}") from err

            if result.stdout:
                for line in result.stdout.strip().splitlines():
                    self._logger.debug("SIGN", f"  {line}")
            progress(int(i / total * 100))
        progress(100)
