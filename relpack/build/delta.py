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

"""Delta package creation.

A delta package lets an installed app update from the previous full release
to the new one without downloading the whole archive. The pack pipeline
only depends on the DeltaBuilder protocol; FileDeltaBuilder is the default,
whole-file implementation:

- Application files (``lib/...``) identical in both releases are replaced
  by ``<name>.shasum`` entries holding the SHA-256 and size of the file.
- New or changed application files are stored in full.
- Every other entry (manifest, content types, metadata) is copied as-is.

DeltaMode selects the compression trade-off; DeltaMode.NONE disables delta
generation altogether and is handled by the pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import hashlib
import os
from pathlib import Path
from typing import Protocol
import zipfile

from relpack.build.progress import ProgressCallback, no_progress
from relpack.exceptions import ConfigError, DeltaError
from relpack.logging import Logger, get_global_logger

SHASUM_SUFFIX = ".shasum"


class DeltaMode(str, Enum):
    """How (and whether) delta packages are generated."""

    NONE = "none"
    BEST_SPEED = "best-speed"
    BEST_SIZE = "best-size"

    @classmethod
    def parse(cls, value: str | DeltaMode | None) -> DeltaMode:
        """Parse a mode name, accepting "standard" as BEST_SPEED.

        Raises:
            ConfigError: If the name is unknown.
        """
        if value is None:
            return cls.BEST_SPEED
        if isinstance(value, DeltaMode):
            return value
        name = value.strip().lower()
        if name == "standard":
            return cls.BEST_SPEED
        try:
            return cls(name)
        except ValueError as err:
            choices = ", ".join(m.value for m in cls)
            raise ConfigError(f"Invalid delta mode: {value!r}. Expected one of: {choices}") from err

    @property
    def compresslevel(self) -> int:
        return 9 if self is DeltaMode.BEST_SIZE else 1


@dataclass(frozen=True)
class DeltaStats:
    """Per-file outcome counts of a delta build."""

    new: int = 0
    changed: int = 0
    unchanged: int = 0
    removed: int = 0


class DeltaBuilder(Protocol):
    """Creates a delta package between two full release archives."""

    def create_delta_package(
        self,
        previous: Path,
        new: Path,
        output_path: Path,
        mode: DeltaMode,
        progress: ProgressCallback = no_progress,
    ) -> tuple[Path, DeltaStats]: ...


def _digest(zf: zipfile.ZipFile, info: zipfile.ZipInfo) -> str:
    digest = hashlib.sha256()
    with zf.open(info) as f:
        while chunk := f.read(1024 * 1024):
            digest.update(chunk)
    return digest.hexdigest()


class FileDeltaBuilder:
    """Whole-file delta builder (see module docstring)."""

    def __init__(self, logger: Logger | None = None) -> None:
        self._logger = logger or get_global_logger()

    def create_delta_package(
        self,
        previous: Path,
        new: Path,
        output_path: Path,
        mode: DeltaMode,
        progress: ProgressCallback = no_progress,
    ) -> tuple[Path, DeltaStats]:
        """Write a delta package from ``previous`` to ``new``.

        Returns:
            Tuple of (output path, stats).

        Raises:
            DeltaError: If ``mode`` is NONE or an input is not a valid
                archive. No partial output is left behind.
            FileNotFoundError: If an input archive doesn't exist.
        """
        if mode is DeltaMode.NONE:
            raise DeltaError("Delta generation is disabled (mode 'none')")
        for path in (previous, new):
            if not path.is_file():
                raise FileNotFoundError(f"Release archive not found: {path}")

        self._logger.verbose(
            "DELTA", f"Creating delta {previous.name} -> {new.name} ({mode.value})"
        )
        partial = output_path.with_name(f".{output_path.name}.partial")
        try:
            with zipfile.ZipFile(previous) as old_zip, zipfile.ZipFile(new) as new_zip:
                stats = self._write_delta(old_zip, new_zip, partial, mode, progress)
            os.replace(partial, output_path)
        except zipfile.BadZipFile as err:
            partial.unlink(missing_ok=True)
            raise DeltaError(f"Cannot read release archive: {err}") from err
        except BaseException:
            partial.unlink(missing_ok=True)
            raise

        self._logger.verbose(
            "DELTA",
            f"Delta created: {stats.new} new, {stats.changed} changed, "
            f"{stats.unchanged} unchanged, {stats.removed} removed",
        )
        progress(100)
        return output_path, stats

    def _write_delta(
        self,
        old_zip: zipfile.ZipFile,
        new_zip: zipfile.ZipFile,
        output: Path,
        mode: DeltaMode,
        progress: ProgressCallback,
    ) -> DeltaStats:
        old_entries = {i.filename: i for i in old_zip.infolist() if not i.is_dir()}
        new_entries = [i for i in new_zip.infolist() if not i.is_dir()]
        new_names = {i.filename for i in new_entries}
        counts = {"new": 0, "changed": 0, "unchanged": 0}

        with zipfile.ZipFile(
            output,
            "w",
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=mode.compresslevel,
        ) as out:
            for i, info in enumerate(new_entries, start=1):
                name = info.filename
                if not name.startswith("lib/"):
                    out.writestr(name, new_zip.read(info))
                else:
                    old = old_entries.get(name)
                    new_digest = _digest(new_zip, info)
                    if old is None:
                        counts["new"] += 1
                        out.writestr(name, new_zip.read(info))
                    elif old.file_size == info.file_size and _digest(old_zip, old) == new_digest:
                        counts["unchanged"] += 1
                        out.writestr(name + SHASUM_SUFFIX, f"{new_digest} {info.file_size}\n")
                    else:
                        counts["changed"] += 1
                        out.writestr(name, new_zip.read(info))
                progress(int(i / len(new_entries) * 100))

        removed = sum(
            1 for name in old_entries if name.startswith("lib/") and name not in new_names
        )
        return DeltaStats(removed=removed, **counts)
