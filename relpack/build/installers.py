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

"""Portable and setup package builders.

Portable package:
    A zip holding the application under ``current/`` plus an empty
    ``.portable`` marker file, so the app can run unpacked without an
    installer.

Setup package:
    A self-extracting bundle: an optional installer stub executable, the
    full release archive appended to it, and a fixed-size trailer that
    tells the stub where the archive starts:

        [stub bytes][release archive bytes][b"RELPACK1"][offset:u64][length:u64]

    Integers are little-endian. Without a stub, the file is just the
    archive plus trailer, which is still readable with read_setup_payload().
"""

from __future__ import annotations

from pathlib import Path
import shutil
import struct

from relpack.build.archive import ZipArchiver
from relpack.build.copier import copy_files
from relpack.build.progress import ProgressCallback, no_progress, scale_progress
from relpack.exceptions import PackagingError
from relpack.logging import Logger, get_global_logger

PORTABLE_MARKER = ".portable"
SETUP_MAGIC = b"RELPACK1"
_TRAILER = struct.Struct("<QQ")
TRAILER_SIZE = len(SETUP_MAGIC) + _TRAILER.size


def create_portable_package(
    pack_dir: Path,
    output_path: Path,
    progress: ProgressCallback = no_progress,
    *,
    staging_dir: Path,
    archiver: ZipArchiver | None = None,
    logger: Logger | None = None,
) -> Path:
    """Build a portable zip of a package directory.

    Args:
        pack_dir: Preprocessed package directory.
        output_path: Where the zip is written.
        progress: 0-100 progress callback (copy 0-40%, archive 40-100%).
        staging_dir: Empty directory owned by the caller.
        archiver: Archiver to use. Default: ZipArchiver().
        logger: Logger for verbose output. Default: global logger.

    Returns:
        ``output_path``.
    """
    logger = logger or get_global_logger()
    archiver = archiver or ZipArchiver(logger=logger)

    copy_files(pack_dir, staging_dir / "current", scale_progress(progress, 0, 40), logger=logger)
    (staging_dir / PORTABLE_MARKER).write_bytes(b"")

    archiver.create_archive_from_directory(
        output_path, staging_dir, scale_progress(progress, 40, 100)
    )
    progress(100)
    logger.verbose("PACK", f"Portable package created: {output_path.name}")
    return output_path


def create_setup_package(
    release_archive: Path,
    output_path: Path,
    progress: ProgressCallback = no_progress,
    *,
    stub: Path | None = None,
    logger: Logger | None = None,
) -> Path:
    """Build a setup bundle around a full release archive.

    Raises:
        PackagingError: If the stub or the release archive doesn't exist.
    """
    logger = logger or get_global_logger()
    if not release_archive.is_file():
        raise PackagingError(f"Release archive not found: {release_archive}")
    if stub is not None and not stub.is_file():
        raise PackagingError(f"Setup stub not found: {stub}")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "wb") as out:
        if stub is not None:
            logger.verbose("SETUP", f"Using setup stub: {stub.name}")
            with open(stub, "rb") as f:
                shutil.copyfileobj(f, out)
        progress(20)

        offset = out.tell()
        with open(release_archive, "rb") as f:
            shutil.copyfileobj(f, out)
        length = out.tell() - offset
        progress(90)

        out.write(SETUP_MAGIC)
        out.write(_TRAILER.pack(offset, length))

    progress(100)
    logger.verbose("SETUP", f"Setup package created: {output_path.name}")
    return output_path


def read_setup_payload(setup_path: Path) -> bytes:
    """Return the release archive embedded in a setup bundle.

    Raises:
        PackagingError: If the file has no valid setup trailer.
    """
    data = setup_path.read_bytes()
    if len(data) < TRAILER_SIZE:
        raise PackagingError(f"Not a setup package: {setup_path.name}")

    trailer = data[-TRAILER_SIZE:]
    if trailer[: len(SETUP_MAGIC)] != SETUP_MAGIC:
        raise PackagingError(f"Not a setup package: {setup_path.name}")
    offset, length = _TRAILER.unpack(trailer[len(SETUP_MAGIC) :])
    if offset + length > len(data) - TRAILER_SIZE:
        raise PackagingError(f"Corrupted setup package: {setup_path.name}")
    return data[offset : offset + length]
