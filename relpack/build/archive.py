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

"""Zip archiving and release archive reading.

ZipArchiver turns a staged directory into a release archive. The archive
is written to a hidden sibling file and moved into place only once it is
complete, so ``output_path`` either holds a whole archive or nothing.

ReleaseBundle opens an existing release archive to read its manifest,
list its entries, measure it, or unpack the application files:

    with ReleaseBundle.open(Path("MyApp-1.0.0-full.nupkg")) as bundle:
        manifest = bundle.read_manifest()
        compressed, uncompressed = bundle.calculate_size()
        bundle.extract_lib_contents(Path("install/current"))
"""

from __future__ import annotations

import os
from pathlib import Path, PurePosixPath
import re
import zipfile

from relpack.build.manifest import PackageManifest, read_manifest
from relpack.build.progress import ProgressCallback, no_progress
from relpack.exceptions import PackagingError
from relpack.logging import Logger, get_global_logger

MANIFEST_FILE_NAME = "sq.version"

_LIB_PREFIX = re.compile(r"^lib/[^/]+/")


class ZipArchiver:
    """Creates deflate-compressed zip archives from directories."""

    def __init__(self, compresslevel: int = 6, logger: Logger | None = None) -> None:
        self.compresslevel = compresslevel
        self._logger = logger or get_global_logger()

    def create_archive_from_directory(
        self,
        output_path: Path,
        source_dir: Path,
        progress: ProgressCallback = no_progress,
    ) -> Path:
        """Archive every file below ``source_dir`` into ``output_path``.

        Entry names are POSIX paths relative to ``source_dir``. An existing
        file at ``output_path`` is replaced.

        Raises:
            FileNotFoundError: If ``source_dir`` doesn't exist.
            OSError: If reading a source file or writing the archive fails.
                No partial archive is left behind.
        """
        if not source_dir.is_dir():
            raise FileNotFoundError(f"Directory to archive not found: {source_dir}")

        files = sorted(p for p in source_dir.rglob("*") if p.is_file())
        output_path.parent.mkdir(parents=True, exist_ok=True)
        partial = output_path.with_name(f".{output_path.name}.partial")

        self._logger.debug("ARCHIVE", f"Archiving {len(files)} file(s) to {output_path.name}")
        try:
            with zipfile.ZipFile(
                partial,
                "w",
                compression=zipfile.ZIP_DEFLATED,
                compresslevel=self.compresslevel,
                strict_timestamps=False,
            ) as zf:
                for i, path in enumerate(files, start=1):
                    zf.write(path, path.relative_to(source_dir).as_posix())
                    progress(int(i / len(files) * 100))
            os.replace(partial, output_path)
        except BaseException:
            partial.unlink(missing_ok=True)
            raise

        progress(100)
        return output_path


class ReleaseBundle:
    """Read access to a release archive.

    Use as a context manager, or call close() when done.
    """

    def __init__(self, path: Path, zf: zipfile.ZipFile) -> None:
        self.path = path
        self._zip = zf

    @classmethod
    def open(cls, path: Path) -> ReleaseBundle:
        """Open a release archive.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            PackagingError: If the file is not a zip archive.
        """
        if not path.is_file():
            raise FileNotFoundError(f"Release archive not found: {path}")
        try:
            return cls(path, zipfile.ZipFile(path, "r"))
        except zipfile.BadZipFile as err:
            raise PackagingError(f"Not a valid release archive: {path}") from err

    def close(self) -> None:
        self._zip.close()

    def __enter__(self) -> ReleaseBundle:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def file_names(self) -> list[str]:
        """Return every entry name, in archive order."""
        return self._zip.namelist()

    def calculate_size(self) -> tuple[int, int]:
        """Return (compressed, uncompressed) totals over all entries."""
        compressed = sum(i.compress_size for i in self._zip.infolist())
        uncompressed = sum(i.file_size for i in self._zip.infolist())
        return compressed, uncompressed

    def _manifest_entry(self) -> str:
        for name in self._zip.namelist():
            if name.endswith(".nuspec") and "/" not in name:
                return name
        raise PackagingError(f"Release archive has no package manifest (.nuspec): {self.path.name}")

    def read_manifest_xml(self) -> bytes:
        """Return the raw nuspec bytes."""
        return self._zip.read(self._manifest_entry())

    def read_manifest(self) -> PackageManifest:
        """Parse the archive's nuspec.

        Raises:
            PackagingError: If the manifest is missing or invalid.
        """
        return read_manifest(self.read_manifest_xml())

    def extract_lib_contents(
        self, target: Path, progress: ProgressCallback = no_progress
    ) -> int:
        """Extract the application files into ``target``.

        Entries under ``lib/<framework>/`` are written relative to
        ``target``; the nuspec is written as ``target/sq.version``.

        Returns:
            Number of application files extracted.

        Raises:
            PackagingError: If the manifest is missing, or an entry would
                be written outside ``target``.
        """
        target.mkdir(parents=True, exist_ok=True)
        (target / MANIFEST_FILE_NAME).write_bytes(self.read_manifest_xml())

        root = target.resolve()
        infos = self._zip.infolist()
        extracted = 0
        for i, info in enumerate(infos, start=1):
            name = info.filename.replace("\\", "/")
            if info.is_dir() or not _LIB_PREFIX.match(name):
                continue
            relative = PurePosixPath(_LIB_PREFIX.sub("", name))
            dest = (target / relative).resolve()
            if not dest.is_relative_to(root):
                raise PackagingError(f"Archive entry escapes extraction directory: {name}")
            dest.parent.mkdir(parents=True, exist_ok=True)
            with self._zip.open(info) as src, open(dest, "wb") as out:
                while chunk := src.read(1024 * 1024):
                    out.write(chunk)
            extracted += 1
            progress(int(i / len(infos) * 100))

        progress(100)
        return extracted
