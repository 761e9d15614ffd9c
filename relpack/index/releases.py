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

"""Release index implementation for relpack.

This module implements the persistence layer for the releases known in a
release directory. Each channel has its own JSON index file:

    releases/
        MyApp-1.0.0-win-x64-full.nupkg
        MyApp-1.1.0-win-x64-full.nupkg
        MyApp-1.1.0-win-x64-delta.nupkg
        releases.win.json

The index is consulted to validate a new version against a channel, to find
the previous full release a delta is computed against, and to suggest
output paths for portable and setup artifacts.

Key Features:

- JSON-based storage (sorted keys, 2-space indent, trailing newline)
- Session tracking: records added during a run can be rolled back together
- Thread-safe register/rollback (pack stages run on worker threads)
- Nothing is written to disk until save_releases_files() is called

Example:
    High-level API with ReleaseIndex:
        ```python
        from pathlib import Path
        from relpack.index import ReleaseIndex

        index = ReleaseIndex(Path("releases"))
        prev = index.get_previous_full_release("1.1.0", "win")
        index.add_new_release(Path("releases/MyApp-1.1.0-full.nupkg"), "win")
        index.save_releases_files()
        ```

    Low-level API with functions:
        ```python
        from relpack.index.releases import load_index, save_index

        data = load_index(Path("releases/releases.win.json"))
        save_index(data, Path("releases/releases.win.json"))
        ```
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import UTC, datetime
import hashlib
import json
import os
from pathlib import Path
import threading
from typing import Any

from relpack import __version__
from relpack.exceptions import ConfigError, PackagingError, ReleaseIndexError
from relpack.index.entries import ReleaseEntryName
from relpack.logging import Logger, get_global_logger
from relpack.runtime import Rid, RuntimeOs
from relpack.versioning import normalize_channel, parse_semver

SCHEMA_VERSION = "1"

_SETUP_EXTENSIONS = {
    RuntimeOs.WINDOWS: ".exe",
    RuntimeOs.OSX: ".pkg",
    RuntimeOs.LINUX: ".run",
}


@dataclass(frozen=True)
class ReleaseRecord:
    """A release registered in the index.

    Attributes:
        package_id: Package identifier.
        version: Package version (channel suffix included).
        channel: Channel the release belongs to.
        file_name: Archive file name, relative to the release directory.
        is_delta: True for delta packages.
        size: Archive size in bytes.
        sha256: SHA-256 hex digest of the archive.
        rid: Runtime identifier string, or None.
    """

    package_id: str
    version: str
    channel: str
    file_name: str
    is_delta: bool
    size: int
    sha256: str
    rid: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReleaseRecord:
        return cls(
            package_id=data["package_id"],
            version=data["version"],
            channel=data["channel"],
            file_name=data["file_name"],
            is_delta=bool(data.get("is_delta", False)),
            size=int(data.get("size", 0)),
            sha256=data.get("sha256", ""),
            rid=data.get("rid"),
        )


def _sha256_file(path: Path) -> str:
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            digest.update(chunk)
    return digest.hexdigest()


class ReleaseIndex:
    """Manages the per-channel release index files of a release directory.

    Index files are loaded lazily on first access to a channel. Records
    added with add_new_release() are tracked as the current session until
    either save_releases_files() persists them or rollback_new_releases()
    discards them (deleting their archives).

    Attributes:
        release_dir: Directory holding release archives and index files.
    """

    def __init__(self, release_dir: Path, logger: Logger | None = None):
        """Initialize the release index.

        Args:
            release_dir: Release directory. It does not need to exist yet;
                it is created on the first save.
            logger: Logger for verbose output. Default: global logger.
        """
        self.release_dir = release_dir
        self._logger = logger or get_global_logger()
        self._lock = threading.RLock()
        self._channels: dict[str, list[ReleaseRecord]] = {}
        self._session: list[ReleaseRecord] = []

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def index_path(self, channel: str) -> Path:
        """Return the index file path for a channel."""
        return self.release_dir / f"releases.{channel}.json"

    def _records(self, channel: str) -> list[ReleaseRecord]:
        with self._lock:
            if channel not in self._channels:
                path = self.index_path(channel)
                records: list[ReleaseRecord] = []
                if path.exists():
                    try:
                        data = load_index(path)
                        records = [
                            ReleaseRecord.from_dict(r) for r in data.get("releases", [])
                        ]
                    except (json.JSONDecodeError, KeyError, TypeError) as err:
                        raise ReleaseIndexError(
                            f"Corrupted release index: {path}: {err}"
                        ) from err
                    self._logger.verbose(
                        "INDEX", f"Loaded {len(records)} release(s) from {path.name}"
                    )
                self._channels[channel] = records
            return self._channels[channel]

    def list_releases(self, channel: str) -> list[ReleaseRecord]:
        """Return all records of a channel, oldest first."""
        with self._lock:
            records = list(self._records(channel))
        return sorted(records, key=lambda r: (parse_semver(r.version), r.is_delta))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def validate_channel_for_packaging(
        self, version: str, channel: str, rid: Rid
    ) -> None:
        """Check that a version can be packed into a channel.

        Args:
            version: Version being packed (suffixed or not).
            channel: Target channel.
            rid: Target runtime.

        Raises:
            ConfigError: If the channel name is invalid, the version is not
                a semantic version, the channel already holds releases for a
                different OS, or a full release with an equal or newer
                version already exists in the channel.
        """
        if normalize_channel(channel, rid.os) != channel:
            raise ConfigError(f"Channel must be normalized (lowercase): {channel!r}")
        new_version = parse_semver(version)

        for record in self._records(channel):
            if record.rid:
                existing_os = Rid.parse(record.rid).os
                if existing_os is not rid.os:
                    raise ConfigError(
                        f"Channel {channel!r} already contains releases for "
                        f"{existing_os.value}; cannot pack {rid.os.value} into it. "
                        f"Use a different channel."
                    )
            if record.is_delta:
                continue
            if parse_semver(record.version) >= new_version:
                raise ConfigError(
                    f"Channel {channel!r} already has release {record.version}; "
                    f"new version {version} must be greater."
                )

    def get_previous_full_release(
        self, version: str, channel: str
    ) -> ReleaseRecord | None:
        """Return the newest full release strictly older than ``version``."""
        target = parse_semver(version)
        candidates = [
            r
            for r in self._records(channel)
            if not r.is_delta and parse_semver(r.version) < target
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda r: parse_semver(r.version))

    def get_suggested_portable_path(
        self, package_id: str, channel: str, rid: Rid
    ) -> Path:
        """Return the final path for a portable package."""
        return self.release_dir / f"{package_id}-{channel}-Portable.zip"

    def get_suggested_setup_path(self, package_id: str, channel: str, rid: Rid) -> Path:
        """Return the final path for a setup package."""
        ext = _SETUP_EXTENSIONS[rid.os]
        return self.release_dir / f"{package_id}-{channel}-Setup{ext}"

    def path_of(self, record: ReleaseRecord) -> Path:
        """Return the on-disk path of a record's archive."""
        return self.release_dir / record.file_name

    # ------------------------------------------------------------------
    # Session mutation
    # ------------------------------------------------------------------

    def add_new_release(
        self, path: Path, channel: str, entry: ReleaseEntryName | None = None
    ) -> ReleaseRecord:
        """Register a freshly built release archive.

        The builder knows the identity of what it just built and passes it
        as ``entry``; the file name is only parsed when it is omitted. Ids
        that themselves look like versions (``Contoso.2.0``) cannot be
        recovered from a file name reliably.

        Args:
            path: Path to the archive (inside the release directory).
            channel: Channel to register the release in.
            entry: Identity of the archive. Default: parsed from ``path``.

        Returns:
            The new ReleaseRecord.

        Raises:
            PackagingError: If the file is missing, or no ``entry`` is given
                and its name does not follow the release file-name
                convention.
        """
        if entry is None:
            entry = ReleaseEntryName.from_path(path)
            if entry is None:
                raise PackagingError(f"Not a release archive file name: {path.name}")
        if not path.exists():
            raise PackagingError(f"Release archive not found: {path}")

        record = ReleaseRecord(
            package_id=entry.package_id,
            version=str(entry.version),
            channel=channel,
            file_name=path.name,
            is_delta=entry.is_delta,
            size=path.stat().st_size,
            sha256=_sha256_file(path),
            rid=str(entry.rid) if entry.rid else None,
        )

        with self._lock:
            records = self._records(channel)
            records[:] = [r for r in records if r.file_name != record.file_name]
            records.append(record)
            self._session.append(record)

        kind = "delta" if record.is_delta else "full"
        self._logger.verbose(
            "INDEX", f"Registered {kind} release {record.version} ({record.file_name})"
        )
        return record

    def save_releases_files(self) -> None:
        """Persist every loaded channel and end the current session."""
        with self._lock:
            self.release_dir.mkdir(parents=True, exist_ok=True)
            for channel, records in self._channels.items():
                if not records and not self.index_path(channel).exists():
                    continue
                data = create_default_index(channel)
                data["releases"] = [
                    r.to_dict()
                    for r in sorted(
                        records, key=lambda r: (parse_semver(r.version), r.is_delta)
                    )
                ]
                save_index(data, self.index_path(channel))
                self._logger.verbose(
                    "INDEX", f"Saved {len(records)} release(s) to {self.index_path(channel).name}"
                )
            self._session.clear()

    def rollback_new_releases(self) -> None:
        """Forget every record added in this session and delete its archive.

        Failures to delete an archive are logged as warnings; the in-memory
        index is always restored.
        """
        with self._lock:
            session = list(self._session)
            self._session.clear()
            for record in session:
                records = self._channels.get(record.channel, [])
                records[:] = [r for r in records if r != record]

        for record in session:
            path = self.path_of(record)
            try:
                path.unlink(missing_ok=True)
                self._logger.verbose("INDEX", f"Rolled back {record.file_name}")
            except OSError as err:
                self._logger.warning(
                    "INDEX", f"Failed to remove rolled back release {path}: {err}"
                )


def create_default_index(channel: str) -> dict[str, Any]:
    """Create an empty index structure for a channel.

    Returns:
        Empty index with metadata section.
    """
    return {
        "metadata": {
            "relpack_version": __version__,
            "schema_version": SCHEMA_VERSION,
            "channel": channel,
            "last_updated": datetime.now(UTC).isoformat(),
        },
        "releases": [],
    }


def load_index(index_file: Path) -> dict[str, Any]:
    """Load a release index from a JSON file.

    Raises:
        FileNotFoundError: If the index file doesn't exist.
        json.JSONDecodeError: If the file contains invalid JSON.
    """
    with open(index_file, encoding="utf-8") as f:
        return json.load(f)


def save_index(data: dict[str, Any], index_file: Path) -> None:
    """Save a release index to a JSON file.

    The file is written next to its final location and moved into place,
    so a concurrent reader never observes a half-written index.

    Note:
        - Uses 2-space indentation for readability
        - Sorts keys alphabetically for consistent diffs
        - Adds trailing newline for git compatibility
    """
    index_file.parent.mkdir(parents=True, exist_ok=True)
    tmp = index_file.with_name(index_file.name + ".tmp")

    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, sort_keys=True)
        f.write("\n")  # Trailing newline for git
    os.replace(tmp, index_file)
