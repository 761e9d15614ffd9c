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

"""Release archive file-name convention.

Release archives are named so that the package id, version, target runtime
and kind (full or delta) can be recovered from the file name alone:

    MyApp-1.0.0-full.nupkg
    MyApp-1.2.3-beta1-win7-x64-delta.nupkg
    My.Cool-App-1.1.0-osx.13-arm64-full.nupkg

The package id may itself contain dashes and dots; the version starts at
the first ``.N.N`` / ``-N.N`` boundary followed by a non-digit.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import re

from relpack.exceptions import ConfigError
from relpack.runtime import Rid, RuntimeOs
from relpack.versioning.keys import SemVer, parse_semver

_SUFFIX_FULL = re.compile(r"-full\.nupkg$", re.IGNORECASE)
_SUFFIX_DELTA = re.compile(r"-delta\.nupkg$", re.IGNORECASE)
_VERSION_START = re.compile(r"[.-](0|[1-9]\d*)\.(0|[1-9]\d*)($|[^\d])")
_RID_TAIL = re.compile(
    r"(-(?P<os>osx|win|linux)\.?(?P<ver>[\d.]+)?)?(?:-(?P<arch>x64|x86|arm64))?$",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class ReleaseEntryName:
    """Identity of a release archive as encoded in its file name.

    Attributes:
        package_id: Package identifier.
        version: Parsed package version (channel suffix included).
        is_delta: True for delta packages, False for full releases.
        rid: Target runtime, or None when the name carries no runtime.
    """

    package_id: str
    version: SemVer
    is_delta: bool = False
    rid: Rid | None = None

    def to_file_name(self) -> str:
        """Format the canonical file name for this entry."""
        kind = "delta" if self.is_delta else "full"
        rid = f"-{self.rid}" if self.rid else ""
        return f"{self.package_id}-{self.version}{rid}-{kind}.nupkg"

    @classmethod
    def parse(cls, file_name: str) -> ReleaseEntryName | None:
        """Parse a release file name.

        Args:
            file_name: Bare file name (not a path).

        Returns:
            The parsed entry, or None if the name does not follow the
            convention.

        Example:
            >>> entry = ReleaseEntryName.parse("MyApp-1.2.3-win-x64-full.nupkg")
            >>> entry.package_id, str(entry.version), str(entry.rid)
            ('MyApp', '1.2.3', 'win-x64')
        """
        full = _SUFFIX_FULL.search(file_name)
        delta = _SUFFIX_DELTA.search(file_name)
        if not full and not delta:
            return None

        name_and_ver = file_name[: (full or delta).start()]
        m = _VERSION_START.search(name_and_ver)
        if not m:
            return None

        package_id = name_and_ver[: m.start()]
        version_text = name_and_ver[m.start() + 1 :]

        rid = None
        tail = _RID_TAIL.search(version_text)
        if tail and tail.start() < len(version_text):
            version_text = version_text[: tail.start()]
            # An arch without an OS ("MyApp-1.0.0-x64-full.nupkg") is not a
            # representable Rid; the version is still recovered.
            if tail.group("os"):
                arch = tail.group("arch")
                rid = Rid(
                    os=RuntimeOs(tail.group("os").lower()),
                    os_version=tail.group("ver"),
                    arch=arch.lower() if arch else None,
                )

        try:
            version = parse_semver(version_text)
        except ConfigError:
            return None

        return cls(package_id=package_id, version=version, is_delta=bool(delta), rid=rid)

    @classmethod
    def from_path(cls, path: Path) -> ReleaseEntryName | None:
        """Parse the file name of ``path``."""
        return cls.parse(path.name)


def delta_path_for(full_release: Path) -> Path:
    """Return the delta archive path that pairs with a full release archive."""
    name = _SUFFIX_FULL.sub("-delta.nupkg", full_release.name)
    return full_release.with_name(name)
