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

"""Core version comparison utilities for relpack.

This module is format-agnostic: it does NOT read files or release indexes.
It only parses and compares semantic version strings consistently. Release
packages are versioned with strict SemVer 2.0 (``MAJOR.MINOR.PATCH`` with
optional ``-prerelease`` and ``+build`` parts), because channel suffixes
are appended as prerelease labels (``1.2.0-beta``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import total_ordering
import re

from relpack.exceptions import ConfigError

# ----------------------------
# Parsing
# ----------------------------

_SEMVER_RE = re.compile(
    r"^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<pre>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)


def _pre_key(pre: tuple[str, ...]) -> tuple[tuple[int, int, str], ...]:
    """Encode prerelease identifiers for ordering.

    Numeric identifiers sort numerically and before alphanumeric ones,
    per SemVer 2.0 precedence rules.
    """
    return tuple((0, int(p), "") if p.isdigit() else (1, 0, p) for p in pre)


@total_ordering
@dataclass(frozen=True)
class SemVer:
    """A parsed semantic version.

    Build metadata is kept for display but ignored when comparing.

    Attributes:
        major: Major version number.
        minor: Minor version number.
        patch: Patch version number.
        prerelease: Dot-separated prerelease identifiers (may be empty).
        build: Build metadata string, or None.
    """

    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()
    build: str | None = field(default=None, compare=False)

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    def _key(self) -> tuple:
        # A release sorts after any prerelease of the same core version.
        pre = (0, _pre_key(self.prerelease)) if self.prerelease else (1, ())
        return (self.major, self.minor, self.patch, pre)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SemVer):
            return NotImplemented
        return self._key() < other._key()

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + ".".join(self.prerelease)
        if self.build:
            text += "+" + self.build
        return text


def parse_semver(text: str) -> SemVer:
    """Parse a strict SemVer 2.0 string.

    Args:
        text: Version string, e.g. "1.2.3", "1.2.3-beta.1+sha.abc".

    Returns:
        The parsed SemVer.

    Raises:
        ConfigError: If the string is not a valid semantic version.

    Example:
        >>> parse_semver("1.2.3-rc.1") < parse_semver("1.2.3")
        True
    """
    m = _SEMVER_RE.match(text.strip())
    if not m:
        raise ConfigError(f"Invalid semantic version: {text!r}")
    pre = tuple(m.group("pre").split(".")) if m.group("pre") else ()
    return SemVer(
        major=int(m.group("major")),
        minor=int(m.group("minor")),
        patch=int(m.group("patch")),
        prerelease=pre,
        build=m.group("build"),
    )


def is_semver(text: str) -> bool:
    """Return True if ``text`` is a strict semantic version."""
    return _SEMVER_RE.match(text.strip()) is not None


# ----------------------------
# Comparison
# ----------------------------


def compare_versions(a: str, b: str) -> int:
    """Compare two semantic version strings.

    Returns -1 if a < b, 0 if equal, 1 if a > b.

    Raises:
        ConfigError: If either string is not a valid semantic version.
    """
    va, vb = parse_semver(a), parse_semver(b)
    return (va > vb) - (va < vb)


def is_newer(candidate: str, current: str | None) -> bool:
    """Decide if ``candidate`` should be considered newer than ``current``.

    Returns True iff candidate > current, or when there is no current version.
    """
    if current is None:
        return True
    return compare_versions(candidate, current) > 0
