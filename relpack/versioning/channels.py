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

"""Channel resolution and version suffixing.

Every OS has a default channel named after it ("win", "osx", "linux").
Releases in the default channel keep their version as-is; releases in any
other channel get the channel appended as a prerelease label so that
packages from different channels never collide in one release directory:

    1.2.0 on channel "win"  (Windows default) -> 1.2.0
    1.2.0 on channel "beta"                   -> 1.2.0-beta

All functions here are pure: no file-system access, no global state.
"""

from __future__ import annotations

import re

from relpack.exceptions import ConfigError
from relpack.runtime import RuntimeOs
from relpack.versioning.keys import parse_semver

_CHANNEL_RE = re.compile(r"^[a-z0-9][a-z0-9._-]*$")


def default_channel(os: RuntimeOs) -> str:
    """Return the default channel name for an OS."""
    return os.value


def normalize_channel(channel: str | None, os: RuntimeOs) -> str:
    """Lower-case a channel name, falling back to the OS default.

    Raises:
        ConfigError: If the channel contains characters that cannot appear
            in a file name or a SemVer prerelease label.
    """
    if channel is None or not channel.strip():
        return default_channel(os)
    name = channel.strip().lower()
    if not _CHANNEL_RE.match(name):
        raise ConfigError(
            f"Invalid channel name: {channel!r}. "
            f"Use lowercase letters, digits, '.', '_' or '-'."
        )
    return name


def package_suffix(os: RuntimeOs, channel: str) -> str:
    """Return the version suffix for a channel ("" for the OS default)."""
    if channel == default_channel(os):
        return ""
    return f"-{channel}"


def resolve_version(base_version: str, os: RuntimeOs, channel: str) -> str:
    """Append the channel suffix to a semantic version.

    Args:
        base_version: Version from the pack configuration, e.g. "1.0.0".
        os: Target operating system.
        channel: Normalized channel name.

    Returns:
        The suffixed version string.

    Raises:
        ConfigError: If ``base_version`` or the suffixed result is not a
            valid semantic version.

    Example:
        >>> resolve_version("1.0.0", RuntimeOs.WINDOWS, "stable")
        '1.0.0-stable'
        >>> resolve_version("1.0.0", RuntimeOs.WINDOWS, "win")
        '1.0.0'
    """
    parse_semver(base_version)
    suffix = package_suffix(os, channel)
    if not suffix:
        return base_version
    resolved = base_version + suffix
    parse_semver(resolved)
    return resolved
