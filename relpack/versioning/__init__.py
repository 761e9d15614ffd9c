"""
Version comparison and channel resolution utilities for relpack.

This package provides tools for parsing and comparing semantic versions and
for computing the channel-suffixed version a release is packed under.

Modules
-------
keys : module
    Strict SemVer 2.0 parsing and precedence comparison.
channels : module
    Default channels per OS, channel validation and version suffixing.

Public API
----------
SemVer : dataclass
    Parsed semantic version with SemVer precedence ordering.
parse_semver : function
    Parse a version string, raising ConfigError on invalid input.
compare_versions : function
    Compare two version strings, returning -1, 0, or 1.
is_newer : function
    Check if a candidate version is newer than the current version.
default_channel : function
    Default channel name for an OS.
normalize_channel : function
    Lower-case and validate a channel name.
resolve_version : function
    Compute the suffixed version for an OS and channel.

Examples
--------
    >>> from relpack.runtime import RuntimeOs
    >>> from relpack.versioning import resolve_version, compare_versions
    >>> resolve_version("2.0.0", RuntimeOs.LINUX, "beta")
    '2.0.0-beta'
    >>> compare_versions("1.0.0-beta", "1.0.0")
    -1
"""

from .channels import (
    default_channel,
    normalize_channel,
    package_suffix,
    resolve_version,
)
from .keys import SemVer, compare_versions, is_newer, is_semver, parse_semver

__all__ = [
    "SemVer",
    "parse_semver",
    "is_semver",
    "compare_versions",
    "is_newer",
    "default_channel",
    "normalize_channel",
    "package_suffix",
    "resolve_version",
]
