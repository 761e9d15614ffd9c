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

"""Public API return types for relpack.

This module defines dataclasses for return values from public API functions.
These types represent the results of operations like packing a release and
validating a pack configuration.

All dataclasses are frozen (immutable) to prevent accidental mutation of
return values.

Example:
    Using result types:
        ```python
        from relpack.build import pack_release
        from relpack.results import PackResult

        result: PackResult = pack_release(options)
        print(result.full_release)  # Attribute access, not dict access
        ```

Note:
    Only public API return types belong in this module. Domain types
    (like ReleaseRecord or DeltaStats) remain co-located with their
    related logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class PackResult:
    """Result from a successful pack run.

    Attributes:
        package_id: Package identifier.
        version: Resolved (channel-suffixed) package version.
        channel: Channel the release was registered in.
        full_release: Path to the full release archive.
        delta_release: Path to the delta archive, or None when no delta
            was built (no previous release or delta mode "none").
        portable: Path to the portable package.
        setup: Path to the setup package.
        status: Always "success" for a committed run.
    """

    package_id: str
    version: str
    channel: str
    full_release: Path
    delta_release: Path | None
    portable: Path | None
    setup: Path | None
    status: str


@dataclass(frozen=True)
class ValidationResult:
    """Result from validating a pack configuration.

    Attributes:
        status: Validation status ("valid" or "invalid").
        errors: List of error messages (empty if valid).
        warnings: List of warning messages.
        config_path: String path to the validated configuration file.
    """

    status: str
    errors: list[str]
    warnings: list[str]
    config_path: str
