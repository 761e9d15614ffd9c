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

"""Build options for a pack run."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from relpack.build.delta import DeltaMode
from relpack.runtime import Rid


@dataclass(frozen=True)
class BuildOptions:
    """Immutable inputs of one pack run.

    Attributes:
        target_runtime: Runtime the release targets. Its OS must match the
            builder's supported OS.
        release_dir: Directory receiving release archives and the index.
        package_id: Package identifier.
        package_version: Base (unsuffixed) semantic version.
        package_directory: Directory holding the built application.
        channel: Release channel. Default: the target OS's channel.
        delta_mode: Delta generation mode.
        package_title: Display title. Default: package id.
        package_authors: Authors. Default: package id.
        release_notes: Markdown release notes file, or None.
        icon: Icon file shipped as ``setup.ico`` (Windows only), or None.
        setup_stub: Installer stub prepended to the setup package, or None.
        sign_command: Signing command template (``{file}`` placeholder),
            or empty to skip signing.
    """

    target_runtime: Rid
    release_dir: Path
    package_id: str
    package_version: str
    package_directory: Path
    channel: str | None = None
    delta_mode: DeltaMode = DeltaMode.BEST_SPEED
    package_title: str | None = None
    package_authors: str | None = None
    release_notes: Path | None = None
    icon: Path | None = None
    setup_stub: Path | None = None
    sign_command: tuple[str, ...] = field(default_factory=tuple)
