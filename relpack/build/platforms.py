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

"""Platform-specific package builders."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
import stat

from relpack.build.pipeline import PackageBuilder, RunContext
from relpack.build.progress import ProgressCallback
from relpack.runtime import RuntimeOs

SETUP_ICON_NAME = "setup.ico"


class WindowsPackageBuilder(PackageBuilder):
    """Packs Windows releases; ships the app icon as ``setup.ico``."""

    supported_os = RuntimeOs.WINDOWS

    def get_release_metadata_files(self, ctx: RunContext) -> Mapping[str, Path]:
        icon = ctx.options.icon
        return {SETUP_ICON_NAME: icon} if icon is not None else {}


class OsxPackageBuilder(PackageBuilder):
    """Packs macOS releases."""

    supported_os = RuntimeOs.OSX


class LinuxPackageBuilder(PackageBuilder):
    """Packs Linux releases.

    The setup package is a self-extracting file, so it is marked
    executable once built.
    """

    supported_os = RuntimeOs.LINUX

    def create_setup_package(
        self, ctx: RunContext, release_path: Path, output_path: Path, progress: ProgressCallback
    ) -> None:
        super().create_setup_package(ctx, release_path, output_path, progress)
        mode = output_path.stat().st_mode
        output_path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


_BUILDERS: dict[RuntimeOs, type[PackageBuilder]] = {
    RuntimeOs.WINDOWS: WindowsPackageBuilder,
    RuntimeOs.OSX: OsxPackageBuilder,
    RuntimeOs.LINUX: LinuxPackageBuilder,
}


def get_builder_for(os_: RuntimeOs) -> type[PackageBuilder]:
    """Return the builder class for an operating system."""
    return _BUILDERS[os_]
