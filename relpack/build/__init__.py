"""
Release package building for relpack.

This package turns a directory of built application files into versioned
release artifacts: a full release archive, an optional delta package, a
portable zip and a setup bundle. It orchestrates file staging, manifest
generation, code signing, archiving and the commit/rollback of the release
directory.

Public API:

pack_release : function
    Pack a release with the builder matching the target runtime's OS.
PackageBuilder : class
    Pipeline orchestrator; subclass to override individual stages.
BuildOptions : dataclass
    Immutable inputs of a pack run.
DeltaMode : enum
    Delta generation mode (none, best-speed, best-size).
get_builder_for : function
    Builder class for an operating system.

Example:
    from pathlib import Path
    from relpack.build import BuildOptions, pack_release
    from relpack.runtime import Rid

    result = pack_release(
        BuildOptions(
            target_runtime=Rid.parse("win-x64"),
            release_dir=Path("releases"),
            package_id="MyApp",
            package_version="1.0.0",
            package_directory=Path("publish"),
            channel="stable",
        )
    )

    print(f"Full release: {result.full_release}")
"""

from __future__ import annotations

from relpack.build.delta import DeltaMode, DeltaStats, FileDeltaBuilder
from relpack.build.options import BuildOptions
from relpack.build.pipeline import PackageBuilder, PendingCommit, RunContext
from relpack.build.platforms import (
    LinuxPackageBuilder,
    OsxPackageBuilder,
    WindowsPackageBuilder,
    get_builder_for,
)
from relpack.build.progress import ProgressReporter
from relpack.build.signing import CodeSigner
from relpack.logging import Logger
from relpack.results import PackResult


def pack_release(
    options: BuildOptions,
    *,
    logger: Logger | None = None,
    progress: ProgressReporter | None = None,
    signer: CodeSigner | None = None,
) -> PackResult:
    """Pack a release using the builder for the target runtime's OS.

    Raises:
        ConfigError: If the options are invalid.
        PackagingError: If a stage fails (after rolling back).
    """
    builder_cls = get_builder_for(options.target_runtime.os)
    builder = builder_cls(logger=logger, progress=progress, signer=signer)
    return builder.run(options)


__all__ = [
    "BuildOptions",
    "DeltaMode",
    "DeltaStats",
    "FileDeltaBuilder",
    "LinuxPackageBuilder",
    "OsxPackageBuilder",
    "PackageBuilder",
    "PendingCommit",
    "RunContext",
    "WindowsPackageBuilder",
    "get_builder_for",
    "pack_release",
]
