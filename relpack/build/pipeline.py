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

"""Pack pipeline orchestration.

PackageBuilder.run() turns a directory of built application files into a
set of release artifacts and registers them in the release index, as one
all-or-nothing transaction.

Stage graph:

    validate -> preprocess -> [sign] -> full release -> delta
                                  \\              \\
                                   portable        setup

- The main chain (preprocess, sign, full release, delta) runs on the
  calling thread.
- Portable runs on a worker as soon as the package is signed.
- Setup runs on a worker once the full release archive exists.
- Every started stage is joined before the run either commits or rolls
  back.

Transaction model:
    Portable and setup packages are written to ``<final>.incomplete`` and
    registered in a PendingCommit; they only appear under their final
    names when the whole run succeeded. Full and delta archives are
    written in place and registered in the ReleaseIndex session. On any
    failure the incomplete files are deleted, the index session is rolled
    back (deleting its archives), and the original exception is re-raised.

Private Helpers:
    - _Stage: runs one hook with its own progress task
    - _join_failures: orders failures of concurrent stages
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
import os
from pathlib import Path
import tempfile
import threading
from typing import Any

from relpack.build.archive import MANIFEST_FILE_NAME, ZipArchiver
from relpack.build.assembler import assemble_release_archive
from relpack.build.copier import copy_files
from relpack.build.delta import DeltaBuilder, DeltaMode, FileDeltaBuilder
from relpack.build.installers import create_portable_package, create_setup_package
from relpack.build.manifest import PackageManifest, load_release_notes
from relpack.build.options import BuildOptions
from relpack.build.progress import (
    LoggerProgressReporter,
    ProgressCallback,
    ProgressReporter,
)
from relpack.build.signing import CodeSigner, CommandSigner, find_signable_files
from relpack.exceptions import ConfigError
from relpack.index import ReleaseEntryName, ReleaseIndex, ReleaseRecord, delta_path_for
from relpack.logging import Logger, get_global_logger
from relpack.results import PackResult
from relpack.runtime import RuntimeOs
from relpack.versioning import normalize_channel, parse_semver, resolve_version

INCOMPLETE_SUFFIX = ".incomplete"


def incomplete_path(final_path: Path) -> Path:
    """Return the temporary path an artifact is built at before commit."""
    return final_path.with_name(final_path.name + INCOMPLETE_SUFFIX)


class PendingCommit:
    """Lock-guarded list of (incomplete, final) artifact paths.

    Stages running on worker threads register their outputs here; only the
    orchestrator commits or discards them.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: list[tuple[Path, Path]] = []

    def register(self, final_path: Path) -> Path:
        """Register an artifact and return the path to build it at.

        A stale incomplete file from an earlier run is deleted first.
        """
        temp = incomplete_path(final_path)
        temp.unlink(missing_ok=True)
        with self._lock:
            self._entries.append((temp, final_path))
        return temp

    def entries(self) -> list[tuple[Path, Path]]:
        with self._lock:
            return list(self._entries)

    def commit(self, logger: Logger) -> None:
        """Move every incomplete artifact to its final path, overwriting."""
        for temp, final in self.entries():
            logger.verbose("PACK", f"Committing {final.name}")
            os.replace(temp, final)

    def discard(self, logger: Logger) -> None:
        """Delete every incomplete artifact still on disk; never raises."""
        for temp, _ in self.entries():
            try:
                if temp.exists():
                    temp.unlink()
                    logger.verbose("PACK", f"Removed incomplete file {temp.name}")
            except OSError as err:
                logger.warning("PACK", f"Failed to remove incomplete file {temp}: {err}")


@dataclass(frozen=True)
class RunContext:
    """Per-run state handed to every stage hook.

    Attributes:
        options: Build options of the run.
        channel: Resolved (normalized) channel.
        version: Resolved, channel-suffixed version.
        manifest: Package manifest.
        staging_root: Temporary directory owned by the run.
        index: Release index of the release directory.
        pending: Incomplete artifacts awaiting commit.
        logger: Logger for the run.
        previous: Previous full release in the channel, or None.
    """

    options: BuildOptions
    channel: str
    version: str
    manifest: PackageManifest
    staging_root: Path
    index: ReleaseIndex
    pending: PendingCommit
    logger: Logger
    previous: ReleaseRecord | None = None

    def staging_dir(self, name: str) -> Path:
        """Create and return a per-stage subdirectory of the staging root."""
        path = self.staging_root / name
        path.mkdir(parents=True, exist_ok=False)
        return path


class _Stage:
    def __init__(self, reporter: ProgressReporter, name: str) -> None:
        self._reporter = reporter
        self._name = name

    def __call__(self, hook: Callable[..., Any], *args: Any) -> Any:
        task = self._reporter.start_task(self._name)
        result = hook(*args, task.update)
        task.complete()
        return result


def _join_failures(
    main_error: BaseException | None,
    futures: list[Future | None],
    logger: Logger,
) -> None:
    """Wait for every future and raise the first failure in pipeline order.

    Failures after the first are logged and attached to it as notes.
    """
    failures = [main_error] if main_error is not None else []
    for future in futures:
        if future is not None and future.exception() is not None:
            failures.append(future.exception())
    if not failures:
        return

    first, *others = failures
    for other in others:
        logger.warning("PACK", f"Concurrent stage also failed: {type(other).__name__}: {other}")
        first.add_note(f"Concurrent stage also failed: {type(other).__name__}: {other}")
    raise first


class PackageBuilder:
    """Orchestrates a pack run for one operating system.

    Stage hooks (preprocess_pack_dir, code_sign, create_portable_package,
    create_release_package, create_setup_package, create_delta_package,
    get_release_metadata_files) can be overridden by platform builders.
    Every hook receives the RunContext explicitly; builders keep no
    per-run state on the instance.

    Attributes:
        supported_os: OS this builder packs for.
    """

    supported_os: RuntimeOs | None = None

    def __init__(
        self,
        supported_os: RuntimeOs | None = None,
        *,
        logger: Logger | None = None,
        progress: ProgressReporter | None = None,
        signer: CodeSigner | None = None,
        archiver: ZipArchiver | None = None,
        delta_builder: DeltaBuilder | None = None,
    ) -> None:
        if supported_os is not None:
            self.supported_os = supported_os
        if self.supported_os is None:
            raise TypeError("PackageBuilder requires a supported_os")
        self.logger = logger or get_global_logger()
        self.progress = progress or LoggerProgressReporter(self.logger)
        self.signer = signer
        self.archiver = archiver or ZipArchiver(logger=self.logger)
        self.delta_builder = delta_builder or FileDeltaBuilder(logger=self.logger)

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self, options: BuildOptions) -> PackResult:
        """Pack a release.

        Args:
            options: Build options. ``options.target_runtime.os`` must equal
                ``supported_os``.

        Returns:
            PackResult describing the committed artifacts.

        Raises:
            ConfigError: If the options are invalid. Nothing is written.
            PackagingError: If a stage fails. Everything produced by the
                run is rolled back before the error is re-raised.
            OSError: If a stage fails on I/O. Rolled back the same way.
        """
        logger = self.logger
        rid = options.target_runtime

        logger.step(1, 4, "Validating options...")
        if rid.os is not self.supported_os:
            raise ConfigError(
                f"Target runtime {rid} is not supported by the "
                f"{self.supported_os.value} builder"
            )
        if not options.package_directory.is_dir():
            raise ConfigError(f"Package directory not found: {options.package_directory}")
        for label, path in (("Icon", options.icon), ("Setup stub", options.setup_stub)):
            if path is not None and not path.is_file():
                raise ConfigError(f"{label} file not found: {path}")

        index = ReleaseIndex(options.release_dir, logger=logger)
        channel = normalize_channel(options.channel, rid.os)
        version = resolve_version(options.package_version, rid.os, channel)
        index.validate_channel_for_packaging(version, channel, rid)
        manifest = PackageManifest.create(
            options.package_id,
            version,
            title=options.package_title,
            authors=options.package_authors,
            release_notes=load_release_notes(options.release_notes),
        )
        previous = index.get_previous_full_release(version, channel)
        logger.verbose("PACK", f"Packing {options.package_id} {version} into channel {channel!r}")
        if previous:
            logger.verbose("PACK", f"Previous full release: {previous.version}")

        with tempfile.TemporaryDirectory(prefix="relpack-", ignore_cleanup_errors=True) as tmp:
            ctx = RunContext(
                options=options,
                channel=channel,
                version=version,
                manifest=manifest,
                staging_root=Path(tmp),
                index=index,
                pending=PendingCommit(),
                logger=logger,
                previous=previous,
            )
            return self._execute(ctx)

    def _execute(self, ctx: RunContext) -> PackResult:
        options = ctx.options
        rid = options.target_runtime
        options.release_dir.mkdir(parents=True, exist_ok=True)

        release_entry = ReleaseEntryName(
            package_id=options.package_id,
            version=parse_semver(ctx.version),
            rid=rid,
        )
        release_path = options.release_dir / release_entry.to_file_name()
        portable_path = ctx.index.get_suggested_portable_path(options.package_id, ctx.channel, rid)
        setup_path = ctx.index.get_suggested_setup_path(options.package_id, ctx.channel, rid)
        delta_path: Path | None = None

        committed = False
        try:
            self.logger.step(2, 4, "Pre-processing package directory...")
            pack_dir = _Stage(self.progress, "Pre-process package")(self.preprocess_pack_dir, ctx)
            if rid.os.requires_signing:
                _Stage(self.progress, "Code signing")(self.code_sign, ctx, pack_dir)

            self.logger.step(3, 4, "Building packages...")
            main_error: BaseException | None = None
            setup_future: Future | None = None
            with ThreadPoolExecutor(max_workers=2, thread_name_prefix="relpack") as pool:
                portable_future = pool.submit(
                    _Stage(self.progress, "Building portable package"),
                    self.create_portable_package,
                    ctx,
                    pack_dir,
                    ctx.pending.register(portable_path),
                )
                try:
                    release_path.unlink(missing_ok=True)
                    _Stage(self.progress, "Building release package")(
                        self.create_release_package, ctx, pack_dir, release_path
                    )
                    ctx.index.add_new_release(release_path, ctx.channel, release_entry)

                    setup_future = pool.submit(
                        _Stage(self.progress, "Building setup package"),
                        self.create_setup_package,
                        ctx,
                        release_path,
                        ctx.pending.register(setup_path),
                    )

                    if ctx.previous is not None and options.delta_mode is not DeltaMode.NONE:
                        previous_path = ctx.index.path_of(ctx.previous)
                        if previous_path.is_file():
                            delta_path = _Stage(self.progress, "Building delta package")(
                                self.create_delta_package, ctx, release_path, previous_path
                            )
                            ctx.index.add_new_release(
                                delta_path, ctx.channel, replace(release_entry, is_delta=True)
                            )
                        else:
                            self.logger.warning(
                                "PACK",
                                f"Previous release {ctx.previous.file_name} is missing; "
                                f"skipping delta package",
                            )
                except BaseException as err:
                    main_error = err

            _join_failures(main_error, [portable_future, setup_future], self.logger)

            self.logger.step(4, 4, "Finalizing release...")
            ctx.pending.commit(self.logger)
            committed = True
            ctx.index.save_releases_files()
        except BaseException:
            if not committed:
                self._rollback(ctx)
            raise

        return PackResult(
            package_id=options.package_id,
            version=ctx.version,
            channel=ctx.channel,
            full_release=release_path,
            delta_release=delta_path,
            portable=portable_path,
            setup=setup_path,
            status="success",
        )

    def _rollback(self, ctx: RunContext) -> None:
        self.logger.warning("PACK", "Pack failed; rolling back release artifacts")
        ctx.pending.discard(self.logger)
        try:
            ctx.index.rollback_new_releases()
        except Exception as err:
            self.logger.warning("PACK", f"Failed to roll back new releases: {err}")

    # ------------------------------------------------------------------
    # Stage hooks
    # ------------------------------------------------------------------

    def preprocess_pack_dir(self, ctx: RunContext, progress: ProgressCallback) -> Path:
        """Copy the package into staging and write the version manifest.

        Returns:
            The preprocessed directory, input to every later stage.
        """
        pack_dir = ctx.staging_dir("PreprocessPackDir")
        copy_files(
            ctx.options.package_directory,
            pack_dir,
            progress,
            exclude_annoyances=True,
            logger=ctx.logger,
        )
        (pack_dir / MANIFEST_FILE_NAME).write_text(ctx.manifest.to_xml(), encoding="utf-8")
        return pack_dir

    def code_sign(self, ctx: RunContext, pack_dir: Path, progress: ProgressCallback) -> None:
        """Sign the preprocessed package in place."""
        signer = self.signer
        if signer is None and ctx.options.sign_command:
            signer = CommandSigner(ctx.options.sign_command, logger=ctx.logger)
        if signer is None:
            ctx.logger.verbose("SIGN", "No signing command configured; skipping code signing")
            return

        files = find_signable_files(pack_dir, ctx.options.target_runtime.os)
        ctx.logger.verbose("SIGN", f"Signing {len(files)} file(s)")
        signer.sign(files, progress)

    def create_portable_package(
        self, ctx: RunContext, pack_dir: Path, output_path: Path, progress: ProgressCallback
    ) -> None:
        create_portable_package(
            pack_dir,
            output_path,
            progress,
            staging_dir=ctx.staging_dir("CreatePortablePackage"),
            archiver=self.archiver,
            logger=ctx.logger,
        )

    def create_release_package(
        self, ctx: RunContext, pack_dir: Path, output_path: Path, progress: ProgressCallback
    ) -> None:
        assemble_release_archive(
            pack_dir,
            ctx.manifest,
            output_path,
            progress,
            staging_dir=ctx.staging_dir("CreateReleasePackage"),
            metadata_files=self.get_release_metadata_files(ctx),
            archiver=self.archiver,
            logger=ctx.logger,
        )

    def create_setup_package(
        self, ctx: RunContext, release_path: Path, output_path: Path, progress: ProgressCallback
    ) -> None:
        create_setup_package(
            release_path,
            output_path,
            progress,
            stub=ctx.options.setup_stub,
            logger=ctx.logger,
        )

    def create_delta_package(
        self, ctx: RunContext, release_path: Path, previous_path: Path, progress: ProgressCallback
    ) -> Path:
        """Build the delta from the previous full release to the new one."""
        output, _ = self.delta_builder.create_delta_package(
            previous_path,
            release_path,
            delta_path_for(release_path),
            ctx.options.delta_mode,
            progress,
        )
        return output

    def get_release_metadata_files(self, ctx: RunContext) -> Mapping[str, Path]:
        """Return extra files (name -> source) for the release archive root."""
        return {}
