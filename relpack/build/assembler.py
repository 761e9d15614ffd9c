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

"""Release archive assembly.

A release archive is an OPC-style zip package. Before archiving, the
assembler lays the package out in a staging directory:

    <staging>/
        MyApp.nuspec               # manifest (release notes rendered)
        [Content_Types].xml        # one Default per file extension
        _rels/.rels                # points at the manifest
        setup.ico                  # optional metadata files
        lib/app/...                # the application files

Steps, with their share of the stage's progress:

    1. Write the nuspec
    2. Copy the application into lib/app (0-30%)
    3. Copy metadata files into the staging root
    4. Write content types and relationships
    5. Render release notes into the nuspec
    6. Archive the staging directory (30-100%)
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
import shutil

from relpack.build.archive import ZipArchiver
from relpack.build.copier import copy_files
from relpack.build.manifest import PackageManifest, render_release_notes_file
from relpack.build.progress import ProgressCallback, no_progress, scale_progress
from relpack.logging import Logger, get_global_logger

CONTENT_TYPES_FILE_NAME = "[Content_Types].xml"
RELATIONSHIPS_TYPE = "http://schemas.microsoft.com/packaging/2010/07/manifest"

_CONTENT_TYPES_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">
  <Default Extension="rels" ContentType="application/vnd.openxmlformats-package.relationships+xml" />
{defaults}
</Types>
"""

_RELS_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">
  <Relationship Type="{type}" Target="/{target}" Id="R1" />
</Relationships>
"""


def add_content_types_and_rels(nuspec_path: Path) -> list[str]:
    """Write ``[Content_Types].xml`` and ``_rels/.rels`` next to a nuspec.

    Every distinct, lower-cased file extension found below the nuspec's
    directory gets an ``application/octet`` default. Files without an
    extension contribute nothing. Must run after all other files have
    been staged.

    Args:
        nuspec_path: Path to the staged nuspec file.

    Returns:
        The sorted list of extensions declared.
    """
    root = nuspec_path.parent
    extensions = sorted(
        {
            p.suffix.lstrip(".").lower()
            for p in root.rglob("*")
            if p.is_file() and p.suffix.lstrip(".")
        }
    )
    defaults = "\n".join(
        f'  <Default Extension="{ext}" ContentType="application/octet" />'
        for ext in extensions
    )
    (root / CONTENT_TYPES_FILE_NAME).write_text(
        _CONTENT_TYPES_TEMPLATE.format(defaults=defaults), encoding="utf-8"
    )

    rels_dir = root / "_rels"
    rels_dir.mkdir(exist_ok=True)
    (rels_dir / ".rels").write_text(
        _RELS_TEMPLATE.format(type=RELATIONSHIPS_TYPE, target=nuspec_path.name),
        encoding="utf-8",
    )
    return extensions


def assemble_release_archive(
    pack_dir: Path,
    manifest: PackageManifest,
    output_path: Path,
    progress: ProgressCallback = no_progress,
    *,
    staging_dir: Path,
    metadata_files: Mapping[str, Path] | None = None,
    archiver: ZipArchiver | None = None,
    logger: Logger | None = None,
) -> Path:
    """Build a full release archive from a prepared package directory.

    Args:
        pack_dir: Preprocessed (and possibly signed) package directory.
        manifest: Manifest to embed as ``<id>.nuspec``.
        output_path: Where the archive is written.
        progress: 0-100 progress callback.
        staging_dir: Empty directory to lay the package out in. Owned by
            the caller.
        metadata_files: Mapping of root file name to source path, copied
            verbatim into the archive root.
        archiver: Archiver to use. Default: ZipArchiver().
        logger: Logger for verbose output. Default: global logger.

    Returns:
        ``output_path``.

    Raises:
        OSError: If staging or archiving fails.
        PackagingError: If the staged manifest cannot be rendered.
    """
    logger = logger or get_global_logger()
    archiver = archiver or ZipArchiver(logger=logger)
    staging_dir.mkdir(parents=True, exist_ok=True)

    nuspec_path = staging_dir / f"{manifest.id}.nuspec"
    nuspec_path.write_text(manifest.to_xml(), encoding="utf-8")

    app_dir = staging_dir / "lib" / "app"
    copy_files(pack_dir, app_dir, scale_progress(progress, 0, 30), logger=logger)

    for name, source in (metadata_files or {}).items():
        logger.verbose("PACK", f"Adding metadata file: {name}")
        shutil.copyfile(source, staging_dir / name)

    add_content_types_and_rels(nuspec_path)
    render_release_notes_file(nuspec_path, logger=logger)

    archiver.create_archive_from_directory(
        output_path, staging_dir, scale_progress(progress, 30, 100)
    )
    progress(100)
    logger.verbose("PACK", f"Release archive created: {output_path.name}")
    return output_path
