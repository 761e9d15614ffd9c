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

"""Recursive file copying with exclusion rules and progress.

Design Principles:
    - Progress denominator is counted once, up front, over every file
    - Excluded files advance progress exactly like copied files
    - Exclusion policy is data (EXCLUDE_RULES), evaluated per path
    - Existing files in the target are overwritten
    - Symbolic links are copied as links and never followed

Example:
    from pathlib import Path
    from relpack.build.copier import copy_files

    copied = copy_files(
        Path("publish"),
        Path("staging/lib/app"),
        progress=lambda p: print(f"{p}%"),
        exclude_annoyances=True,
    )
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
import os
from pathlib import Path, PurePosixPath
import shutil

from relpack.build.progress import ProgressCallback, no_progress
from relpack.logging import Logger, get_global_logger

ExclusionRule = Callable[[PurePosixPath], bool]


def _is_crash_dump_tool(path: PurePosixPath) -> bool:
    return any(part.startswith("createdump") for part in path.parts)


def _is_host_shim(path: PurePosixPath) -> bool:
    return any(".vshost." in part for part in path.parts)


def _is_package_archive(path: PurePosixPath) -> bool:
    return path.suffix == ".nupkg"


def _is_debug_symbols(path: PurePosixPath) -> bool:
    return path.suffix == ".pdb"


# Rules receive the lower-cased path relative to the copy root.
EXCLUDE_RULES: tuple[tuple[str, ExclusionRule], ...] = (
    ("crash dump tool", _is_crash_dump_tool),
    ("host shim", _is_host_shim),
    ("package archive", _is_package_archive),
    ("debug symbols", _is_debug_symbols),
)


def is_excluded(relative_path: str | PurePosixPath) -> str | None:
    """Check a path against the exclusion rules.

    Args:
        relative_path: Path relative to the copy root, using any separator.

    Returns:
        The name of the first matching rule, or None if the path is kept.

    Example:
        >>> is_excluded("App.PDB")
        'debug symbols'
        >>> is_excluded("App.exe") is None
        True
    """
    normalized = PurePosixPath(str(relative_path).replace("\\", "/").lower())
    for name, rule in EXCLUDE_RULES:
        if rule(normalized):
            return name
    return None


def _walk(root: Path) -> Iterator[tuple[Path, list[str]]]:
    """Yield ``(directory, entry names)`` for ``root`` and each subdirectory.

    Entries are regular files plus symbolic links of any kind. A link to a
    directory is an entry and is never descended into.
    """
    for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
        here = Path(dirpath)
        linked = [d for d in dirnames if (here / d).is_symlink()]
        dirnames[:] = sorted(d for d in dirnames if d not in linked)
        yield here, sorted(filenames + linked)


def count_files(root: Path) -> int:
    """Count the files below ``root`` that copy_files would visit."""
    return sum(len(entries) for _, entries in _walk(root))


def _copy_entry(src: Path, dst: Path) -> None:
    if dst.is_symlink() or (src.is_symlink() and dst.exists()):
        dst.unlink()
    shutil.copy2(src, dst, follow_symlinks=False)


def copy_files(
    source: Path,
    target: Path,
    progress: ProgressCallback = no_progress,
    exclude_annoyances: bool = False,
    logger: Logger | None = None,
) -> int:
    """Copy a directory tree, optionally skipping excluded files.

    Files in a directory are copied before its subdirectories are visited.
    Subdirectories are created in the target even when every file in them
    is excluded. Symbolic links are recreated as links, including links to
    directories, which are never followed.

    Args:
        source: Directory to copy from.
        target: Directory to copy into (created if missing).
        progress: Callback receiving completed/total * 100 after each file.
        exclude_annoyances: If True, skip files matching EXCLUDE_RULES.
        logger: Logger for debug output. Default: global logger.

    Returns:
        Number of files actually copied.

    Raises:
        FileNotFoundError: If ``source`` doesn't exist.
        OSError: If a file cannot be copied.
    """
    logger = logger or get_global_logger()
    if not source.is_dir():
        raise FileNotFoundError(f"Source directory not found: {source}")

    layout = list(_walk(source))
    total = sum(len(entries) for _, entries in layout)
    current = 0
    copied = 0

    for directory, entries in layout:
        dst_dir = target / directory.relative_to(source)
        dst_dir.mkdir(parents=True, exist_ok=True)
        for name in entries:
            item = directory / name
            current += 1
            progress(int(current / total * 100))
            if exclude_annoyances:
                rule = is_excluded(item.relative_to(source).as_posix())
                if rule:
                    logger.debug("COPY", f"Skipping {rule}: {item.relative_to(source)}")
                    continue
            _copy_entry(item, dst_dir / name)
            copied += 1

    logger.verbose("COPY", f"Copied {copied} of {total} file(s) to {target}")
    return copied
