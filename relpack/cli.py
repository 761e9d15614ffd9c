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

"""Command-line interface for relpack.

This module provides the main CLI entry point for the relpack tool, offering
commands for packing releases, validating pack configurations and
inspecting release directories.

Commands:

    pack: Build and register a release from a pack configuration
    validate: Validate a pack configuration without building
    releases: List the releases registered in a release directory
    inspect: Show the manifest and size of a release archive

Example:
    Pack a release:
        ```bash
        $ relpack pack apps/MyApp/relpack.yaml
        ```

    Pack into a channel with a version override:
        ```bash
        $ relpack pack apps/MyApp/relpack.yaml --channel beta --version 1.2.0
        ```

    Validate a pack configuration:
        ```bash
        $ relpack validate apps/MyApp/relpack.yaml
        ```

    List releases:
        ```bash
        $ relpack releases apps/MyApp/releases --channel beta
        ```

Exit Codes:

- 0: Success
- 1: Error (configuration, packaging, or validation failure)

Note:
    Commands are registered with subparsers for clean organization.
    Each command has its own handler function (cmd_<command>).
    Verbose mode shows full tracebacks on errors for debugging.
    Debug mode implies verbose mode and shows detailed configuration dumps.

"""

from __future__ import annotations

import argparse
from pathlib import Path
import sys

from relpack import __version__
from relpack.build import DeltaMode, pack_release
from relpack.build.archive import ReleaseBundle
from relpack.config import build_options, load_effective_config
from relpack.exceptions import ConfigError, PackagingError, RelpackError
from relpack.index import ReleaseIndex
from relpack.logging import get_logger, set_global_logger
from relpack.validation import validate_config


def _print_traceback(args: argparse.Namespace) -> None:
    if args.verbose or args.debug:
        import traceback

        traceback.print_exc()


def cmd_pack(args: argparse.Namespace) -> int:
    """Handler for 'relpack pack' command.

    Loads the pack configuration, applies command-line overrides, and runs
    the pack pipeline for the target runtime's OS. On failure, every
    artifact of the run has already been rolled back.

    Args:
        args: Parsed command-line arguments containing the config path,
            overrides, and flags.

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    logger = get_logger(verbose=args.verbose, debug=args.debug)
    set_global_logger(logger)

    config_path = Path(args.config).resolve()
    if not config_path.exists():
        print(f"Error: Configuration file not found: {config_path}")
        return 1

    print(f"Packing release from: {config_path}")
    print()

    try:
        config = load_effective_config(config_path)
        options = build_options(
            config,
            version=args.version,
            channel=args.channel,
            runtime=args.runtime,
            release_dir=args.release_dir,
            delta_mode=args.delta,
        )
        result = pack_release(options, logger=logger)
    except (ConfigError, PackagingError) as err:
        print(f"Error: {err}")
        _print_traceback(args)
        return 1
    except RelpackError as err:
        # Catch any other relpack errors we might have missed
        print(f"Error: {err}")
        _print_traceback(args)
        return 1
    except OSError as err:
        print(f"Error: {err}")
        _print_traceback(args)
        return 1

    # Display results
    print("=" * 70)
    print("PACK RESULTS")
    print("=" * 70)
    print(f"Package ID:      {result.package_id}")
    print(f"Version:         {result.version}")
    print(f"Channel:         {result.channel}")
    print(f"Full Release:    {result.full_release}")
    print(f"Delta Release:   {result.delta_release or '(none)'}")
    print(f"Portable:        {result.portable}")
    print(f"Setup:           {result.setup}")
    print(f"Status:          {result.status}")
    print("=" * 70)
    print()
    print("[SUCCESS] Release packed successfully!")

    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Handler for 'relpack validate' command.

    Validates a pack configuration without copying or archiving anything.

    Returns:
        Exit code (0 for a valid configuration, 1 for invalid).
    """
    logger = get_logger(verbose=args.verbose, debug=args.debug)
    set_global_logger(logger)

    config_path = Path(args.config).resolve()

    print(f"Validating pack configuration: {config_path}")
    print()

    result = validate_config(config_path)

    print("=" * 70)
    print("VALIDATION RESULTS")
    print("=" * 70)
    print(f"Config:      {result.config_path}")
    print(f"Status:      {result.status.upper()}")
    print()

    if result.warnings:
        print(f"Warnings ({len(result.warnings)}):")
        for warning in result.warnings:
            print(f"  [WARNING] {warning}")
        print()

    if result.errors:
        print(f"Errors ({len(result.errors)}):")
        for error in result.errors:
            print(f"  [X] {error}")
        print()

    print("=" * 70)

    if result.status == "valid":
        print()
        print("[SUCCESS] Configuration is valid!")
        return 0
    else:
        print()
        print(f"[FAILED] Validation failed with {len(result.errors)} error(s).")
        return 1


def cmd_releases(args: argparse.Namespace) -> int:
    """Handler for 'relpack releases' command.

    Lists the releases registered in a release directory. Without
    --channel, every ``releases.<channel>.json`` index found is listed.

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    logger = get_logger(verbose=args.verbose, debug=args.debug)
    set_global_logger(logger)

    release_dir = Path(args.release_dir).resolve()
    if not release_dir.is_dir():
        print(f"Error: Release directory not found: {release_dir}")
        return 1

    if args.channel:
        channels = [args.channel]
    else:
        channels = sorted(
            p.name[len("releases.") : -len(".json")] for p in release_dir.glob("releases.*.json")
        )

    index = ReleaseIndex(release_dir, logger=logger)
    print("=" * 70)
    print(f"RELEASES IN {release_dir}")
    print("=" * 70)
    try:
        for channel in channels:
            records = index.list_releases(channel)
            print(f"Channel: {channel} ({len(records)} release(s))")
            for record in records:
                kind = "delta" if record.is_delta else "full"
                print(f"  {record.version:<20} {kind:<6} {record.size:>12,}  {record.file_name}")
            print()
    except RelpackError as err:
        print(f"Error: {err}")
        _print_traceback(args)
        return 1
    if not channels:
        print("No release index files found.")
    print("=" * 70)
    return 0


def cmd_inspect(args: argparse.Namespace) -> int:
    """Handler for 'relpack inspect' command.

    Prints the manifest and size of a release archive.

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    logger = get_logger(verbose=args.verbose, debug=args.debug)
    set_global_logger(logger)

    archive = Path(args.archive).resolve()
    try:
        with ReleaseBundle.open(archive) as bundle:
            manifest = bundle.read_manifest()
            compressed, uncompressed = bundle.calculate_size()
            entries = bundle.file_names()
    except (FileNotFoundError, RelpackError) as err:
        print(f"Error: {err}")
        _print_traceback(args)
        return 1

    print("=" * 70)
    print("RELEASE ARCHIVE")
    print("=" * 70)
    print(f"File:            {archive.name}")
    print(f"Package ID:      {manifest.id}")
    print(f"Title:           {manifest.title}")
    print(f"Authors:         {manifest.authors}")
    print(f"Version:         {manifest.version}")
    print(f"Entries:         {len(entries)}")
    print(f"Compressed:      {compressed:,} bytes")
    print(f"Uncompressed:    {uncompressed:,} bytes")
    if manifest.release_notes:
        print("Release Notes:")
        for line in manifest.release_notes.splitlines():
            print(f"  {line}")
    print("=" * 70)
    if args.verbose or args.debug:
        for name in entries:
            print(f"  {name}")
    return 0


def _add_output_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show progress and high-level status updates",
    )
    parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Show detailed debugging output (implies --verbose)",
    )


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the relpack CLI.

    This function is registered as the 'relpack' console script in
    pyproject.toml.
    """
    parser = argparse.ArgumentParser(
        prog="relpack",
        description="relpack - build, version and register application releases",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"relpack {__version__}",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
        required=True,
    )

    # 'pack' command
    parser_pack = subparsers.add_parser(
        "pack",
        help="Build and register a release",
        description="Build full, delta, portable and setup packages and register them in the release index.",
    )
    parser_pack.add_argument(
        "config",
        help="Path to the pack configuration YAML file",
    )
    parser_pack.add_argument(
        "--version",
        dest="version",
        default=None,
        help="Package version (overrides package.version)",
    )
    parser_pack.add_argument(
        "--channel",
        default=None,
        help="Release channel (overrides target.channel; default: the OS channel)",
    )
    parser_pack.add_argument(
        "--runtime",
        default=None,
        help="Target runtime, e.g. win-x64 (overrides target.runtime)",
    )
    parser_pack.add_argument(
        "--release-dir",
        default=None,
        help="Release output directory (overrides output.release_dir)",
    )
    parser_pack.add_argument(
        "--delta",
        choices=[m.value for m in DeltaMode] + ["standard"],
        default=None,
        help="Delta generation mode (overrides delta.mode)",
    )
    _add_output_flags(parser_pack)
    parser_pack.set_defaults(func=cmd_pack)

    # 'validate' command
    parser_validate = subparsers.add_parser(
        "validate",
        help="Validate a pack configuration (no packing)",
        description="Check pack configuration YAML for syntax errors and configuration issues.",
    )
    parser_validate.add_argument(
        "config",
        help="Path to the pack configuration YAML file",
    )
    _add_output_flags(parser_validate)
    parser_validate.set_defaults(func=cmd_validate)

    # 'releases' command
    parser_releases = subparsers.add_parser(
        "releases",
        help="List releases registered in a release directory",
        description="Print the release index of one or all channels.",
    )
    parser_releases.add_argument(
        "release_dir",
        help="Path to the release directory",
    )
    parser_releases.add_argument(
        "--channel",
        default=None,
        help="Only list this channel",
    )
    _add_output_flags(parser_releases)
    parser_releases.set_defaults(func=cmd_releases)

    # 'inspect' command
    parser_inspect = subparsers.add_parser(
        "inspect",
        help="Show the manifest of a release archive",
        description="Read the nuspec manifest and size information of a .nupkg release archive.",
    )
    parser_inspect.add_argument(
        "archive",
        help="Path to the release archive",
    )
    _add_output_flags(parser_inspect)
    parser_inspect.set_defaults(func=cmd_inspect)

    # Parse and dispatch
    args = parser.parse_args(argv)

    # Call the appropriate command handler
    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
