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

"""Exception hierarchy for relpack.

This module defines a custom exception hierarchy that allows library users
to distinguish between different types of errors:

- ConfigError: Configuration errors (YAML parse, missing fields, OS mismatch,
  invalid channel/version pairing)
- PackagingError: Build stage failures (archive, setup, portable, I/O)
- SigningError: Code-signing command failures
- DeltaError: Delta package generation failures
- ReleaseIndexError: Unreadable or corrupted release index files

All exceptions inherit from RelpackError, allowing users to catch all
relpack errors with a single except clause if needed.

Example:
    Catching specific error types:
        ```python
        from relpack.build import pack_release
        from relpack.exceptions import ConfigError, PackagingError

        try:
            result = pack_release(options)
        except ConfigError as e:
            print(f"Configuration error: {e}")
        except PackagingError as e:
            print(f"Packaging error: {e}")
        ```

    Catching all relpack errors:
        ```python
        from relpack.exceptions import RelpackError

        try:
            result = pack_release(options)
        except RelpackError as e:
            print(f"relpack error: {e}")
        ```
"""

from __future__ import annotations

__all__ = [
    "RelpackError",
    "ConfigError",
    "PackagingError",
    "SigningError",
    "DeltaError",
    "ReleaseIndexError",
]


class RelpackError(Exception):
    """Base exception for all relpack errors.

    All relpack-specific exceptions inherit from this class, allowing users
    to catch all relpack errors with a single except clause if needed.
    """

    pass


class ConfigError(RelpackError):
    """Raised for configuration-related errors.

    This exception is raised when there are problems with:

    - YAML parsing (syntax errors, invalid structure)
    - Missing or invalid configuration fields
    - Target runtime OS not matching the builder's supported OS
    - Invalid channel names or channel/version pairings
    - Missing release notes or package directories

    Configuration errors are always raised before the pack pipeline
    touches the release directory, so no rollback is needed.

    Example:
        Catching configuration errors:
            ```python
            from relpack.exceptions import ConfigError

            try:
                config = load_effective_config(Path("invalid.yaml"))
            except ConfigError as e:
                print(f"Config error: {e}")
            ```
    """

    pass


class PackagingError(RelpackError):
    """Raised for build stage failures.

    This exception is raised when there are problems with:

    - Release archive assembly (staging, archiving)
    - Portable or setup package creation
    - Committing incomplete artifacts to their final paths

    A PackagingError raised inside the pipeline triggers a rollback of
    every artifact produced during the same run.
    """

    pass


class SigningError(PackagingError):
    """Raised when the configured code-signing command fails."""

    pass


class DeltaError(PackagingError):
    """Raised when a delta package cannot be generated."""

    pass


class ReleaseIndexError(RelpackError):
    """Raised when a release index file cannot be read or parsed.

    Example:
        Handling a corrupted index:
            ```python
            from relpack.exceptions import ReleaseIndexError

            try:
                records = index.list_releases("stable")
            except ReleaseIndexError as e:
                print(f"Index error: {e}")
            ```
    """

    pass
