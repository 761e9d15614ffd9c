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

"""Pack configuration validation module.

This module checks a pack configuration without building anything. This is
useful for quick feedback while writing a configuration and in CI/CD
pipelines before a release build.

Validation Checks:

- YAML syntax is valid (including org defaults)
- apiVersion is supported
- Required fields present (package.id, package.version, package.directory,
  target.runtime)
- Version, runtime and delta mode values are valid
- Referenced files and directories exist

Example:
    Validate a pack configuration and handle results:
        ```python
        from pathlib import Path
        from relpack.validation import validate_config

        result = validate_config(Path("apps/MyApp/relpack.yaml"))
        if result.status == "valid":
            print("Configuration is valid")
        else:
            for error in result.errors:
                print(f"Error: {error}")
        ```

"""

from __future__ import annotations

from pathlib import Path

from relpack.config import collect_config_errors, load_effective_config
from relpack.exceptions import ConfigError
from relpack.logging import get_global_logger
from relpack.results import ValidationResult

__all__ = ["validate_config"]

API_VERSION = "relpack/v1"

_EXISTING_PATHS: tuple[tuple[str, str, str], ...] = (
    ("package", "directory", "dir"),
    ("package", "release_notes", "file"),
    ("package", "icon", "file"),
    ("setup", "stub", "file"),
)


def validate_config(config_path: Path) -> ValidationResult:
    """Validate a pack configuration file without packing anything.

    Args:
        config_path: Path to the pack configuration YAML file.

    Returns:
        ValidationResult with status "valid" or "invalid", the list of
        error messages, and any warnings.
    """
    logger = get_global_logger()
    errors: list[str] = []
    warnings: list[str] = []

    logger.verbose("VALIDATE", f"Validating pack configuration: {config_path}")

    try:
        config = load_effective_config(config_path)
    except FileNotFoundError:
        errors.append(f"Configuration file not found: {config_path}")
        return ValidationResult("invalid", errors, warnings, str(config_path))
    except ConfigError as err:
        errors.append(str(err))
        return ValidationResult("invalid", errors, warnings, str(config_path))

    logger.verbose("VALIDATE", "[OK] YAML syntax is valid")

    api_version = config.get("apiVersion")
    if api_version is None:
        warnings.append(f"Missing apiVersion (expected: {API_VERSION})")
    elif api_version != API_VERSION:
        warnings.append(
            f"apiVersion '{api_version}' may not be supported (expected: {API_VERSION})"
        )

    errors.extend(collect_config_errors(config))

    for section, key, kind in _EXISTING_PATHS:
        block = config.get(section)
        value = block.get(key) if isinstance(block, dict) else None
        if not value:
            continue
        path = Path(value)
        exists = path.is_dir() if kind == "dir" else path.is_file()
        if not exists:
            errors.append(f"{section}.{key}: {'directory' if kind == 'dir' else 'file'} not found: {path}")

    status = "valid" if not errors else "invalid"
    if status == "valid":
        logger.verbose("VALIDATE", "[OK] Configuration is valid!")
    else:
        logger.verbose("VALIDATE", f"[ERROR] Configuration has {len(errors)} error(s)")

    return ValidationResult(status, errors, warnings, str(config_path))
