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

"""Conversion of merged configuration dicts into BuildOptions.

Required fields:

- package.id
- package.version
- package.directory
- target.runtime

Every other field is optional. Command-line overrides replace the matching
config value before validation, so ``relpack pack app.yaml --version 1.2.0``
works with a config that has no version at all.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from relpack.build.delta import DeltaMode
from relpack.build.options import BuildOptions
from relpack.exceptions import ConfigError
from relpack.runtime import Rid
from relpack.versioning import is_semver

_REQUIRED: tuple[tuple[str, str], ...] = (
    ("package", "id"),
    ("package", "version"),
    ("package", "directory"),
    ("target", "runtime"),
)


def _section(config: dict[str, Any], name: str) -> dict[str, Any]:
    value = config.get(name) or {}
    return value if isinstance(value, dict) else {}


def apply_overrides(
    config: dict[str, Any],
    *,
    version: str | None = None,
    channel: str | None = None,
    runtime: str | None = None,
    release_dir: str | None = None,
    delta_mode: str | None = None,
) -> dict[str, Any]:
    """Return a copy of ``config`` with command-line overrides applied."""
    overrides = {
        ("package", "version"): version,
        ("target", "channel"): channel,
        ("target", "runtime"): runtime,
        ("output", "release_dir"): str(Path(release_dir).resolve()) if release_dir else None,
        ("delta", "mode"): delta_mode,
    }
    result = {k: (dict(v) if isinstance(v, dict) else v) for k, v in config.items()}
    for (section, key), value in overrides.items():
        if value is not None:
            block = result.get(section)
            if not isinstance(block, dict):
                block = result[section] = {}
            block[key] = value
    return result


def collect_config_errors(config: dict[str, Any]) -> list[str]:
    """Return every problem found in a merged configuration.

    An empty list means build_options() will succeed (file-system checks
    such as the package directory existing happen at pack time).
    """
    errors: list[str] = []
    for section, key in _REQUIRED:
        value = _section(config, section).get(key)
        if value is None or (isinstance(value, str) and not value.strip()):
            errors.append(f"Missing required field: {section}.{key}")

    version = _section(config, "package").get("version")
    if version is not None and not is_semver(str(version)):
        errors.append(f"package.version is not a semantic version: {version}")

    runtime = _section(config, "target").get("runtime")
    if runtime:
        try:
            Rid.parse(str(runtime))
        except ConfigError as err:
            errors.append(f"target.runtime: {err}")

    mode = _section(config, "delta").get("mode")
    if mode is not None:
        try:
            DeltaMode.parse(str(mode))
        except ConfigError as err:
            errors.append(f"delta.mode: {err}")

    command = _section(config, "signing").get("command")
    if command is not None and (
        not isinstance(command, list) or not all(isinstance(a, str) for a in command)
    ):
        errors.append("signing.command must be a list of strings")

    return errors


def _optional_path(value: Any) -> Path | None:
    return Path(value) if value else None


def build_options(config: dict[str, Any], **overrides: str | None) -> BuildOptions:
    """Build BuildOptions from a merged configuration.

    Args:
        config: Configuration returned by load_effective_config().
        **overrides: Command-line overrides accepted by apply_overrides()
            (version, channel, runtime, release_dir, delta_mode).

    Returns:
        Validated BuildOptions.

    Raises:
        ConfigError: If required fields are missing or values are invalid.
    """
    config = apply_overrides(config, **overrides)
    errors = collect_config_errors(config)
    if errors:
        raise ConfigError("Invalid pack configuration:\n  " + "\n  ".join(errors))

    package = _section(config, "package")
    target = _section(config, "target")
    output = _section(config, "output")

    return BuildOptions(
        target_runtime=Rid.parse(str(target["runtime"])),
        release_dir=Path(output.get("release_dir") or "releases"),
        package_id=str(package["id"]),
        package_version=str(package["version"]),
        package_directory=Path(package["directory"]),
        channel=target.get("channel"),
        delta_mode=DeltaMode.parse(_section(config, "delta").get("mode")),
        package_title=package.get("title"),
        package_authors=package.get("authors"),
        release_notes=_optional_path(package.get("release_notes")),
        icon=_optional_path(package.get("icon")),
        setup_stub=_optional_path(_section(config, "setup").get("stub")),
        sign_command=tuple(_section(config, "signing").get("command") or ()),
    )
