"""
Configuration loading and merging for relpack.

This module implements a two-layer configuration system that lets
organization-wide defaults be overridden by a per-application pack
configuration. Shared settings (signing command, delta mode, release
directory layout) live in one place; each app's pack file stays small.

Configuration Layers
--------------------
1. **Organization defaults** (defaults/org.yaml)
   - Base configuration for every package
   - Typically holds signing, delta and output settings
   - Found by walking upward from the pack configuration

2. **Pack configuration** (e.g. apps/MyApp/relpack.yaml)
   - App-specific configuration
   - Always required; defines the package itself
   - Overrides organization defaults

Merge Behavior
--------------
The loader performs deep merging with "last wins" semantics:
  - **Dicts**: Recursively merged (keys from overlay override base)
  - **Lists**: Completely replaced (NOT appended/extended)
  - **Scalars**: Overwritten (strings, numbers, booleans)

Path Resolution
---------------
Relative paths in configuration are resolved against the PACK FILE
location, making pack configurations relocatable. Currently resolved paths:
  - package.directory
  - package.release_notes
  - package.icon
  - output.release_dir
  - setup.stub

When output.release_dir is not set by any layer it defaults to
``releases`` next to the pack file.

Functions
---------
load_effective_config : function
    Load and merge configuration for a pack file (main public API).

Private Helpers
---------------
_load_yaml_file : Load YAML with error handling
_deep_merge_dicts : Recursive dict merging
_find_defaults_root : Locate defaults directory
_resolve_known_paths : Resolve relative paths to absolute

Error Handling
--------------
- FileNotFoundError: Pack configuration file doesn't exist
- ConfigError: YAML parse errors, empty files, non-mapping documents
- All errors are chained with "from err" for better debugging

Examples
--------
Basic usage:

    >>> from pathlib import Path
    >>> from relpack.config import load_effective_config
    >>> cfg = load_effective_config(Path("apps/MyApp/relpack.yaml"))
    >>> print(cfg["package"]["id"])
    MyApp

Notes
-----
- The loader walks upward from the pack file to find defaults/org.yaml
- Paths are resolved relative to the pack file, not the working directory
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from relpack.exceptions import ConfigError
from relpack.logging import get_global_logger

DEFAULT_RELEASE_DIR = "releases"

_PATH_FIELDS: tuple[tuple[str, str], ...] = (
    ("package", "directory"),
    ("package", "release_notes"),
    ("package", "icon"),
    ("output", "release_dir"),
    ("setup", "stub"),
)

# -------------------------------
# YAML helpers
# -------------------------------


def _load_yaml_file(p: Path) -> Any:
    """
    Load a YAML file and return the parsed Python object.

    Raises:
      FileNotFoundError      - when file does not exist
      ConfigError            - for invalid YAML (parse error) or an empty file
    """
    if not p.exists():
        raise FileNotFoundError(f"file not found: {p}")
    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as err:
        raise ConfigError(f"Error parsing YAML: {p}: {err}") from err
    if data is None:
        raise ConfigError(f"YAML file is empty: {p}")
    return data


# -------------------------------
# Merge logic
# -------------------------------


def _deep_merge_dicts(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """
    Deep-merge two dicts with "overlay wins".

    Rules:
      - dict + dict -> deep merge
      - list + list -> overlay REPLACES base (not concatenated)
      - everything else -> overlay overwrites base

    This function does not mutate inputs; returns a new dict.
    """
    result: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge_dicts(result[k], v)
        else:
            # Replace lists and scalars entirely
            result[k] = v
    return result


# -------------------------------
# Defaults discovery
# -------------------------------


def _find_defaults_root(start_dir: Path) -> Path | None:
    """
    Walk upward from 'start_dir' looking for a 'defaults/org.yaml'.
    Returns the 'defaults' directory or None if not found.
    """
    for parent in [start_dir] + list(start_dir.parents):
        candidate = parent / "defaults" / "org.yaml"
        if candidate.exists():
            return parent / "defaults"
    return None


# -------------------------------
# Path resolution
# -------------------------------


def _resolve_known_paths(cfg: dict[str, Any], config_dir: Path) -> None:
    """
    Resolve relative path fields inside the merged config.

    Only the fields listed in _PATH_FIELDS are touched. A field that exists
    and holds a relative path is resolved against 'config_dir'.
    Modifies cfg in place.
    """
    for section, key in _PATH_FIELDS:
        block = cfg.get(section)
        if not isinstance(block, dict):
            continue
        raw_path = block.get(key)
        if isinstance(raw_path, str) and raw_path:
            p = Path(raw_path)
            if not p.is_absolute():
                block[key] = str((config_dir / p).resolve())


# -------------------------------
# Public API
# -------------------------------


def load_effective_config(config_path: Path) -> dict[str, Any]:
    """
    Load and merge the effective configuration for a pack file.

    Steps
      1) Read the pack configuration YAML.
      2) Find defaults root by scanning upwards for 'defaults/org.yaml'.
      3) Load org defaults if found.
      4) Merge: org -> pack file (dicts deep-merge, lists replace).
      5) Default output.release_dir, then resolve known relative paths
         (relative to the pack file directory).

    Returns
      A merged configuration dict ready for build_options().

    Raises
      ConfigError on YAML parse errors, empty files or non-mapping documents,
      FileNotFoundError if the pack file itself is missing.
    """
    logger = get_global_logger()

    config_path = config_path.resolve()
    config_dir = config_path.parent

    logger.verbose("CONFIG", f"Loading pack configuration: {config_path}")

    # 1) Read pack configuration
    config_obj = _load_yaml_file(config_path)
    if not isinstance(config_obj, dict):
        raise ConfigError(f"Top-level YAML must be a mapping (dict): {config_path}")

    # 2) Find defaults root
    defaults_root = _find_defaults_root(config_dir)
    merged: dict[str, Any] = {}
    layers_merged = 0

    if defaults_root:
        logger.verbose("CONFIG", f"Found defaults root: {defaults_root}")
        # 3) Load org defaults
        org_defaults_path = defaults_root / "org.yaml"
        org_defaults = _load_yaml_file(org_defaults_path)
        if isinstance(org_defaults, dict):
            logger.debug("CONFIG", f"--- Content from {org_defaults_path.name} ---")
            logger.debug("CONFIG", yaml.dump(org_defaults, default_flow_style=False).rstrip())
            merged = _deep_merge_dicts(merged, org_defaults)
            layers_merged += 1

    # 4) Merge pack file on top
    merged = _deep_merge_dicts(merged, config_obj)
    layers_merged += 1

    logger.verbose("CONFIG", f"Deep merging {layers_merged} layer(s)")
    logger.debug("CONFIG", "--- Final Merged Configuration ---")
    logger.debug("CONFIG", yaml.dump(merged, default_flow_style=False, sort_keys=False).rstrip())

    # 5) Resolve relative paths against the pack file directory
    output = merged.setdefault("output", {})
    if isinstance(output, dict):
        output.setdefault("release_dir", DEFAULT_RELEASE_DIR)
    _resolve_known_paths(merged, config_dir)

    return merged
