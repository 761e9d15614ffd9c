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

"""Configuration loading and management for relpack.

This module provides tools for loading, merging, and validating YAML-based
pack configuration files with a layered approach:

  - Organization-wide defaults (defaults/org.yaml)
  - Pack-specific configuration (e.g. apps/MyApp/relpack.yaml)

The loader performs deep merging where dicts are merged recursively and
lists/scalars are replaced (last wins). Relative paths are resolved against
the pack file location for relocatability.

Public API:

- load_effective_config: Load and merge configuration for a pack file
- build_options: Convert a merged configuration into BuildOptions
- collect_config_errors: List every problem in a merged configuration

Example:
    Basic usage:

        from pathlib import Path
        from relpack.config import build_options, load_effective_config

        config = load_effective_config(Path("apps/MyApp/relpack.yaml"))
        options = build_options(config, channel="beta")
        print(options.package_id)  # "MyApp"
"""

from .loader import load_effective_config
from .options import apply_overrides, build_options, collect_config_errors

__all__ = [
    "load_effective_config",
    "apply_overrides",
    "build_options",
    "collect_config_errors",
]
