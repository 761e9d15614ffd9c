"""
relpack - Release packaging for auto-updating applications.

relpack turns a directory of built application files into versioned,
distributable release packages and registers them in a release directory
that an auto-updater can consume.

Features
--------
  - Full release archives (nuspec manifest + OPC content types)
  - Delta packages against the previous full release in a channel
  - Portable zips and self-extracting setup bundles
  - Release channels with channel-suffixed semantic versions
  - Optional code signing through an external command
  - All-or-nothing commit: a failed run leaves the release directory as it was

Quick Start
-----------
Validate a pack configuration:

    $ relpack validate apps/MyApp/relpack.yaml

Pack a release:

    $ relpack pack apps/MyApp/relpack.yaml

For full CLI documentation:

    $ relpack --help

Package Structure
-----------------
cli : module
    Command-line interface with argparse.
build : package
    Pack pipeline, package assembly, archiving, signing and deltas.
config : package
    YAML configuration loading and merging.
index : package
    Release index and release file naming.
versioning : package
    Semantic versions and channel resolution.

Public API
----------
The primary interface is the CLI, but key functions are exported for
programmatic use:

    from relpack.build import BuildOptions, pack_release
    from relpack.config import build_options, load_effective_config
    from relpack.validation import validate_config

For more details, see the individual module docstrings.
"""

__version__ = "0.1.0"
__author__ = "Roger Cibrian"
__license__ = "Apache-2.0"
__description__ = "relpack - release packaging for auto-updating applications"

# Re-export commonly used functions for convenience
from relpack.build import BuildOptions, DeltaMode, pack_release
from relpack.config import build_options, load_effective_config
from relpack.validation import validate_config

__all__ = [
    "__version__",
    "__author__",
    "__license__",
    "__description__",
    "BuildOptions",
    "DeltaMode",
    "pack_release",
    "build_options",
    "load_effective_config",
    "validate_config",
]
