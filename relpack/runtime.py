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

"""Runtime identifiers (RIDs) for relpack.

A runtime identifier names the platform a release targets, for example
``win-x64``, ``win10-arm64``, ``osx.13-arm64`` or ``linux-x64``. Only the
base OS matters to the pack pipeline (it selects the builder and whether
code signing runs); the OS version and architecture are carried through
to release file names.

Example:
    ```python
    from relpack.runtime import Rid, RuntimeOs

    rid = Rid.parse("win10-x64")
    assert rid.os is RuntimeOs.WINDOWS
    assert rid.os_version == "10"
    assert str(rid) == "win10-x64"
    ```
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import re
import sys

from relpack.exceptions import ConfigError

__all__ = ["RuntimeOs", "Rid", "current_os"]


class RuntimeOs(str, Enum):
    """Operating systems a release can target."""

    WINDOWS = "win"
    OSX = "osx"
    LINUX = "linux"

    @property
    def requires_signing(self) -> bool:
        """True when releases for this OS go through the code-sign stage."""
        return self in (RuntimeOs.WINDOWS, RuntimeOs.OSX)


_RID_RE = re.compile(
    r"^(?P<os>win|osx|linux)(?:\.?(?P<ver>\d[\d.]*))?(?:-(?P<arch>x64|x86|arm64))?$",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class Rid:
    """A parsed runtime identifier.

    Attributes:
        os: Base operating system.
        os_version: Minimum OS version (e.g. "10", "13"), or None.
        arch: CPU architecture ("x64", "x86", "arm64"), or None.
    """

    os: RuntimeOs
    os_version: str | None = None
    arch: str | None = None

    @classmethod
    def parse(cls, text: str) -> Rid:
        """Parse a runtime identifier string.

        Args:
            text: RID such as "win-x64" or "osx.13-arm64".

        Returns:
            The parsed Rid.

        Raises:
            ConfigError: If the string is not a supported RID.
        """
        m = _RID_RE.match(text.strip())
        if not m:
            raise ConfigError(
                f"Invalid runtime identifier: {text!r}. "
                f"Expected e.g. win-x64, osx.13-arm64, linux-x64"
            )
        os_ = RuntimeOs(m.group("os").lower())
        arch = m.group("arch").lower() if m.group("arch") else None
        return cls(os=os_, os_version=m.group("ver"), arch=arch)

    def __str__(self) -> str:
        base = self.os.value
        if self.os_version:
            # osx versions are dotted ("osx.13"); windows versions are not ("win10")
            sep = "." if self.os is RuntimeOs.OSX else ""
            base = f"{base}{sep}{self.os_version}"
        if self.arch:
            base = f"{base}-{self.arch}"
        return base


def current_os() -> RuntimeOs:
    """Return the RuntimeOs of the machine relpack is running on."""
    if sys.platform.startswith("win"):
        return RuntimeOs.WINDOWS
    if sys.platform == "darwin":
        return RuntimeOs.OSX
    return RuntimeOs.LINUX
