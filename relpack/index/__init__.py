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

"""Release index and release file naming for relpack.

The release index records which full and delta releases exist in a release
directory, per channel. The pack pipeline uses it to:

- Validate that a new version can be packed into a channel
- Find the previous full release to compute a delta against
- Suggest output paths for portable and setup packages
- Register new releases, then persist or roll them back as a unit

Public API:

- ReleaseIndex: Per-channel index with session register/rollback
- ReleaseRecord: One registered release archive
- ReleaseEntryName: Release archive file-name convention
- load_index / save_index: Raw JSON helpers
"""

from .entries import ReleaseEntryName, delta_path_for
from .releases import ReleaseIndex, ReleaseRecord, load_index, save_index

__all__ = [
    "ReleaseEntryName",
    "ReleaseIndex",
    "ReleaseRecord",
    "delta_path_for",
    "load_index",
    "save_index",
]
