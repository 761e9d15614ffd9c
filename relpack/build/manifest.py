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

"""Package manifest (nuspec) generation, parsing and release notes rendering.

The manifest is the ``<id>.nuspec`` document at the root of every release
archive (and the ``sq.version`` file inside the installed app). It is
generated once from a PackageManifest and never edited afterwards, except
by the release notes renderer, which is a pure transform over the parsed
XML tree:

    tree = ET.parse(nuspec_path)
    rendered = render_release_notes(tree.getroot())
    ET.ElementTree(rendered).write(nuspec_path, ...)

Release notes are kept as escaped raw text in ``<releaseNotes>``; the
renderer converts them from Markdown to HTML and appends the result as
``<releaseNotesHtml>``.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from pathlib import Path
from xml.etree import ElementTree as ET
from xml.sax.saxutils import escape

from markdown import markdown

from relpack.exceptions import ConfigError, PackagingError
from relpack.logging import Logger, get_global_logger
from relpack.versioning import parse_semver

NUSPEC_NAMESPACE = "http://schemas.microsoft.com/packaging/2010/07/nuspec.xsd"

ET.register_namespace("", NUSPEC_NAMESPACE)


@dataclass(frozen=True)
class PackageManifest:
    """Logical package descriptor serialized into the nuspec.

    Attributes:
        id: Package identifier.
        title: Display title.
        description: Package description.
        authors: Package authors.
        version: Resolved (channel-suffixed) version string.
        release_notes: Raw release notes text, or None.
    """

    id: str
    title: str
    description: str
    authors: str
    version: str
    release_notes: str | None = None

    @classmethod
    def create(
        cls,
        package_id: str,
        version: str,
        title: str | None = None,
        authors: str | None = None,
        release_notes: str | None = None,
    ) -> PackageManifest:
        """Build a manifest, filling in defaults.

        Title defaults to the id, description to the title, and authors to
        the id.
        """
        title = title or package_id
        return cls(
            id=package_id,
            title=title,
            description=title,
            authors=authors or package_id,
            version=version,
            release_notes=release_notes,
        )

    def to_xml(self) -> str:
        """Serialize the manifest as nuspec XML text."""
        lines = [
            '<?xml version="1.0" encoding="utf-8"?>',
            f'<package xmlns="{NUSPEC_NAMESPACE}">',
            "  <metadata>",
            f"    <id>{escape(self.id)}</id>",
            f"    <title>{escape(self.title)}</title>",
            f"    <description>{escape(self.description)}</description>",
            f"    <authors>{escape(self.authors)}</authors>",
            f"    <version>{escape(self.version)}</version>",
        ]
        if self.release_notes:
            lines.append(f"    <releaseNotes>{escape(self.release_notes)}</releaseNotes>")
        lines += ["  </metadata>", "</package>"]
        return "\n".join(lines)


def load_release_notes(path: Path | None) -> str | None:
    """Read a release notes file.

    Raises:
        ConfigError: If a path is given but the file doesn't exist.
    """
    if path is None:
        return None
    if not path.is_file():
        raise ConfigError(f"Release notes file not found: {path}")
    return path.read_text(encoding="utf-8")


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1].lower()


def _find_child(parent: ET.Element, name: str) -> ET.Element | None:
    for child in parent:
        if isinstance(child.tag, str) and _local_name(child.tag) == name:
            return child
    return None


def render_release_notes(root: ET.Element) -> ET.Element:
    """Return a copy of a nuspec tree with rendered release notes appended.

    The input tree is never modified. If the metadata section has no
    ``releaseNotes`` element, or it is blank, the copy is returned as-is.
    Otherwise a ``releaseNotesHtml`` element holding the Markdown-rendered
    notes, wrapped in a CDATA marker, is appended to the metadata section.

    Args:
        root: The ``<package>`` element of a parsed nuspec.

    Returns:
        A new element tree root.

    Raises:
        PackagingError: If the manifest has no metadata section.
    """
    rendered = copy.deepcopy(root)
    metadata = _find_child(rendered, "metadata")
    if metadata is None:
        raise PackagingError("Package manifest has no <metadata> section")

    notes = _find_child(metadata, "releasenotes")
    if notes is None or not "".join(notes.itertext()).strip():
        return rendered

    # New element shares the metadata element's namespace.
    tag = metadata.tag
    ns = tag[: tag.index("}") + 1] if tag.startswith("{") else ""
    html = ET.SubElement(metadata, f"{ns}releaseNotesHtml")
    html.text = "<![CDATA[\n" + markdown("".join(notes.itertext())) + "\n]]>"
    return rendered


def render_release_notes_file(path: Path, logger: Logger | None = None) -> bool:
    """Render release notes into a nuspec file in place.

    Args:
        path: Path to the nuspec file.
        logger: Logger for debug output. Default: global logger.

    Returns:
        True if release notes were rendered, False if there were none.
    """
    logger = logger or get_global_logger()
    tree = ET.parse(path)
    root = tree.getroot()
    rendered = render_release_notes(root)
    if len(list(rendered.iter())) == len(list(root.iter())):
        logger.debug("PACK", f"No release notes found in {path.name}")
        return False

    ET.ElementTree(rendered).write(path, encoding="utf-8", xml_declaration=True)
    logger.debug("PACK", f"Rendered release notes into {path.name}")
    return True


def read_manifest(xml: str | bytes) -> PackageManifest:
    """Parse nuspec XML into a PackageManifest.

    Element names are matched without their namespace, so manifests with
    or without the nuspec namespace are accepted.

    Raises:
        PackagingError: If the XML is malformed, or the id or version is
            missing or invalid.
    """
    try:
        root = ET.fromstring(xml)
    except ET.ParseError as err:
        raise PackagingError(f"Malformed package manifest: {err}") from err

    metadata = _find_child(root, "metadata")
    fields: dict[str, str] = {}
    if metadata is not None:
        for child in metadata:
            if isinstance(child.tag, str):
                fields[_local_name(child.tag)] = (child.text or "").strip()

    package_id = fields.get("id", "")
    if not package_id:
        raise PackagingError("Missing 'id' in package manifest")
    version = fields.get("version", "")
    if not version:
        raise PackagingError("Missing 'version' in package manifest")
    try:
        parse_semver(version)
    except ConfigError as err:
        raise PackagingError(f"Invalid 'version' in package manifest: {version}") from err

    title = fields.get("title") or package_id
    return PackageManifest(
        id=package_id,
        title=title,
        description=fields.get("description") or title,
        authors=fields.get("authors") or package_id,
        version=version,
        release_notes=fields.get("releasenotes") or None,
    )
