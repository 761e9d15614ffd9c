"""
Tests for relpack.build.assembler module.

Tests release archive assembly including:
- Staging layout (nuspec, lib/app, metadata files)
- Content types and relationships
- Progress ranges
"""

from __future__ import annotations

from xml.etree import ElementTree as ET
import zipfile

import pytest

from relpack.build.assembler import (
    CONTENT_TYPES_FILE_NAME,
    RELATIONSHIPS_TYPE,
    add_content_types_and_rels,
    assemble_release_archive,
)
from relpack.build.manifest import NUSPEC_NAMESPACE, PackageManifest

pytestmark = pytest.mark.unit

CT_NS = {"ct": "http://schemas.openxmlformats.org/package/2006/content-types"}
REL_NS = {"r": "http://schemas.openxmlformats.org/package/2006/relationships"}


class TestAddContentTypesAndRels:
    """Tests for add_content_types_and_rels."""

    def test_one_default_per_extension(self, tmp_path):
        """Test distinct lower-cased extensions, skipping extensionless files."""
        nuspec = tmp_path / "MyApp.nuspec"
        nuspec.write_text("<package />", encoding="utf-8")
        (tmp_path / "lib" / "app").mkdir(parents=True)
        for name in ("a.DLL", "b.dll", "c.exe", "LICENSE"):
            (tmp_path / "lib" / "app" / name).write_bytes(b"x")

        extensions = add_content_types_and_rels(nuspec)

        assert extensions == ["dll", "exe", "nuspec"]
        root = ET.parse(tmp_path / CONTENT_TYPES_FILE_NAME).getroot()
        defaults = {
            d.get("Extension"): d.get("ContentType") for d in root.findall("ct:Default", CT_NS)
        }
        assert defaults["rels"] == "application/vnd.openxmlformats-package.relationships+xml"
        assert defaults["dll"] == "application/octet"
        assert defaults["nuspec"] == "application/octet"
        assert len(defaults) == 4

    def test_relationship_targets_nuspec(self, tmp_path):
        nuspec = tmp_path / "MyApp.nuspec"
        nuspec.write_text("<package />", encoding="utf-8")

        add_content_types_and_rels(nuspec)

        rel = ET.parse(tmp_path / "_rels" / ".rels").getroot().find("r:Relationship", REL_NS)
        assert rel.get("Type") == RELATIONSHIPS_TYPE
        assert rel.get("Target") == "/MyApp.nuspec"
        assert rel.get("Id") == "R1"


class TestAssembleReleaseArchive:
    """Tests for assemble_release_archive."""

    @pytest.fixture
    def manifest(self):
        return PackageManifest.create("MyApp", "1.0.0", release_notes="* first release")

    def test_archive_layout(self, pack_dir, tmp_path, manifest):
        """Test the archive holds nuspec, content types, rels and lib/app."""
        output = tmp_path / "MyApp-1.0.0-full.nupkg"

        assemble_release_archive(pack_dir, manifest, output, staging_dir=tmp_path / "staging")

        with zipfile.ZipFile(output) as zf:
            names = set(zf.namelist())
            nuspec = ET.fromstring(zf.read("MyApp.nuspec"))
        assert {"MyApp.nuspec", "[Content_Types].xml", "_rels/.rels"} <= names
        assert "lib/app/MyApp.exe" in names
        assert "lib/app/sub/data.txt" in names
        ns = {"n": NUSPEC_NAMESPACE}
        assert nuspec.find("n:metadata/n:releaseNotesHtml", ns) is not None

    def test_metadata_files_copied_to_root(self, pack_dir, tmp_path, manifest):
        icon = tmp_path / "app.ico"
        icon.write_bytes(b"ICON")
        output = tmp_path / "out.nupkg"

        assemble_release_archive(
            pack_dir,
            manifest,
            output,
            staging_dir=tmp_path / "staging",
            metadata_files={"setup.ico": icon},
        )

        with zipfile.ZipFile(output) as zf:
            assert zf.read("setup.ico") == b"ICON"
            content_types = zf.read("[Content_Types].xml").decode("utf-8")
        assert 'Extension="ico"' in content_types

    def test_progress_ranges(self, pack_dir, tmp_path, manifest):
        """Test copy reports within 0-30, archive within 30-100, ending at 100."""
        seen = []

        assemble_release_archive(
            pack_dir, manifest, tmp_path / "out.nupkg", seen.append, staging_dir=tmp_path / "s"
        )

        copy_phase = seen[:6]
        assert all(0 <= p <= 30 for p in copy_phase)
        assert copy_phase[-1] == 30
        assert all(30 <= p <= 100 for p in seen[6:])
        assert seen[-1] == 100
