"""
Tests for relpack.build.manifest module.

Tests manifest handling including:
- Default field values and XML escaping
- Release notes rendering as a pure tree transform
- Parsing manifests back into PackageManifest
"""

from __future__ import annotations

from xml.etree import ElementTree as ET

import pytest

from relpack.build.manifest import (
    NUSPEC_NAMESPACE,
    PackageManifest,
    load_release_notes,
    read_manifest,
    render_release_notes,
    render_release_notes_file,
)
from relpack.exceptions import ConfigError, PackagingError

pytestmark = pytest.mark.unit

NS = {"n": NUSPEC_NAMESPACE}


class TestPackageManifest:
    """Tests for PackageManifest creation and serialization."""

    def test_defaults(self):
        """Test title, description and authors fall back to the id."""
        manifest = PackageManifest.create("MyApp", "1.0.0")

        assert manifest.title == "MyApp"
        assert manifest.description == "MyApp"
        assert manifest.authors == "MyApp"

    def test_description_follows_title(self):
        manifest = PackageManifest.create("MyApp", "1.0.0", title="My App")

        assert manifest.description == "My App"
        assert manifest.authors == "MyApp"

    def test_to_xml_fields(self):
        """Test the serialized manifest carries every field."""
        manifest = PackageManifest.create("MyApp", "1.0.0-beta", authors="Example Corp")
        root = ET.fromstring(manifest.to_xml())

        metadata = root.find("n:metadata", NS)
        assert metadata.find("n:id", NS).text == "MyApp"
        assert metadata.find("n:version", NS).text == "1.0.0-beta"
        assert metadata.find("n:authors", NS).text == "Example Corp"
        assert metadata.find("n:releaseNotes", NS) is None

    def test_release_notes_are_escaped(self):
        """Test markup characters in release notes survive serialization."""
        notes = "# Fixes\n- a < b & c > d"
        manifest = PackageManifest.create("MyApp", "1.0.0", release_notes=notes)

        xml = manifest.to_xml()
        root = ET.fromstring(xml)

        assert "&lt;" in xml
        assert root.find("n:metadata/n:releaseNotes", NS).text == notes

    def test_load_release_notes_missing_raises(self, tmp_path):
        with pytest.raises(ConfigError):
            load_release_notes(tmp_path / "missing.md")

    def test_load_release_notes_none(self):
        assert load_release_notes(None) is None


class TestRenderReleaseNotes:
    """Tests for render_release_notes."""

    def _root(self, notes: str | None) -> ET.Element:
        return ET.fromstring(PackageManifest.create("MyApp", "1.0.0", release_notes=notes).to_xml())

    def test_appends_html_node(self):
        """Test rendered notes are appended under metadata."""
        root = self._root("# Hello\n\nSome *text*")

        rendered = render_release_notes(root)

        html = rendered.find("n:metadata/n:releaseNotesHtml", NS)
        assert html is not None
        assert html.text.startswith("<![CDATA[\n")
        assert html.text.endswith("\n]]>")
        assert "<h1>Hello</h1>" in html.text
        assert "<em>text</em>" in html.text

    def test_input_tree_is_not_modified(self):
        """Test the transform is pure."""
        root = self._root("notes")
        before = ET.tostring(root)

        render_release_notes(root)

        assert ET.tostring(root) == before

    @pytest.mark.parametrize("notes", [None, "   \n  "])
    def test_no_notes_returns_unchanged_copy(self, notes):
        """Test absent or blank notes produce no new node."""
        root = self._root(notes)

        rendered = render_release_notes(root)

        assert rendered is not root
        assert rendered.find("n:metadata/n:releaseNotesHtml", NS) is None

    def test_case_insensitive_element_names(self):
        """Test metadata and releaseNotes are matched regardless of case."""
        root = ET.fromstring(
            "<package><Metadata><id>A</id><RELEASENOTES>hi</RELEASENOTES></Metadata></package>"
        )

        rendered = render_release_notes(root)

        assert rendered.find("Metadata/releaseNotesHtml") is not None

    def test_missing_metadata_raises(self):
        with pytest.raises(PackagingError):
            render_release_notes(ET.fromstring("<package />"))

    def test_render_file_in_place(self, tmp_path):
        """Test rendering rewrites the nuspec file once."""
        path = tmp_path / "MyApp.nuspec"
        path.write_text(
            PackageManifest.create("MyApp", "1.0.0", release_notes="**bold**").to_xml(),
            encoding="utf-8",
        )

        assert render_release_notes_file(path) is True

        root = ET.parse(path).getroot()
        assert len(root.findall("n:metadata/n:releaseNotesHtml", NS)) == 1
        assert root.tag == f"{{{NUSPEC_NAMESPACE}}}package"

    def test_render_file_without_notes_leaves_file(self, tmp_path):
        path = tmp_path / "MyApp.nuspec"
        text = PackageManifest.create("MyApp", "1.0.0").to_xml()
        path.write_text(text, encoding="utf-8")

        assert render_release_notes_file(path) is False
        assert path.read_text(encoding="utf-8") == text


class TestReadManifest:
    """Tests for read_manifest."""

    def test_reads_serialized_manifest(self):
        manifest = PackageManifest.create(
            "MyApp", "2.1.0", title="My App", authors="Example", release_notes="notes"
        )

        assert read_manifest(manifest.to_xml()) == manifest

    def test_title_defaults_to_id(self):
        manifest = read_manifest(
            "<package><metadata><id>MyApp</id><version>1.0.0</version></metadata></package>"
        )

        assert manifest.title == "MyApp"
        assert manifest.authors == "MyApp"

    @pytest.mark.parametrize(
        "xml",
        [
            "<package><metadata><version>1.0.0</version></metadata></package>",
            "<package><metadata><id>MyApp</id></metadata></package>",
            "<package><metadata><id>MyApp</id><version>one</version></metadata></package>",
            "<package><metadata>",
        ],
    )
    def test_invalid_manifests_raise(self, xml):
        with pytest.raises(PackagingError):
            read_manifest(xml)
