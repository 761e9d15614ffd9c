"""
Tests for relpack.config module.

Tests configuration loading and option building including:
- YAML file loading
- Two-layer merging (org -> pack file)
- Path resolution
- Command-line overrides
- Error handling
"""

from __future__ import annotations

from pathlib import Path

import pytest

from relpack.build import DeltaMode
from relpack.config import build_options, load_effective_config
from relpack.config.options import apply_overrides, collect_config_errors
from relpack.exceptions import ConfigError
from relpack.runtime import RuntimeOs


class TestConfigLoading:
    """Tests for basic configuration loading."""

    def test_load_simple_pack_file(self, create_yaml_file, sample_pack_config):
        """Test loading a pack file without defaults."""
        config_path = create_yaml_file("relpack.yaml", sample_pack_config)

        config = load_effective_config(config_path)

        assert config["apiVersion"] == "relpack/v1"
        assert config["package"]["id"] == "MyApp"

    def test_load_with_org_defaults(self, tmp_test_dir):
        """Test loading a pack file with organization defaults."""
        defaults_dir = tmp_test_dir / "defaults"
        defaults_dir.mkdir()
        apps_dir = tmp_test_dir / "apps" / "MyApp"
        apps_dir.mkdir(parents=True)

        (defaults_dir / "org.yaml").write_text(
            "apiVersion: relpack/v1\nsigning:\n  command: [signtool, sign, '{file}']\n"
        )
        config_path = apps_dir / "relpack.yaml"
        config_path.write_text("apiVersion: relpack/v1\npackage:\n  id: MyApp\n")

        config = load_effective_config(config_path)

        assert config["package"]["id"] == "MyApp"
        assert config["signing"]["command"] == ["signtool", "sign", "{file}"]

    def test_missing_pack_file_raises(self, tmp_test_dir):
        """Test that a missing pack file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_effective_config(tmp_test_dir / "nonexistent.yaml")


class TestConfigMerging:
    """Tests for configuration merging behavior."""

    @pytest.fixture
    def layered(self, tmp_test_dir):
        defaults_dir = tmp_test_dir / "defaults"
        defaults_dir.mkdir()
        (defaults_dir / "org.yaml").write_text(
            """
delta:
  mode: best-size
target:
  runtime: win-x64
  channel: stable
signing:
  command: [signtool, sign, /a, "{file}"]
"""
        )
        config_path = tmp_test_dir / "app" / "relpack.yaml"
        config_path.parent.mkdir()
        config_path.write_text(
            """
target:
  channel: beta
signing:
  command: [codesign, "{file}"]
"""
        )
        return load_effective_config(config_path)

    def test_dict_deep_merge(self, layered):
        """Test that dicts are deep-merged."""
        assert layered["target"]["runtime"] == "win-x64"
        assert layered["delta"]["mode"] == "best-size"

    def test_scalar_overwrite(self, layered):
        assert layered["target"]["channel"] == "beta"

    def test_list_replacement(self, layered):
        """Test that lists are replaced, not merged."""
        assert layered["signing"]["command"] == ["codesign", "{file}"]


class TestPathResolution:
    """Tests for relative path resolution."""

    def test_paths_resolved_against_pack_file(self, create_yaml_file, sample_pack_config):
        sample_pack_config["package"]["release_notes"] = "docs/NOTES.md"
        sample_pack_config["setup"] = {"stub": "../stubs/setup.exe"}
        config_path = create_yaml_file("apps/relpack.yaml", sample_pack_config)
        base = config_path.parent.resolve()

        config = load_effective_config(config_path)

        assert config["package"]["directory"] == str(base / "publish")
        assert config["package"]["release_notes"] == str(base / "docs" / "NOTES.md")
        assert config["output"]["release_dir"] == str(base / "releases")
        assert config["setup"]["stub"] == str((base / ".." / "stubs" / "setup.exe").resolve())

    def test_absolute_paths_untouched(self, create_yaml_file, sample_pack_config, tmp_test_dir):
        absolute = str((tmp_test_dir / "elsewhere").resolve())
        sample_pack_config["package"]["directory"] = absolute
        config_path = create_yaml_file("relpack.yaml", sample_pack_config)

        config = load_effective_config(config_path)

        assert config["package"]["directory"] == absolute

    def test_release_dir_defaults_next_to_pack_file(self, create_yaml_file, sample_pack_config):
        del sample_pack_config["output"]
        config_path = create_yaml_file("relpack.yaml", sample_pack_config)

        config = load_effective_config(config_path)

        assert config["output"]["release_dir"] == str(config_path.parent.resolve() / "releases")


class TestErrorHandling:
    """Tests for loader error handling."""

    def test_invalid_yaml_raises_config_error(self, tmp_test_dir):
        path = tmp_test_dir / "bad.yaml"
        path.write_text("package: [unclosed\n")

        with pytest.raises(ConfigError, match="Error parsing YAML"):
            load_effective_config(path)

    def test_empty_yaml_raises_config_error(self, tmp_test_dir):
        path = tmp_test_dir / "empty.yaml"
        path.write_text("")

        with pytest.raises(ConfigError, match="empty"):
            load_effective_config(path)

    def test_non_dict_yaml_raises_config_error(self, tmp_test_dir):
        path = tmp_test_dir / "list.yaml"
        path.write_text("- one\n- two\n")

        with pytest.raises(ConfigError, match="mapping"):
            load_effective_config(path)


class TestBuildOptions:
    """Tests for build_options and its helpers."""

    def test_builds_options(self, sample_pack_config):
        options = build_options(sample_pack_config)

        assert options.package_id == "MyApp"
        assert options.package_version == "1.0.0"
        assert options.target_runtime.os is RuntimeOs.WINDOWS
        assert options.channel == "stable"
        assert options.delta_mode is DeltaMode.NONE
        assert options.package_title == "My App"
        assert options.sign_command == ()
        assert options.icon is None

    def test_delta_mode_defaults_to_best_speed(self, sample_pack_config):
        del sample_pack_config["delta"]

        assert build_options(sample_pack_config).delta_mode is DeltaMode.BEST_SPEED

    def test_overrides_win(self, sample_pack_config, tmp_test_dir):
        options = build_options(
            sample_pack_config,
            version="2.0.0",
            channel="beta",
            runtime="linux-x64",
            release_dir=str(tmp_test_dir / "out"),
            delta_mode="best-size",
        )

        assert options.package_version == "2.0.0"
        assert options.channel == "beta"
        assert options.target_runtime.os is RuntimeOs.LINUX
        assert options.release_dir == (tmp_test_dir / "out").resolve()
        assert options.delta_mode is DeltaMode.BEST_SIZE

    def test_overrides_do_not_mutate_config(self, sample_pack_config):
        apply_overrides(sample_pack_config, version="9.9.9")

        assert sample_pack_config["package"]["version"] == "1.0.0"

    def test_version_supplied_only_by_override(self, sample_pack_config):
        del sample_pack_config["package"]["version"]

        assert build_options(sample_pack_config, version="1.2.0").package_version == "1.2.0"

    def test_sign_command_becomes_tuple(self, sample_pack_config):
        sample_pack_config["signing"] = {"command": ["signtool", "sign", "{file}"]}

        assert build_options(sample_pack_config).sign_command == ("signtool", "sign", "{file}")

    def test_optional_paths(self, sample_pack_config):
        sample_pack_config["package"]["icon"] = "/abs/app.ico"

        assert build_options(sample_pack_config).icon == Path("/abs/app.ico")

    def test_all_errors_reported(self):
        config = {
            "package": {"id": "MyApp", "version": "1.0", "directory": ""},
            "target": {"runtime": "amiga-m68k"},
            "delta": {"mode": "fastest"},
            "signing": {"command": "signtool sign"},
        }

        errors = collect_config_errors(config)

        assert "Missing required field: package.directory" in errors
        assert any("package.version" in e for e in errors)
        assert any(e.startswith("target.runtime") for e in errors)
        assert any(e.startswith("delta.mode") for e in errors)
        assert "signing.command must be a list of strings" in errors

    def test_invalid_config_raises(self):
        with pytest.raises(ConfigError, match="Invalid pack configuration") as exc_info:
            build_options({"package": {"id": "MyApp"}})

        message = str(exc_info.value)
        assert "package.version" in message
        assert "target.runtime" in message
