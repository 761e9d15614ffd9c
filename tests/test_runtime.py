"""
Tests for relpack.runtime module.
"""

from __future__ import annotations

import pytest

from relpack.exceptions import ConfigError
from relpack.runtime import Rid, RuntimeOs

pytestmark = pytest.mark.unit


class TestRid:
    """Tests for runtime identifier parsing and formatting."""

    @pytest.mark.parametrize(
        "text,os_,version,arch",
        [
            ("win", RuntimeOs.WINDOWS, None, None),
            ("win-x64", RuntimeOs.WINDOWS, None, "x64"),
            ("win10-arm64", RuntimeOs.WINDOWS, "10", "arm64"),
            ("osx.13-arm64", RuntimeOs.OSX, "13", "arm64"),
            ("linux-x64", RuntimeOs.LINUX, None, "x64"),
            ("WIN-X86", RuntimeOs.WINDOWS, None, "x86"),
        ],
    )
    def test_parse(self, text, os_, version, arch):
        rid = Rid.parse(text)

        assert rid.os is os_
        assert rid.os_version == version
        assert rid.arch == arch

    @pytest.mark.parametrize("text", ["win-x64", "win10-arm64", "osx.13-arm64", "linux-x64", "osx"])
    def test_str_round_trip(self, text):
        assert str(Rid.parse(text)) == text

    @pytest.mark.parametrize("text", ["", "android-arm64", "win-mips", "win_x64"])
    def test_parse_invalid_raises(self, text):
        with pytest.raises(ConfigError):
            Rid.parse(text)


class TestRuntimeOs:
    def test_requires_signing(self):
        assert RuntimeOs.WINDOWS.requires_signing
        assert RuntimeOs.OSX.requires_signing
        assert not RuntimeOs.LINUX.requires_signing
