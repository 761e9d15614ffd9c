"""
Tests for relpack.build.progress module.
"""

from __future__ import annotations

import pytest

from relpack.build.progress import LoggerProgressReporter, no_progress, scale_progress

pytestmark = pytest.mark.unit


class TestScaleProgress:
    """Tests for scale_progress."""

    def test_maps_into_sub_range(self):
        """Test linear mapping of 0-100 onto start-end."""
        seen = []
        scaled = scale_progress(seen.append, 30, 100)

        for p in (0, 50, 100):
            scaled(p)

        assert seen == [30, 65, 100]

    def test_clamps_out_of_range_input(self):
        """Test that values outside 0-100 are clamped."""
        seen = []
        scaled = scale_progress(seen.append, 0, 30)

        scaled(-5)
        scaled(150)

        assert seen == [0, 30]

    def test_nested_scaling(self):
        """Test scaling a callback that is itself scaled."""
        seen = []
        inner = scale_progress(scale_progress(seen.append, 0, 50), 0, 30)

        inner(100)

        assert seen == [15]

    def test_no_progress_accepts_updates(self):
        assert no_progress(50) is None


class TestLoggerProgressReporter:
    """Tests for LoggerProgressReporter."""

    def test_logs_start_and_completion(self, logger):
        """Test stage start/complete go to verbose output."""
        task = LoggerProgressReporter(logger).start_task("Building release package")
        task.complete()

        verbose = [m for level, _, m in logger.messages if level == "verbose"]
        assert verbose == [
            "Started: Building release package",
            "Complete: Building release package",
        ]

    def test_debug_updates_throttled_per_decile(self, logger):
        """Test that only the first update of each 10% band is logged."""
        task = LoggerProgressReporter(logger).start_task("Copy")

        for p in (1, 2, 3, 11, 12, 55):
            task.update(p)

        debug = [m for level, _, m in logger.messages if level == "debug"]
        assert debug == ["Copy: 1%", "Copy: 11%", "Copy: 55%"]
