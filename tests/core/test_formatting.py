"""Tests for formatting helpers."""

from __future__ import annotations

import pytest

from dropsync.core.formatting import format_size, format_timestamp

NOW = 1_700_000_000


class TestFormatSize:
    """Tests for format_size."""

    @pytest.mark.parametrize(
        ("size", "expected"),
        [
            (0, "0 B"),
            (1023, "1023 B"),
            (1536, "1.50 KB"),
            (5 * 1024 * 1024, "5.00 MB"),
            (3 * 1024 * 1024 * 1024, "3.00 GB"),
        ],
    )
    def test_units(self, size: int, expected: str) -> None:
        """Should pick the largest fitting unit."""
        assert format_size(size) == expected


class TestFormatTimestamp:
    """Tests for format_timestamp."""

    def test_unknown(self) -> None:
        """Should report zero as unknown."""
        assert format_timestamp(0, now=NOW) == "Unknown"

    @pytest.mark.parametrize(
        ("age", "expected"),
        [
            (5, "Just now"),
            (120, "2 min ago"),
            (3 * 3600, "3 hr ago"),
            (2 * 86400, "2 days ago"),
        ],
    )
    def test_relative(self, age: int, expected: str) -> None:
        """Should describe the age coarsely."""
        assert format_timestamp(NOW - age, now=NOW) == expected

    def test_future_timestamp(self) -> None:
        """Should clamp timestamps ahead of the clock."""
        assert format_timestamp(NOW + 30, now=NOW) == "Just now"
