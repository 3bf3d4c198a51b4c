"""Tests for litemon.units formatting helpers."""

from __future__ import annotations

import pytest

from litemon.units import format_bytes, format_frequency, format_rate


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (0, "0 B"),
        (512, "512 B"),
        (1023, "1023 B"),
        (1023.7, "1.00 KB"),
        (1024, "1.00 KB"),
        (1536, "1.50 KB"),
        (1024 * 1024 - 1, "1.00 MB"),
        (1024 * 1024, "1.00 MB"),
        (1024**3 - 1, "1.00 GB"),
        (2.5 * 1024**2, "2.50 MB"),
        (1_073_741_824, "1.00 GB"),
        (2 * 1024**4, "2048.00 GB"),
    ],
)
def test_format_bytes(value: int | float, expected: str) -> None:
    assert format_bytes(value) == expected


@pytest.mark.parametrize(
    ("bps", "expected"),
    [
        (0, "0 B/s"),
        (500, "500 B/s"),
        (2000, "1.95 KB/s"),
        (1024 * 1024, "1.00 MB/s"),
        (1024**3, "1.00 GB/s"),
    ],
)
def test_format_rate(bps: float, expected: str) -> None:
    assert format_rate(bps) == expected


def test_format_frequency() -> None:
    assert format_frequency(3600.0) == "3.60 GHz"
    assert format_frequency(800.0) == "800 MHz"
