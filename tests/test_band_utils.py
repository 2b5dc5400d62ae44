#!/usr/bin/env -S uv run
# /// script
# requires-python = ">=3.10"
# dependencies = ["pytest"]
# ///
"""Test band and frequency utility functions."""

import sys
from pathlib import Path

# Add repo root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from propzones.band_utils import BANDS, BAND_NAMES, band_index, freq_to_band, get_band, muf_to_band


def test_freq_to_band():
    """Test frequency to band conversion."""
    print("Testing freq_to_band():")

    test_cases = [
        (1840, "160m"),
        (3573, "80m"),
        (7074, "40m"),
        (10136, "30m"),
        (14025, "20m"),
        (18100, "17m"),
        (21074, "15m"),
        (24915, "12m"),
        (28074, "10m"),
        (14000, "20m"),   # band edges are inclusive
        (14350, "20m"),
        (5357, None),     # 60m is not in the table
        (50313, None),
        (99999, None),
    ]

    for freq, expected in test_cases:
        band = freq_to_band(freq)
        result = band.name if band else None
        print(f"  {freq} kHz → {result} (expected: {expected})")
        assert result == expected, f"Expected {expected}, got {result}"

    assert freq_to_band(None) is None

    print("✅ All freq_to_band tests passed!\n")


def test_band_table():
    """Bands are ordered low to high and carry skip zones."""
    print("Testing BANDS table:")

    assert BAND_NAMES == ("160m", "80m", "40m", "30m", "20m", "17m", "15m", "12m", "10m")
    for lower, upper in zip(BANDS, BANDS[1:]):
        assert lower.max_khz < upper.min_khz

    for band in BANDS:
        assert band.skip_zone is not None
        assert band.skip_zone.min_km < band.skip_zone.max_km
        print(f"  {band.name}: skip {band.skip_zone.min_km}-{band.skip_zone.max_km} km"
              f"{' NVIS' if band.nvis_capable else ''}")

    assert [b.name for b in BANDS if b.nvis_capable] == ["160m", "80m", "40m"]
    assert get_band("80m").skip_zone.contains(300)
    assert not get_band("80m").skip_zone.contains(401)
    assert get_band("6m") is None

    print("✅ Band table is consistent\n")


def test_band_index():
    assert band_index("160m") == 0
    assert band_index("10m") == len(BANDS) - 1
    assert band_index("2m") == len(BANDS)


def test_muf_to_band():
    """Test MUF to highest usable band."""
    print("Testing muf_to_band():")

    test_cases = [
        (30.5, "10m+"),
        (25.0, "12m"),
        (21.0, "15m"),
        (19.0, "17m"),
        (14.2, "20m"),
        (12.0, "30m"),
        (7.5, "40m"),
        (4.0, "80m"),
        (2.5, "160m"),
    ]

    for muf, expected in test_cases:
        result = muf_to_band(muf)
        print(f"  MUF {muf} MHz → {result} (expected: {expected})")
        assert result == expected

    print("✅ All muf_to_band tests passed!\n")


if __name__ == "__main__":
    print("=" * 60)
    print("Testing band_utils.py")
    print("=" * 60 + "\n")

    test_freq_to_band()
    test_band_table()
    test_band_index()
    test_muf_to_band()

    print("=" * 60)
    print("✅ ALL TESTS PASSED!")
    print("=" * 60)
