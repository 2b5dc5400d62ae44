#!/usr/bin/env -S uv run
# /// script
# requires-python = ">=3.10"
# dependencies = [
#   "requests",
#   "pytest",
# ]
# ///
"""Test HamQSL solar data parsing and band-condition lookup."""

import sys
from pathlib import Path
from unittest.mock import Mock

import requests

# Add repo root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from propzones.solar import (
    SolarData,
    band_condition_provider,
    fetch_solar_data,
    get_band_condition,
    parse_solar_xml,
)

SAMPLE_XML = """<?xml version="1.0" encoding="ISO-8859-1"?>
<solar>
  <solardata>
    <source url="http://www.hamqsl.com/solar.html">N0NBH</source>
    <updated> 19 Oct 2026 1200 GMT</updated>
    <solarflux>152</solarflux>
    <aindex> 8</aindex>
    <kindex> 2</kindex>
    <sunspots>120</sunspots>
    <xray>B5.2</xray>
    <geomagfield>QUIET</geomagfield>
    <signalnoise>S1-S2</signalnoise>
    <calculatedconditions>
      <band name="80m-40m" time="day">Poor</band>
      <band name="30m-20m" time="day">Good</band>
      <band name="17m-15m" time="day">Fair</band>
      <band name="12m-10m" time="day">Very Poor</band>
      <band name="80m-40m" time="night">Good</band>
      <band name="30m-20m" time="night">Fair</band>
      <band name="17m-15m" time="night">Poor</band>
      <band name="12m-10m" time="night">Poor</band>
    </calculatedconditions>
  </solardata>
</solar>
"""


def test_parse_solar_xml():
    """Indices and day/night band conditions are parsed."""
    print("Testing parse_solar_xml():\n")

    data = parse_solar_xml(SAMPLE_XML)
    print(f"  SFI={data.solar_flux} A={data.a_index} K={data.k_index} SSN={data.sunspots}")
    assert data.solar_flux == 152
    assert data.a_index == 8
    assert data.k_index == 2
    assert data.sunspots == 120
    assert data.geomag_field == "QUIET"
    assert data.updated == "19 Oct 2026 1200 GMT"

    assert data.band_conditions["day"]["30m-20m"] == "Good"
    assert data.band_conditions["night"]["80m-40m"] == "Good"
    assert len(data.band_conditions["day"]) == 4

    print("  ✅ Passed\n")


def test_parse_malformed_xml():
    """Malformed or unrelated documents give None, not an exception."""
    assert parse_solar_xml("<solar><solardata>") is None
    assert parse_solar_xml("not xml at all") is None
    assert parse_solar_xml("<html><body>503</body></html>") is None


def test_missing_numbers_are_none():
    data = parse_solar_xml("<solar><solardata><solarflux>n/a</solarflux></solardata></solar>")
    assert data is not None
    assert data.solar_flux is None
    assert data.k_index is None
    assert data.band_conditions == {"day": {}, "night": {}}


def test_get_band_condition():
    """Bands map onto HamQSL's paired ranges; day/night picks the table."""
    print("Testing get_band_condition():\n")
    data = parse_solar_xml(SAMPLE_XML)

    test_cases = [
        ("80m", True, "Poor"),
        ("40m", True, "Poor"),
        ("40m", False, "Good"),
        ("20m", True, "Good"),
        ("30m", False, "Fair"),
        ("15m", True, "Fair"),
        ("10m", True, "Very Poor"),
        ("160m", True, None),  # not reported
    ]
    for band, daytime, expected in test_cases:
        result = get_band_condition(data, band, daytime)
        print(f"  {band} {'day' if daytime else 'night'} → {result} (expected: {expected})")
        assert result == expected

    assert get_band_condition(None, "20m", True) is None
    assert get_band_condition(SolarData(), "20m", True) is None

    print("  ✅ Passed\n")


def test_band_condition_provider():
    provider = band_condition_provider(parse_solar_xml(SAMPLE_XML))
    assert provider("12m", False) == "Poor"
    assert band_condition_provider(None)("20m", True) is None


def test_fetch_solar_data_error_returns_none():
    session = Mock()
    session.get.side_effect = requests.ConnectionError("offline")
    assert fetch_solar_data(session=session) is None


def test_fetch_solar_data():
    session = Mock()
    session.get.return_value = Mock(content=SAMPLE_XML.encode("iso-8859-1"), raise_for_status=Mock())
    data = fetch_solar_data(session=session)
    assert data.solar_flux == 152
    session.get.assert_called_once()


if __name__ == "__main__":
    print("=" * 60)
    print("Testing solar.py")
    print("=" * 60 + "\n")

    test_parse_solar_xml()
    test_parse_malformed_xml()
    test_missing_numbers_are_none()
    test_get_band_condition()
    test_band_condition_provider()
    test_fetch_solar_data_error_returns_none()
    test_fetch_solar_data()

    print("=" * 60)
    print("✅ ALL TESTS PASSED!")
    print("=" * 60)
