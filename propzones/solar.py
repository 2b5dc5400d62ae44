"""Solar and band-condition data from HamQSL."""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field

import requests

logger = logging.getLogger(__name__)

SOLAR_XML_URL = "https://www.hamqsl.com/solarxml.php"
USER_AGENT = "propzones/1.0"

# HamQSL reports conditions for band pairs
BAND_RANGE_MAP = {
    '80m': '80m-40m',
    '40m': '80m-40m',
    '30m': '30m-20m',
    '20m': '30m-20m',
    '17m': '17m-15m',
    '15m': '17m-15m',
    '12m': '12m-10m',
    '10m': '12m-10m',
}

GOOD_CONDITIONS = ('good', 'fair')


@dataclass
class SolarData:
    solar_flux: float | None = None
    a_index: float | None = None
    k_index: float | None = None
    sunspots: float | None = None
    xray: str = ""
    geomag_field: str = ""
    signal_noise: str = ""
    updated: str = ""
    # {"day": {"80m-40m": "Good", ...}, "night": {...}}
    band_conditions: dict = field(default_factory=lambda: {"day": {}, "night": {}})


def _number(solar, tag):
    try:
        return float(solar.findtext(tag, '').strip())
    except ValueError:
        return None


def _text(solar, tag):
    return (solar.findtext(tag) or '').strip()


def parse_solar_xml(xml_text: str | bytes) -> SolarData | None:
    """Parse HamQSL solarxml.php output.

    Returns:
        SolarData, or None if the document is malformed or has no <solardata>
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        logger.warning("Could not parse solar XML: %s", e)
        return None

    solar = root if root.tag == 'solardata' else root.find('.//solardata')
    if solar is None:
        return None

    data = SolarData(
        solar_flux=_number(solar, 'solarflux'),
        a_index=_number(solar, 'aindex'),
        k_index=_number(solar, 'kindex'),
        sunspots=_number(solar, 'sunspots'),
        xray=_text(solar, 'xray'),
        geomag_field=_text(solar, 'geomagfield'),
        signal_noise=_text(solar, 'signalnoise'),
        updated=_text(solar, 'updated'),
    )

    # <calculatedconditions><band name="80m-40m" time="day">Poor</band>...
    for band in root.iter('band'):
        name = band.get('name')
        time_of_day = band.get('time')
        condition = (band.text or '').strip()
        if name and condition and time_of_day in ('day', 'night'):
            data.band_conditions[time_of_day][name] = condition

    return data


def fetch_solar_data(session: requests.Session | None = None) -> SolarData | None:
    """Fetch current solar/propagation data from HamQSL.

    Returns:
        SolarData or None on error
    """
    http = session or requests
    try:
        r = http.get(SOLAR_XML_URL, headers={'User-Agent': USER_AGENT}, timeout=10)
        r.raise_for_status()
    except requests.RequestException as e:
        logger.warning("Error fetching solar data: %s", e)
        return None
    return parse_solar_xml(r.content)


def get_band_condition(solar: SolarData | None, band_name: str, is_daytime: bool) -> str | None:
    """Reported condition ("Good", "Fair", "Poor", ...) for a band, or None."""
    if solar is None:
        return None
    range_key = BAND_RANGE_MAP.get(band_name)
    if not range_key:
        return None
    conditions = solar.band_conditions.get('day' if is_daytime else 'night') or {}
    return conditions.get(range_key) or None


def band_condition_provider(solar: SolarData | None):
    """Bind solar data into the ``(band_name, is_daytime) -> grade`` callable
    the workability classifier takes."""
    def provider(band_name: str, is_daytime: bool) -> str | None:
        return get_band_condition(solar, band_name, is_daytime)
    return provider
