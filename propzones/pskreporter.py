"""PSKReporter API client for retrieving propagation spots."""

import logging
import time
import xml.etree.ElementTree as ET

import requests

from .spots import Spot, spot_from_pskreporter

logger = logging.getLogger(__name__)

PSKREPORTER_URL = "https://retrieve.pskreporter.info/query"
USER_AGENT = "propzones/1.0"
APP_CONTACT = "propzones"

# PSKReporter only keeps 24 hours
MAX_WINDOW_SECONDS = 86400


def parse_pskreporter_xml(xml_text: str | bytes) -> list[Spot]:
    """Parse a PSKReporter query response into Spots.

    Raises:
        xml.etree.ElementTree.ParseError: on a malformed document
    """
    root = ET.fromstring(xml_text)
    spots = []
    for report in root.iter('receptionReport'):
        spot = spot_from_pskreporter(report)
        if spot is not None:
            spots.append(spot)
    return spots


def fetch_spots(sender: str, window_seconds: int = 1800, modify_grid: bool = False,
                mode: str | None = None, session: requests.Session | None = None) -> list[Spot]:
    """Fetch reception reports for a sender from PSKReporter.

    Args:
        sender: Callsign to query, or a grid square when modify_grid is set
            (reports for every sender in that grid)
        window_seconds: How far back to look (capped at 24 hours)
        modify_grid: Treat sender as a grid square
        mode: Optional mode filter (e.g. "FT8")
        session: Optional requests session

    Returns:
        List of Spots

    Raises:
        requests.RequestException or ET.ParseError once retries are exhausted,
        so the caller can record the provider as failed
    """
    params = {
        'senderCallsign': sender,
        'flowStartSeconds': -min(int(window_seconds), MAX_WINDOW_SECONDS),
        'rronly': 1,
        'appcontact': APP_CONTACT,
    }
    if modify_grid:
        params['modify'] = 'grid'
    if mode:
        params['mode'] = mode

    http = session or requests

    # Retry with backoff on rate limiting
    for attempt in range(3):
        try:
            r = http.get(PSKREPORTER_URL, params=params,
                         headers={'User-Agent': USER_AGENT}, timeout=30)
            if r.status_code == 429 and attempt < 2:
                logger.info("PSKReporter rate limited, retrying in %ds", 2 ** attempt)
                time.sleep(2 ** attempt)  # Exponential backoff
                continue
            r.raise_for_status()
            spots = parse_pskreporter_xml(r.content)
            logger.debug("PSKReporter returned %d spots for %s", len(spots), sender)
            return spots
        except (requests.RequestException, ET.ParseError) as e:
            if attempt < 2:
                logger.debug("PSKReporter attempt %d failed: %s", attempt + 1, e)
                time.sleep(1)
                continue
            raise

    return []
