"""Reverse Beacon Network spots via the VailReRBN JSON API."""

import logging

import requests

from .spots import Spot, spot_from_rbn

logger = logging.getLogger(__name__)

RBN_URL = "https://vailrerbn.com/api/v1/spots"
USER_AGENT = "propzones/1.0"


def parse_rbn_json(data) -> list[Spot]:
    """Map a VailReRBN response body (``{"spots": [...]}``) to Spots."""
    if not isinstance(data, dict):
        return []
    spots = []
    for record in data.get("spots") or []:
        spot = spot_from_rbn(record)
        if spot is not None:
            spots.append(spot)
    return spots


def fetch_spots(mode: str = "CW", since: str = "30m", limit: int = 1000,
                session: requests.Session | None = None) -> list[Spot]:
    """Fetch recent skimmer spots.

    Raises:
        requests.RequestException / ValueError on HTTP or JSON errors
    """
    http = session or requests
    r = http.get(RBN_URL, params={'mode': mode, 'since': since, 'limit': limit},
                 headers={'User-Agent': USER_AGENT}, timeout=30)
    r.raise_for_status()
    spots = parse_rbn_json(r.json())
    logger.debug("RBN returned %d spots", len(spots))
    return spots
