"""Parks on the Air reference lookup, for operating from a park."""

import logging
import re
import urllib.parse
from dataclasses import dataclass

import requests

from .geo_utils import Coordinate, is_valid_grid

logger = logging.getLogger(__name__)

POTA_PARK_URL = "https://api.pota.app/park/{ref}"
USER_AGENT = "propzones/1.0"

PARK_REF_RE = re.compile(r'^[A-Z0-9]{1,4}-\d{4,5}$')


@dataclass(frozen=True)
class ParkLocation:
    reference: str
    name: str
    location: Coordinate
    grid: str | None = None

    @property
    def label(self) -> str:
        return f"{self.reference} {self.name}".strip()


def is_park_reference(ref: str) -> bool:
    """Check a park reference looks like K-0001 / VE-1234."""
    return bool(ref) and bool(PARK_REF_RE.match(ref.strip().upper()))


def parse_park(data, reference: str = "") -> ParkLocation | None:
    """Map a POTA park JSON object to a ParkLocation."""
    if not isinstance(data, dict):
        return None
    try:
        lat = float(data["latitude"])
        lon = float(data["longitude"])
    except (KeyError, TypeError, ValueError):
        return None
    grid = data.get("grid6") or data.get("grid4")
    return ParkLocation(
        reference=(data.get("reference") or reference).upper(),
        name=data.get("name") or "",
        location=Coordinate(lat, lon),
        grid=grid.upper() if is_valid_grid(grid) else None,
    )


def fetch_park(reference: str, session: requests.Session | None = None) -> ParkLocation | None:
    """Look up a park. Returns None for unknown parks or on error."""
    if not is_park_reference(reference):
        return None
    ref = reference.strip().upper()
    http = session or requests
    try:
        r = http.get(POTA_PARK_URL.format(ref=urllib.parse.quote(ref)),
                     headers={'User-Agent': USER_AGENT}, timeout=10)
        if r.status_code == 404:
            logger.warning("Park %s not found", ref)
            return None
        r.raise_for_status()
        return parse_park(r.json(), ref)
    except (requests.RequestException, ValueError) as e:
        logger.warning("Failed to fetch park info for %s: %s", ref, e)
        return None
