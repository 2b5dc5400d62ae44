"""Ionosonde MUF readings from the KC2G station feed.

Each station reports MUF(D), the highest frequency a 3000 km hop from
there currently supports. Readings older than two hours are dropped.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import requests

from .band_utils import muf_to_band
from .geo_utils import Coordinate, distance_between

logger = logging.getLogger(__name__)

STATIONS_URL = "https://prop.kc2g.com/api/stations.json"
USER_AGENT = "propzones/1.0"

MAX_AGE = timedelta(hours=2)


@dataclass(frozen=True)
class IonosondeStation:
    id: int | str | None
    name: str
    code: str
    location: Coordinate
    mufd: float
    fof2: float | None
    confidence: float | None
    time: datetime

    @property
    def band(self) -> str:
        """Highest band this station's MUF supports."""
        return muf_to_band(self.mufd)


def _parse_time(value) -> datetime | None:
    if not value:
        return None
    try:
        when = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return when


def _number(value):
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_station(entry, now: datetime) -> IonosondeStation | None:
    """Map one stations.json entry, or None if it is unusable or stale."""
    if not isinstance(entry, dict):
        return None
    mufd = _number(entry.get("mufd"))
    if not mufd or mufd <= 0:
        return None

    station = entry.get("station") or {}
    lat = _number(station.get("latitude"))
    lon = _number(station.get("longitude"))
    if lat is None or lon is None:
        return None
    if lon > 180:
        lon -= 360

    when = _parse_time(entry.get("time"))
    if when is None or when <= now - MAX_AGE:
        return None

    return IonosondeStation(
        id=station.get("id"),
        name=station.get("name") or "",
        code=station.get("code") or "",
        location=Coordinate(lat, lon),
        mufd=mufd,
        fof2=_number(entry.get("fof2")),
        confidence=_number(entry.get("cs")),
        time=when,
    )


def parse_stations(data, now: datetime | None = None) -> list[IonosondeStation]:
    """Filter the feed to stations with a current, positive MUF(D).

    Args:
        data: Decoded stations.json (a list of readings)
        now: Reference time for the two hour cutoff, default now (UTC)
    """
    if not isinstance(data, list):
        return []
    now = now or datetime.now(timezone.utc)
    stations = []
    for entry in data:
        station = parse_station(entry, now)
        if station is None:
            logger.debug("Skipping ionosonde reading %r", entry)
            continue
        stations.append(station)
    return stations


def fetch_stations(session: requests.Session | None = None, now: datetime | None = None) -> list[IonosondeStation]:
    """Fetch current ionosonde readings. Returns [] on error."""
    http = session or requests
    try:
        r = http.get(STATIONS_URL, headers={'User-Agent': USER_AGENT}, timeout=10)
        r.raise_for_status()
        return parse_stations(r.json(), now)
    except (requests.RequestException, ValueError) as e:
        logger.warning("Failed to fetch ionosonde data: %s", e)
        return []


def nearest_station(stations, location: Coordinate) -> IonosondeStation | None:
    """Closest station to a location, for a local MUF estimate."""
    if not stations:
        return None
    return min(stations, key=lambda s: distance_between(location, s.location))
