"""Local solar time and day/night helpers.

Band-condition reports come in day and night variants, so the observer's
local solar time picks which one applies.
"""

from datetime import datetime, timezone

from .geo_utils import Coordinate


def _utc(when: datetime | None) -> datetime:
    if when is None:
        return datetime.now(timezone.utc)
    if when.tzinfo is None:
        return when.replace(tzinfo=timezone.utc)
    return when.astimezone(timezone.utc)


def local_solar_hours(lon: float, when: datetime | None = None) -> float:
    """Local mean solar time in hours (0-24) at the given longitude."""
    now = _utc(when)
    utc_hours = now.hour + now.minute / 60
    return (utc_hours + lon / 15 + 24) % 24


def is_daytime(location: Coordinate, when: datetime | None = None) -> bool:
    """Daytime is 06:00-18:00 local solar time."""
    hours = local_solar_hours(location.lon, when)
    return 6 <= hours < 18
