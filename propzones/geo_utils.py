"""Geographic utilities for Maidenhead grid squares and distance/bearing calculations."""

import math
from typing import NamedTuple


EARTH_RADIUS_KM = 6371


class Coordinate(NamedTuple):
    """A point in degrees. Unpacks as ``lat, lon``."""
    lat: float
    lon: float


def is_valid_grid(grid) -> bool:
    """Check the 4-character Maidenhead prefix (AA00-RR99, case-insensitive)."""
    if not isinstance(grid, str) or len(grid.strip()) < 4:
        return False
    g = grid.strip().upper()
    return ('A' <= g[0] <= 'R' and 'A' <= g[1] <= 'R'
            and '0' <= g[2] <= '9' and '0' <= g[3] <= '9')


def grid_to_latlon(grid) -> Coordinate | None:
    """Convert Maidenhead grid to lat/lon (center of grid).

    Only the first four characters are validated. A valid 6-character
    subsquare (letters A-X) refines the point to the subsquare center,
    anything after that is ignored.

    Args:
        grid: Maidenhead grid square (4 or 6 characters)

    Returns:
        Coordinate(lat, lon) or None if invalid
    """
    if not is_valid_grid(grid):
        return None
    grid = grid.upper().strip()

    lon = (ord(grid[0]) - ord('A')) * 20 - 180
    lat = (ord(grid[1]) - ord('A')) * 10 - 90
    lon += (ord(grid[2]) - ord('0')) * 2
    lat += (ord(grid[3]) - ord('0')) * 1

    if len(grid) >= 6 and 'A' <= grid[4] <= 'X' and 'A' <= grid[5] <= 'X':
        lon += (ord(grid[4]) - ord('A')) * (2/24) + (1/24)
        lat += (ord(grid[5]) - ord('A')) * (1/24) + (1/48)
    else:
        lon += 1  # center of 2-char subsquare
        lat += 0.5

    return Coordinate(lat, lon)


def calc_bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate bearing from point 1 to point 2 in degrees.

    Args:
        lat1, lon1: Starting point latitude and longitude
        lat2, lon2: Ending point latitude and longitude

    Returns:
        Bearing in degrees (0-360)
    """
    lat1, lon1, lat2, lon2 = map(math.radians, [lat1, lon1, lat2, lon2])
    dlon = lon2 - lon1
    x = math.sin(dlon) * math.cos(lat2)
    y = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlon)
    bearing = math.atan2(x, y)
    return (math.degrees(bearing) + 360) % 360


def calc_distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate great-circle distance between two points in kilometers.

    Args:
        lat1, lon1: Starting point latitude and longitude
        lat2, lon2: Ending point latitude and longitude

    Returns:
        Distance in kilometers
    """
    lat1, lon1, lat2, lon2 = map(math.radians, [lat1, lon1, lat2, lon2])
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = math.sin(dlat/2)**2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon/2)**2
    # rounding can push a a hair past 1.0 for antipodal points
    a = min(1.0, a)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1-a))
    return EARTH_RADIUS_KM * c


def distance_between(a: Coordinate, b: Coordinate) -> float:
    """Haversine distance in km between two coordinates."""
    return calc_distance_km(a.lat, a.lon, b.lat, b.lon)


def bearing_between(a: Coordinate, b: Coordinate) -> float:
    """Initial bearing from a to b in degrees (0-360)."""
    return calc_bearing(a.lat, a.lon, b.lat, b.lon)


def great_circle_path(a: Coordinate, b: Coordinate, num_points: int = 50) -> list[Coordinate]:
    """Interpolate num_points+1 points along the great circle from a to b.

    Uses spherical linear interpolation on unit vectors. Coincident
    endpoints return just [a].
    """
    phi1, phi2 = math.radians(a.lat), math.radians(b.lat)
    lam1, lam2 = math.radians(a.lon), math.radians(b.lon)
    h = (math.sin((phi2 - phi1) / 2) ** 2
         + math.cos(phi1) * math.cos(phi2) * math.sin((lam2 - lam1) / 2) ** 2)
    d = 2 * math.asin(math.sqrt(min(1.0, h)))
    if d == 0:
        return [Coordinate(a.lat, a.lon)]

    points = []
    for i in range(num_points + 1):
        f = i / num_points
        A = math.sin((1 - f) * d) / math.sin(d)
        B = math.sin(f * d) / math.sin(d)
        x = A * math.cos(phi1) * math.cos(lam1) + B * math.cos(phi2) * math.cos(lam2)
        y = A * math.cos(phi1) * math.sin(lam1) + B * math.cos(phi2) * math.sin(lam2)
        z = A * math.sin(phi1) + B * math.sin(phi2)
        points.append(Coordinate(
            math.degrees(math.atan2(z, math.sqrt(x * x + y * y))),
            math.degrees(math.atan2(y, x)),
        ))
    return points


def bearing_to_direction(bearing: float) -> str:
    """Convert bearing to compass direction.

    Args:
        bearing: Bearing in degrees (0-360)

    Returns:
        Compass direction (N, NNE, NE, etc.)
    """
    dirs = ["N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
            "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW"]
    idx = round(bearing / 22.5) % 16
    return dirs[idx]


def latlon_to_grid(lat: float, lon: float) -> str:
    """Convert lat/lon to the 4-character Maidenhead square containing it."""
    lon = min(max(lon + 180, 0), 359.999999)
    lat = min(max(lat + 90, 0), 179.999999)
    return (chr(ord('A') + int(lon // 20)) + chr(ord('A') + int(lat // 10))
            + str(int((lon % 20) // 2)) + str(int(lat % 10)))
