"""Propagation zones: where the observer's area is being heard, and from where.

Each spot is classified relative to the observer:

- outbound: the transmitter is the observer (or within the proximity
  radius), so the spotter's location shows where signals from here land.
- inbound: the spotter is within the proximity radius, so the
  transmitter's location shows where signals into here come from.

Target locations are grouped per (band, direction) and clustered into
connected components of the 1500 km proximity graph. Each cluster gets a
convex hull (lon/lat plane) and a centroid; inbound and outbound clusters
on the same band whose centroids are within 1500 km are bidirectional.
"""

import logging
from dataclasses import dataclass, field, replace

from .band_utils import Band, band_index, freq_to_band
from .callsigns import CallsignResolver
from .geo_utils import Coordinate, calc_distance_km, distance_between, grid_to_latlon
from .spots import Spot

logger = logging.getLogger(__name__)

INBOUND = "inbound"
OUTBOUND = "outbound"

CLUSTER_THRESHOLD_KM = 1500
BIDIRECTIONAL_THRESHOLD_KM = 1500  # matches clustering threshold


@dataclass(frozen=True)
class ZonePoint:
    """A cluster member: target location plus the SNR of its spot."""
    lat: float
    lon: float
    snr: int = 0

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.lat, self.lon)


@dataclass(frozen=True)
class DirectedReport:
    spot: Spot
    band: Band
    direction: str
    target: Coordinate

    def to_point(self) -> ZonePoint:
        return ZonePoint(self.target.lat, self.target.lon, self.spot.snr or 0)


@dataclass
class Cluster:
    points: list[ZonePoint]
    hull: list[ZonePoint]
    centroid: Coordinate
    best_snr: int
    spot_count: int
    bidirectional: bool = False

    @property
    def is_degenerate(self) -> bool:
        """Fewer than 3 hull vertices; draw as a circle, not a polygon."""
        return len(self.hull) < 3

    @property
    def crosses_antimeridian(self) -> bool:
        """True if a hull edge jumps more than 180 degrees of longitude.

        Hulls are computed on raw lon/lat, so a cluster straddling +/-180
        produces a polygon that wraps the whole map.
        """
        hull = self.hull
        if len(hull) < 2:
            return False
        for a, b in zip(hull, hull[1:] + hull[:1]):
            if abs(a.lon - b.lon) > 180:
                return True
        return False


@dataclass
class Zone:
    band: Band
    direction: str
    clusters: list[Cluster] = field(default_factory=list)
    total_spots: int = 0


def _spot_coordinates(spot: Spot, resolver: CallsignResolver):
    tx_grid = spot.grid or resolver.resolve_grid(spot.callsign)
    rx_grid = spot.spotter_grid or resolver.resolve_grid(spot.spotter)
    tx = grid_to_latlon(tx_grid) if tx_grid else None
    rx = grid_to_latlon(rx_grid) if rx_grid else None
    return tx, rx


def classify_direction(spot: Spot, observer_call: str, observer: Coordinate, radius_km: float,
                       resolver: CallsignResolver | None = None) -> DirectedReport | None:
    """Decide whether a spot is outbound or inbound relative to the observer.

    Outbound wins when both ends are near the observer. Spots outside the
    band plan, with neither end near the observer, or whose far end can't
    be located are dropped (None).
    """
    band = freq_to_band(spot.frequency_khz)
    if band is None:
        return None

    resolver = resolver or CallsignResolver()
    tx, rx = _spot_coordinates(spot, resolver)
    observer_call = (observer_call or "").upper()

    direction = None
    target = None
    if tx is not None:
        if spot.callsign.upper() == observer_call or distance_between(observer, tx) <= radius_km:
            direction, target = OUTBOUND, rx
    if direction is None and rx is not None:
        if distance_between(observer, rx) <= radius_km:
            direction, target = INBOUND, tx

    if direction is None or target is None:
        return None
    return DirectedReport(spot, band, direction, target)


def cluster_points(points: list[ZonePoint], threshold_km: float = CLUSTER_THRESHOLD_KM) -> list[list[ZonePoint]]:
    """Group points into connected components of the proximity graph.

    Two points are linked when they are within threshold_km; a cluster is
    everything reachable through a chain of links. Traversal uses an
    explicit worklist, so input size is not bounded by recursion depth.
    """
    n = len(points)
    visited = [False] * n
    clusters = []

    for seed in range(n):
        if visited[seed]:
            continue
        visited[seed] = True
        worklist = [seed]
        members = []
        while worklist:
            i = worklist.pop()
            p = points[i]
            members.append(p)
            for j in range(n):
                if not visited[j] and calc_distance_km(p.lat, p.lon, points[j].lat, points[j].lon) <= threshold_km:
                    visited[j] = True
                    worklist.append(j)
        clusters.append(members)

    return clusters


def convex_hull(points: list[ZonePoint]) -> list[ZonePoint]:
    """Gift-wrapping (Jarvis march) hull on the (lon, lat) plane.

    Fewer than 3 distinct locations are returned as-is (degenerate hull).
    When two candidates are collinear with the current vertex the farther
    one (haversine) is taken, so collinear runs don't self-intersect.
    """
    if len(points) < 3:
        return list(points)

    # Stations in the same grid square share a location
    unique = list({(p.lat, p.lon): p for p in points}.values())
    if len(unique) < 3:
        return unique

    start = 0
    for i, p in enumerate(unique):
        s = unique[start]
        if p.lon < s.lon or (p.lon == s.lon and p.lat < s.lat):
            start = i

    hull = []
    current = start
    max_iterations = len(unique) * 2
    iterations = 0
    while True:
        hull.append(unique[current])
        c = unique[current]
        nxt = 0 if current != 0 else 1
        for i in range(len(unique)):
            if i == current or i == nxt:
                continue
            p, n = unique[i], unique[nxt]
            cross = (p.lon - c.lon) * (n.lat - c.lat) - (p.lat - c.lat) * (n.lon - c.lon)
            if cross > 0 or (cross == 0 and
                             calc_distance_km(c.lat, c.lon, p.lat, p.lon) >
                             calc_distance_km(c.lat, c.lon, n.lat, n.lon)):
                nxt = i
        current = nxt
        iterations += 1
        if current == start or iterations >= max_iterations:
            break

    return hull


def build_cluster(points: list[ZonePoint]) -> Cluster:
    count = len(points)
    centroid = Coordinate(
        sum(p.lat for p in points) / count,
        sum(p.lon for p in points) / count,
    )
    return Cluster(
        points=points,
        hull=convex_hull(points),
        centroid=centroid,
        best_snr=max(p.snr for p in points),
        spot_count=count,
    )


def mark_bidirectional(zones: list[Zone], threshold_km: float = BIDIRECTIONAL_THRESHOLD_KM) -> list[Zone]:
    """Flag inbound/outbound cluster pairs on the same band with nearby centroids.

    Every inbound cluster is compared with every outbound cluster of its
    band. Flags are only ever set, never cleared.
    """
    by_band: dict[str, dict[str, Zone]] = {}
    for zone in zones:
        by_band.setdefault(zone.band.name, {})[zone.direction] = zone

    for directions in by_band.values():
        inbound = directions.get(INBOUND)
        outbound = directions.get(OUTBOUND)
        if not inbound or not outbound:
            continue
        for in_cluster in inbound.clusters:
            for out_cluster in outbound.clusters:
                if distance_between(in_cluster.centroid, out_cluster.centroid) <= threshold_km:
                    in_cluster.bidirectional = True
                    out_cluster.bidirectional = True

    return zones


def build_propagation_zones(spots, observer_call: str, observer: Coordinate, radius_km: float,
                            resolver: CallsignResolver | None = None,
                            threshold_km: float = CLUSTER_THRESHOLD_KM) -> list[Zone]:
    """Classify, cluster, hull and cross-check spots into propagation zones.

    Returns:
        Zones sorted by band (lowest first), inbound before outbound
    """
    resolver = resolver or CallsignResolver()
    groups: dict[tuple[str, str], list[DirectedReport]] = {}
    total = dropped = 0

    for spot in spots:
        total += 1
        report = classify_direction(spot, observer_call, observer, radius_km, resolver)
        if report is None:
            dropped += 1
            continue
        groups.setdefault((report.band.name, report.direction), []).append(report)

    zones = []
    for (_, direction), reports in groups.items():
        points = [r.to_point() for r in reports]
        clusters = [build_cluster(members) for members in cluster_points(points, threshold_km)]
        zones.append(Zone(reports[0].band, direction, clusters, len(reports)))

    zones.sort(key=lambda z: (band_index(z.band.name), z.direction))
    mark_bidirectional(zones)

    logger.debug("Built %d zones from %d spots (%d not near observer)",
                 len(zones), total, dropped)
    return zones


def filter_zones_by_snr(zones: list[Zone], min_snr: float) -> list[Zone]:
    """Drop clusters whose best SNR is under min_snr, and zones left empty."""
    if min_snr <= 0:
        return zones
    filtered = []
    for zone in zones:
        clusters = [c for c in zone.clusters if c.best_snr >= min_snr]
        if clusters:
            filtered.append(replace(zone, clusters=clusters))
    return filtered


def is_station_in_zone(location: Coordinate, zones: list[Zone], band_name: str,
                       threshold_km: float = CLUSTER_THRESHOLD_KM) -> bool:
    """True if any cluster centroid on the band is within threshold_km of location."""
    return any(
        distance_between(location, cluster.centroid) <= threshold_km
        for zone in zones if zone.band.name == band_name
        for cluster in zone.clusters
    )


def filter_by_proximity(spots, reference: Coordinate, radius_km: float) -> list[Spot]:
    """Spots whose transmitter grid (or, lacking one, spotter grid) is within radius_km."""
    nearby = []
    for spot in spots:
        grid = spot.grid or spot.spotter_grid
        location = grid_to_latlon(grid) if grid else None
        if location is not None and distance_between(reference, location) <= radius_km:
            nearby.append(spot)
    return nearby
