"""Per-station, per-band "can I work them?" verdicts.

For every remote callsign in the current spot window, each band it was
spotted on gets a status:

    unavailable  no antenna configured for the band
    unlikely     in the skip zone, weak, not relevant, or bad conditions
    might        SNR > 5 dB and relevant
    should       SNR >= 10 dB and relevant

"Relevant" means a spotter within the proximity radius heard it, or the
station sits inside a propagation-zone cluster for the band. Reported band
conditions can then downgrade the result.
"""

import logging
import math
from dataclasses import dataclass, field

from .band_utils import BANDS, NVIS_MAX_KM, Band, band_index, freq_to_band
from .callsigns import CallsignResolver
from .geo_utils import Coordinate, bearing_between, bearing_to_direction, distance_between, grid_to_latlon
from .spots import Spot
from .sun import is_daytime
from .zones import build_propagation_zones, is_station_in_zone

logger = logging.getLogger(__name__)

SHOULD = "should"
MIGHT = "might"
UNLIKELY = "unlikely"
UNAVAILABLE = "unavailable"

STATUS_RANK = {SHOULD: 3, MIGHT: 2, UNLIKELY: 1}

SHOULD_MIN_SNR = 10
MIGHT_ABOVE_SNR = 5

DEFAULT_WPM = 18


@dataclass(frozen=True)
class AntennaCapability:
    standard: bool = False
    nvis: bool = False

    @property
    def has_any(self) -> bool:
        return self.standard or self.nvis


@dataclass(frozen=True)
class Factor:
    """One line of "why": type, value, display text, and whether it helps."""
    type: str
    value: object
    text: str
    positive: bool


@dataclass(frozen=True)
class Explanation:
    primary: str
    factors: tuple[Factor, ...] = ()


@dataclass
class BandAnalysis:
    band: Band
    spots: list[Spot] = field(default_factory=list)
    best_snr: int | None = None
    has_nearby_spot: bool = False
    nearby_spotter_call: str | None = None
    nearby_spotter_dist: float | None = None
    in_zone: bool = False
    in_skip_zone: bool = False
    no_antenna: bool = False
    band_condition: str | None = None
    degraded_by_conditions: bool = False
    status: str = UNLIKELY
    explanation: Explanation | None = None

    def add_spot(self, spot: Spot, spotter_dist_km: float | None = None, radius_km: float = 0) -> None:
        """Accumulate a spot; spotter_dist_km is None when the spotter can't be located."""
        self.spots.append(spot)
        if self.best_snr is None or spot.snr > self.best_snr:
            self.best_snr = spot.snr
        if spotter_dist_km is not None and spotter_dist_km <= radius_km:
            self.has_nearby_spot = True
            if self.nearby_spotter_call is None or spotter_dist_km < self.nearby_spotter_dist:
                self.nearby_spotter_call = spot.spotter
                self.nearby_spotter_dist = spotter_dist_km

    @property
    def snr(self) -> float:
        return self.best_snr if self.best_snr is not None else -math.inf


@dataclass
class StationObservation:
    call: str
    grid: str
    location: Coordinate
    region: str
    distance_km: float
    bearing: float
    band_analysis: dict[str, BandAnalysis]
    status: str
    best_band: Band | None = None
    best_snr: int = 0
    spot_count: int = 0
    wpm: int = DEFAULT_WPM

    @property
    def direction(self) -> str:
        return bearing_to_direction(self.bearing)


def _round(x: float) -> int:
    return int(math.floor(x + 0.5))


def in_skip_zone(band: Band, antenna: AntennaCapability, distance_km: float) -> bool:
    """Whether the band's skip zone blocks this distance for this antenna.

    An NVIS antenna on an NVIS-capable band covers out to 500 km, which
    lifts the skip zone there. Otherwise the skip zone only matters for a
    standard (low-angle) antenna.
    """
    if band.skip_zone is None or not band.skip_zone.contains(distance_km):
        return False
    if antenna.nvis and band.nvis_capable and distance_km <= NVIS_MAX_KM:
        return False
    return antenna.standard


def classify_band(analysis: BandAnalysis, antenna: AntennaCapability | None,
                  distance_km: float, condition: str | None = None) -> str:
    """Set status, flags and explanation on an accumulated BandAnalysis.

    Rules are applied in order; no antenna short-circuits everything else.

    Returns:
        The new status
    """
    antenna = antenna or AntennaCapability()

    if not antenna.has_any:
        analysis.status = UNAVAILABLE
        analysis.no_antenna = True
        analysis.in_skip_zone = False
        analysis.explanation = Explanation("No antenna", (_antenna_factor(),))
        return analysis.status

    analysis.no_antenna = False
    analysis.in_skip_zone = in_skip_zone(analysis.band, antenna, distance_km)

    relevant = analysis.has_nearby_spot or analysis.in_zone
    if analysis.in_skip_zone:
        analysis.status = UNLIKELY
    elif relevant and analysis.snr >= SHOULD_MIN_SNR:
        analysis.status = SHOULD
    elif relevant and analysis.snr > MIGHT_ABOVE_SNR:
        analysis.status = MIGHT
    else:
        analysis.status = UNLIKELY

    if condition:
        analysis.band_condition = condition
        grade = condition.strip().lower()
        if grade == "poor" and analysis.status == SHOULD:
            analysis.status = MIGHT
            analysis.degraded_by_conditions = True
        elif grade not in ("good", "fair"):
            analysis.status = UNLIKELY
            analysis.degraded_by_conditions = True

    analysis.explanation = build_explanation(analysis)
    return analysis.status


def _antenna_factor() -> Factor:
    return Factor("antenna", True, "No antenna for this band", False)


def _snr_level(snr: float) -> str:
    if snr >= 15:
        return "strong"
    if snr >= 10:
        return "good"
    if snr >= 5:
        return "moderate"
    return "weak"


def build_explanation(analysis: BandAnalysis) -> Explanation:
    """List the factors behind a band's status and pick the primary one.

    Primary reason priority: no antenna, skip zone, degraded conditions,
    weak signal (unlikely), no nearby spotters (unlikely), nearby spotter,
    then plain SNR.
    """
    snr = analysis.best_snr if analysis.best_snr is not None else 0
    factors = [Factor("snr", snr, f"SNR: {snr} dB ({_snr_level(snr)} signal)", snr >= SHOULD_MIN_SNR)]

    nearby = analysis.has_nearby_spot and analysis.nearby_spotter_call
    if nearby:
        factors.append(Factor(
            "nearby", analysis.nearby_spotter_call,
            f"Nearby spotter: {analysis.nearby_spotter_call} ({_round(analysis.nearby_spotter_dist)}km away)",
            True,
        ))
    else:
        factors.append(Factor("nearby", None, "No nearby spotters", False))

    if analysis.in_zone:
        factors.append(Factor("zone", True, "In propagation zone from your area", True))

    if analysis.band_condition:
        grade = analysis.band_condition.strip().lower()
        factors.append(Factor(
            "conditions", analysis.band_condition,
            f"Band conditions: {analysis.band_condition}",
            grade in ("good", "fair"),
        ))

    if analysis.in_skip_zone:
        skip = analysis.band.skip_zone
        factors.append(Factor(
            "skipZone", True, f"In skip zone ({skip.min_km:g}-{skip.max_km:g}km)", False,
        ))

    if analysis.no_antenna:
        factors.append(_antenna_factor())

    unlikely = analysis.status == UNLIKELY
    if analysis.no_antenna:
        primary = "No antenna"
    elif analysis.in_skip_zone:
        primary = "Skip zone"
    elif analysis.degraded_by_conditions:
        primary = f"{analysis.band_condition} conditions"
    elif unlikely and snr < 5:
        primary = f"Weak signal ({snr} dB)"
    elif unlikely and not analysis.has_nearby_spot and not analysis.in_zone:
        primary = "No nearby spotters"
    elif nearby:
        primary = f"Nearby: {analysis.nearby_spotter_call}"
    else:
        primary = f"SNR {snr} dB"

    return Explanation(primary, tuple(factors))


def overall_status(statuses) -> str:
    """Best of should > might > unlikely; unavailable bands don't count.

    A station with nothing but unavailable bands is unlikely.
    """
    best = UNLIKELY
    for status in statuses:
        if STATUS_RANK.get(status, 0) > STATUS_RANK[best]:
            best = status
    return best


def _spotter_distance(spot: Spot, observer: Coordinate, resolver: CallsignResolver) -> float | None:
    grid = spot.spotter_grid or resolver.resolve_grid(spot.spotter)
    location = grid_to_latlon(grid) if grid else None
    if location is None:
        return None
    return distance_between(observer, location)


def compute_workability(spots, observer, resolver: CallsignResolver | None = None,
                        band_condition=None, zones=None, when=None) -> list[StationObservation]:
    """Full pipeline from normalized spots to station observations.

    Args:
        spots: Normalized spots (see spots.normalize_spots)
        observer: ObserverConfig (callsign, location, antennas, proximity_km,
            spotter_filter)
        resolver: CallsignResolver, a prefix-only one if omitted
        band_condition: Optional callable (band_name, is_daytime) -> grade or None
        zones: Precomputed zones; built from spots if omitted
        when: Time used for day/night selection (default now)

    Returns:
        One StationObservation per locatable remote callsign, in first-seen order
    """
    resolver = resolver or CallsignResolver()
    spots = list(spots)
    if zones is None:
        zones = build_propagation_zones(spots, observer.callsign, observer.location,
                                        observer.proximity_km, resolver)

    if observer.spotter_filter:
        wanted = {c.upper() for c in observer.spotter_filter}
        spots = [s for s in spots if s.spotter.upper() in wanted]

    by_call: dict[str, list[Spot]] = {}
    for spot in spots:
        if spot.callsign:
            by_call.setdefault(spot.callsign.upper(), []).append(spot)

    daytime = is_daytime(observer.location, when)
    stations = []
    for call, call_spots in by_call.items():
        station = _observe_station(call, call_spots, observer, resolver, zones, band_condition, daytime)
        if station is not None:
            stations.append(station)
    return stations


def _observe_station(call, call_spots, observer, resolver, zones, band_condition, daytime):
    grid = call_spots[0].grid or resolver.resolve_grid(call)
    location = grid_to_latlon(grid) if grid else None
    if location is None:
        logger.debug("No location for %s, skipping", call)
        return None

    distance = distance_between(observer.location, location)

    analyses: dict[str, BandAnalysis] = {}
    for spot in call_spots:
        band = freq_to_band(spot.frequency_khz)
        if band is None:
            continue
        analysis = analyses.setdefault(band.name, BandAnalysis(band))
        analysis.add_spot(spot, _spotter_distance(spot, observer.location, resolver), observer.proximity_km)

    best_band, best_snr = None, None
    for name, analysis in analyses.items():
        analysis.in_zone = is_station_in_zone(location, zones, name)
        condition = band_condition(name, daytime) if band_condition else None
        classify_band(analysis, observer.antennas.get(name), distance, condition)
        if best_snr is None or analysis.snr > best_snr:
            best_snr, best_band = analysis.best_snr, analysis.band

    ordered = dict(sorted(analyses.items(), key=lambda item: band_index(item[0])))
    return StationObservation(
        call=call,
        grid=grid,
        location=location,
        region=resolver.resolve_region(call),
        distance_km=distance,
        bearing=bearing_between(observer.location, location),
        band_analysis=ordered,
        status=overall_status(a.status for a in ordered.values()),
        best_band=best_band,
        best_snr=best_snr if best_snr is not None else 0,
        spot_count=len(call_spots),
        wpm=call_spots[0].wpm or DEFAULT_WPM,
    )


def workable_stations(stations, observer_call: str, band: str | None = None) -> list[StationObservation]:
    """Drop the observer's own call, and with a band, stations unavailable on it."""
    own = (observer_call or "").upper()
    result = [s for s in stations if s.call.upper() != own and s.spot_count > 0]
    if band:
        result = [s for s in result
                  if band in s.band_analysis and s.band_analysis[band].status != UNAVAILABLE]
    return result


def group_by_status(stations, band: str | None = None) -> dict[str, list[StationObservation]]:
    """Bucket stations into should/might/unlikely, strongest first.

    With a band, each station is bucketed by its status on that band.
    """
    groups = {SHOULD: [], MIGHT: [], UNLIKELY: []}
    for station in stations:
        if band and band in station.band_analysis:
            status = station.band_analysis[band].status
        else:
            status = station.status
        if status in groups:
            groups[status].append(station)
    for members in groups.values():
        members.sort(key=lambda s: s.best_snr, reverse=True)
    return groups


def default_antennas(standard: bool = False, nvis: bool = False) -> dict[str, AntennaCapability]:
    """The same capability on every band (NVIS only where the band allows it)."""
    return {b.name: AntennaCapability(standard, nvis and b.nvis_capable) for b in BANDS}
