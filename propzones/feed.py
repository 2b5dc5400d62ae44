"""Spot refresh: poll every feed, merge, and publish derived state.

Feeds fail independently; whatever succeeded is used. Only when every
feed comes back empty are the demo spots substituted, and the result says
so, so a front-end can warn that it is showing demo data.

Derived state (zones, station verdicts) is recomputed from scratch on
every refresh and published as one immutable Snapshot. A refresh that
finishes after a newer one has already been published is discarded, and
so is a recompute of an older spot window.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

import requests

from . import pskreporter, rbn
from .callsigns import CallsignResolver
from .geo_utils import latlon_to_grid
from .hamdb import populate_in_background
from .spots import Spot, demo_spots, normalize_spots
from .workability import StationObservation, compute_workability
from .zones import Zone, build_propagation_zones, filter_zones_by_snr

logger = logging.getLogger(__name__)

NO_DATA_ERROR = "No data from any source"


@dataclass(frozen=True)
class SpotProvider:
    name: str
    fetch: Callable[[], list[Spot]]


@dataclass(frozen=True)
class ProviderStatus:
    name: str
    ok: bool
    count: int = 0
    error: str | None = None


@dataclass(frozen=True)
class FeedResult:
    spots: list[Spot]
    statuses: tuple[ProviderStatus, ...] = ()
    using_fallback: bool = False
    error: str | None = None


def _run_provider(provider: SpotProvider):
    try:
        spots = list(provider.fetch() or [])
    except Exception as e:  # any provider failure is isolated to that provider
        logger.warning("Spot source %s failed: %s", provider.name, e)
        return [], ProviderStatus(provider.name, ok=False, error=str(e) or type(e).__name__)
    return spots, ProviderStatus(provider.name, ok=True, count=len(spots))


def gather_spots(providers, max_workers: int | None = None) -> FeedResult:
    """Fetch from every provider concurrently and merge the results.

    Results are merged in provider order regardless of which finishes
    first, so deduplication is deterministic.
    """
    providers = list(providers)
    if providers:
        with ThreadPoolExecutor(max_workers=max_workers or len(providers)) as pool:
            results = list(pool.map(_run_provider, providers))
    else:
        results = []

    statuses = tuple(status for _, status in results)
    batches = [spots for spots, _ in results]

    if not any(batches):
        logger.warning("%s, using demo spots", NO_DATA_ERROR)
        return FeedResult(demo_spots(), statuses, using_fallback=True, error=NO_DATA_ERROR)

    return FeedResult(normalize_spots(*batches), statuses)


def default_providers(observer, session: requests.Session | None = None) -> list[SpotProvider]:
    """RBN skimmers (CW) plus PSKReporter reports for the observer's grid square."""
    grid = (observer.grid or latlon_to_grid(*observer.location))[:4]
    return [
        SpotProvider("rbn", lambda: rbn.fetch_spots(session=session)),
        SpotProvider("psk", lambda: pskreporter.fetch_spots(grid, window_seconds=1800,
                                                            modify_grid=True, session=session)),
    ]


@dataclass(frozen=True)
class Snapshot:
    generation: int
    sequence: int  # spot window this was derived from; only refresh() advances it
    spots: list[Spot]
    zones: list[Zone]
    visible_zones: list[Zone]
    stations: list[StationObservation]
    using_fallback: bool = False
    error: str | None = None
    statuses: tuple[ProviderStatus, ...] = ()
    updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class PropagationMonitor:
    """Owns the current spot window and its derived Snapshot.

    Args:
        observer: config.ObserverConfig
        providers: SpotProviders polled by refresh()
        resolver: CallsignResolver; with a cache attached, unknown calls are
            looked up in the background and the snapshot recomputed after
        band_condition: Optional (band_name, is_daytime) -> grade callable
        lookup_grids: Whether to start background HamDB lookups
    """

    def __init__(self, observer, providers, resolver: CallsignResolver | None = None,
                 band_condition=None, lookup_grids: bool = True):
        self.observer = observer
        self.providers = list(providers)
        self.resolver = resolver or CallsignResolver()
        self.band_condition = band_condition
        self.lookup_grids = lookup_grids
        self._lock = threading.Lock()
        self._generation = 0
        self._sequence = 0
        self._snapshot: Snapshot | None = None
        self._feed: FeedResult | None = None

    @property
    def snapshot(self) -> Snapshot | None:
        return self._snapshot

    def _next_sequence(self) -> tuple[int, int]:
        """Claim a new spot window sequence and generation for a refresh."""
        with self._lock:
            self._sequence += 1
            self._generation += 1
            return self._sequence, self._generation

    def _publish(self, snapshot: Snapshot, feed: FeedResult) -> Snapshot:
        # Older spot windows always lose; generation orders derivations of the same window
        with self._lock:
            current = self._snapshot
            if current is not None and (current.sequence, current.generation) > (
                    snapshot.sequence, snapshot.generation):
                logger.debug("Discarding stale snapshot %d/%d (current %d/%d)",
                             snapshot.sequence, snapshot.generation,
                             current.sequence, current.generation)
                return current
            self._snapshot = snapshot
            self._feed = feed
            return snapshot

    def derive(self, feed: FeedResult, generation: int = 0, when=None, sequence: int = 0) -> Snapshot:
        """Pure recomputation of zones and station verdicts from a feed result."""
        obs = self.observer
        zones = build_propagation_zones(feed.spots, obs.callsign, obs.location,
                                        obs.proximity_km, self.resolver)
        stations = compute_workability(feed.spots, obs, self.resolver,
                                       band_condition=self.band_condition, zones=zones, when=when)
        return Snapshot(
            generation=generation,
            sequence=sequence,
            spots=feed.spots,
            zones=zones,
            visible_zones=filter_zones_by_snr(zones, obs.min_zone_snr),
            stations=stations,
            using_fallback=feed.using_fallback,
            error=feed.error,
            statuses=feed.statuses,
        )

    def refresh(self, when=None) -> Snapshot:
        """Poll every provider and publish a new snapshot.

        Returns:
            The published snapshot, which is a newer one than this call
            computed if another refresh overtook it
        """
        sequence, generation = self._next_sequence()
        feed = gather_spots(self.providers)
        snapshot = self.derive(feed, generation, when, sequence)
        published = self._publish(snapshot, feed)
        if published is snapshot and not feed.using_fallback:
            self._lookup_grids(feed.spots)
        return published

    def recompute(self, when=None) -> Snapshot | None:
        """Re-derive from the current spots, e.g. after settings or the grid
        cache changed. No-op before the first refresh.

        The result keeps the current spot window's sequence, so a refresh
        still fetching newer spots replaces it when that refresh lands.
        """
        with self._lock:
            feed = self._feed
            if feed is None:
                return None
            sequence = self._snapshot.sequence
            self._generation += 1
            generation = self._generation
        return self._publish(self.derive(feed, generation, when, sequence), feed)

    def _lookup_grids(self, spots) -> None:
        cache = self.resolver.cache
        if not self.lookup_grids or cache is None:
            return
        calls = set()
        for spot in spots:
            calls.add(spot.callsign)
            if spot.spotter:
                calls.add(spot.spotter)

        def on_complete(count):
            if count:
                self.recompute()

        populate_in_background(sorted(calls), cache, on_complete)
