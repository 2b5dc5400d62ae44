#!/usr/bin/env -S uv run
# /// script
# requires-python = ">=3.10"
# dependencies = [
#   "pyyaml",
#   "requests",
#   "pytest",
# ]
# ///
"""Test multi-provider refresh, demo fallback and snapshot publishing."""

import sys
import threading
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import patch

# Add repo root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from propzones.callsigns import CallsignResolver
from propzones.config import ObserverConfig
from propzones.feed import NO_DATA_ERROR, PropagationMonitor, SpotProvider, default_providers, gather_spots
from propzones.geo_utils import Coordinate, grid_to_latlon
from propzones.grid_cache import GridCache
from propzones.spots import Spot, demo_spots
from propzones.workability import SHOULD, default_antennas

WHEN = datetime(2026, 10, 19, 20, 0, tzinfo=timezone.utc)

SPOTS = [
    Spot("K1USN", 14025, snr=25, spotter="K6XX", grid="FN42", spotter_grid="CM97", source="rbn"),
    Spot("AK6MJ", 14074, snr=-3, spotter="G4XYZ", grid="CM98", spotter_grid="IO91", source="pskreporter"),
]


def failing():
    raise RuntimeError("feed down")


def make_observer(**kwargs):
    options = dict(
        callsign="AK6MJ",
        location=grid_to_latlon("CM98"),
        grid="CM98",
        antennas=default_antennas(standard=True),
        proximity_km=160,
    )
    options.update(kwargs)
    return ObserverConfig(**options)


class TestGatherSpots:
    def test_partial_failure_uses_what_succeeded(self):
        result = gather_spots([
            SpotProvider("rbn", failing),
            SpotProvider("psk", lambda: SPOTS),
        ])
        assert result.spots == SPOTS
        assert not result.using_fallback
        assert result.error is None

        rbn_status, psk_status = result.statuses
        assert not rbn_status.ok and rbn_status.error == "feed down"
        assert psk_status.ok and psk_status.count == 2

    def test_all_empty_falls_back_to_demo(self):
        result = gather_spots([SpotProvider("rbn", lambda: []), SpotProvider("psk", lambda: None)])
        assert result.using_fallback
        assert result.error == NO_DATA_ERROR
        assert result.spots == demo_spots()
        assert all(s.ok for s in result.statuses)

    def test_all_failing_falls_back_to_demo(self):
        result = gather_spots([SpotProvider("rbn", failing), SpotProvider("psk", failing)])
        assert result.using_fallback
        assert [s.ok for s in result.statuses] == [False, False]

    def test_no_providers(self):
        assert gather_spots([]).using_fallback

    def test_merge_in_provider_order(self):
        """Dedup sees providers in list order, not completion order."""
        bare = Spot("K1USN", 14021, snr=20, spotter="W3LPL", source="rbn")
        located = Spot("K1USN", 14024, snr=10, spotter="G4XYZ", grid="FN42", source="pskreporter")
        other = Spot("VE3WH", 14032, source="pskreporter")

        result = gather_spots([
            SpotProvider("rbn", lambda: [bare]),
            SpotProvider("psk", lambda: [other, located]),
        ])
        assert result.spots == [located, other]


class TestDefaultProviders:
    @patch("propzones.pskreporter.fetch_spots")
    @patch("propzones.rbn.fetch_spots")
    def test_providers_query_observer_grid(self, mock_rbn, mock_psk):
        mock_rbn.return_value = SPOTS[:1]
        mock_psk.return_value = SPOTS[1:]

        providers = default_providers(make_observer(grid="CM98kq"))
        assert [p.name for p in providers] == ["rbn", "psk"]

        result = gather_spots(providers)
        assert len(result.spots) == 2
        mock_rbn.assert_called_once()
        assert mock_psk.call_args.args[0] == "CM98"
        assert mock_psk.call_args.kwargs["modify_grid"] is True

    @patch("propzones.pskreporter.fetch_spots", return_value=[])
    def test_grid_derived_from_location(self, mock_psk):
        observer = make_observer(grid=None, location=Coordinate(44.35, -68.21))
        psk = default_providers(observer)[1]
        psk.fetch()
        assert mock_psk.call_args.args[0] == "FN54"


class TestPropagationMonitor:
    def test_refresh_builds_snapshot(self):
        monitor = PropagationMonitor(make_observer(), [SpotProvider("test", lambda: SPOTS)], lookup_grids=False)
        assert monitor.snapshot is None
        assert monitor.recompute() is None

        snap = monitor.refresh(when=WHEN)
        assert monitor.snapshot is snap
        assert snap.generation == 1
        assert snap.spots == SPOTS
        assert not snap.using_fallback
        assert [(z.band.name, z.direction) for z in snap.zones] == [("20m", "inbound"), ("20m", "outbound")]
        assert snap.visible_zones == snap.zones
        stations = {s.call: s for s in snap.stations}
        assert stations["K1USN"].status == SHOULD

    def test_min_zone_snr_hides_weak_zones(self):
        monitor = PropagationMonitor(make_observer(min_zone_snr=5), [SpotProvider("test", lambda: SPOTS)],
                                     lookup_grids=False)
        snap = monitor.refresh(when=WHEN)
        assert len(snap.zones) == 2
        assert [(z.band.name, z.direction) for z in snap.visible_zones] == [("20m", "inbound")]

    def test_fallback_snapshot(self):
        monitor = PropagationMonitor(make_observer(), [SpotProvider("test", failing)], lookup_grids=False)
        snap = monitor.refresh(when=WHEN)
        assert snap.using_fallback
        assert snap.error == NO_DATA_ERROR
        assert [s.call for s in snap.stations] == ["K1USN", "VE3WH", "K6GTE", "G4ABC"]

    def test_recompute_bumps_generation(self):
        monitor = PropagationMonitor(make_observer(), [SpotProvider("test", lambda: SPOTS)], lookup_grids=False)
        first = monitor.refresh(when=WHEN)
        second = monitor.recompute(when=WHEN)
        assert second.generation == first.generation + 1
        assert second.spots == first.spots
        assert monitor.snapshot is second

    def test_stale_refresh_is_discarded(self):
        """A slow refresh that finishes after a newer one never overwrites it."""
        started = threading.Event()
        release = threading.Event()
        calls = []
        newer = [Spot("VE3WH", 14032, snr=18, spotter="K6XX", grid="FN03", spotter_grid="CM97")]

        def fetch():
            calls.append(1)
            if len(calls) == 1:
                started.set()
                release.wait(timeout=5)
                return SPOTS
            return newer

        monitor = PropagationMonitor(make_observer(), [SpotProvider("test", fetch)], lookup_grids=False)
        results = {}
        slow = threading.Thread(target=lambda: results.setdefault("slow", monitor.refresh(when=WHEN)))
        slow.start()
        assert started.wait(timeout=5)

        fast = monitor.refresh(when=WHEN)
        release.set()
        slow.join(timeout=5)

        assert fast.generation == 2
        assert monitor.snapshot is fast
        assert results["slow"] is fast
        assert monitor.snapshot.spots == newer

    @patch("propzones.feed.populate_in_background")
    def test_recompute_during_refresh_keeps_new_spots(self, mock_populate):
        """Recomputing the old window mid-fetch must not beat the newer refresh."""
        started = threading.Event()
        release = threading.Event()
        old = [Spot("K1OLD", 14025, snr=20, spotter="K6XX", grid="FN42", spotter_grid="CM97")]
        new = [Spot("K1NEW", 14025, snr=20, spotter="K6XX", grid="FN42", spotter_grid="CM97")]
        calls = []

        def fetch():
            calls.append(1)
            if len(calls) == 1:
                return old
            started.set()
            release.wait(timeout=5)
            return new

        monitor = PropagationMonitor(make_observer(), [SpotProvider("test", fetch)],
                                     resolver=CallsignResolver(GridCache()))
        first = monitor.refresh(when=WHEN)
        assert first.sequence == 1

        results = {}
        pending = threading.Thread(target=lambda: results.setdefault("new", monitor.refresh(when=WHEN)))
        pending.start()
        assert started.wait(timeout=5)

        recomputed = monitor.recompute(when=WHEN)
        assert recomputed.sequence == 1
        assert recomputed.generation > first.generation
        assert monitor.snapshot is recomputed

        release.set()
        pending.join(timeout=5)

        snap = monitor.snapshot
        print(f"  published sequence {snap.sequence}, generation {snap.generation}")
        assert results["new"] is snap
        assert snap.sequence == 2
        assert [s.call for s in snap.stations] == ["K1NEW"]
        # The newer refresh still starts its own grid lookups
        assert mock_populate.call_count == 2
        assert "K1NEW" in mock_populate.call_args.args[0]

    @patch("propzones.feed.populate_in_background")
    def test_background_lookup_triggers_recompute(self, mock_populate):
        cache = GridCache()
        monitor = PropagationMonitor(make_observer(), [SpotProvider("test", lambda: SPOTS)],
                                     resolver=CallsignResolver(cache))
        snap = monitor.refresh(when=WHEN)

        calls, passed_cache, on_complete = mock_populate.call_args.args
        assert calls == ["AK6MJ", "G4XYZ", "K1USN", "K6XX"]
        assert passed_cache is cache

        on_complete(0)
        assert monitor.snapshot is snap
        on_complete(3)
        assert monitor.snapshot.generation == snap.generation + 1

    @patch("propzones.feed.populate_in_background")
    def test_no_lookup_without_cache_or_on_fallback(self, mock_populate):
        PropagationMonitor(make_observer(), [SpotProvider("test", lambda: SPOTS)]).refresh(when=WHEN)
        PropagationMonitor(make_observer(), [SpotProvider("test", failing)],
                           resolver=CallsignResolver(GridCache())).refresh(when=WHEN)
        mock_populate.assert_not_called()
