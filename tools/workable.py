#!/usr/bin/env -S uv run
# -*- mode: python; -*-
# vim: set ft=python:
# /// script
# requires-python = ">=3.10"
# dependencies = [
#   "pyyaml",
#   "requests",
# ]
# ///
"""
Who can I work right now?

Pulls the last 30 minutes of RBN and PSKReporter spots, builds propagation
zones around your location, and lists the spotted stations grouped by
should / might / unlikely, with the main reason for each.

Usage:
    python workable.py                       # Use config callsign/grid/antennas
    python workable.py -b 20m                # Only stations on 20m
    python workable.py -g CN88 -c AK6MJ      # Override location and call
    python workable.py --pota K-0001         # Operating from a park
    python workable.py --zones -v            # Also print zones, debug logging
    python workable.py --spotters            # Busiest spotters, for spotter_filter
    python workable.py --muf                 # Ionosonde MUF near you
"""

import argparse
import logging
import sys
from pathlib import Path

import requests

sys.path.insert(0, str(Path(__file__).parent.parent))

from propzones.band_utils import BAND_NAMES
from propzones.callsigns import CallsignResolver
from propzones.config import load_config, observer_from_config
from propzones.feed import PropagationMonitor, default_providers
from propzones.grid_cache import GridCache
from propzones.geo_utils import bearing_between, bearing_to_direction, distance_between
from propzones.hamdb import fetch_grids
from propzones.ionosonde import fetch_stations, nearest_station
from propzones.pota import fetch_park
from propzones.solar import band_condition_provider, fetch_solar_data
from propzones.spots import active_spotters
from propzones.workability import SHOULD, MIGHT, UNLIKELY, default_antennas, group_by_status, workable_stations
from propzones.zones import filter_by_proximity

CACHE_PATH = Path.home() / ".cache" / "propzones" / "grid_cache.json"

HEADINGS = {
    SHOULD: "SHOULD WORK",
    MIGHT: "MIGHT WORK",
    UNLIKELY: "UNLIKELY",
}


def print_station(station, band=None):
    analysis = station.band_analysis.get(band) if band else None
    if analysis is None and station.best_band is not None:
        analysis = station.band_analysis.get(station.best_band.name)
    band_name = analysis.band.name if analysis else "?"
    reason = analysis.explanation.primary if analysis and analysis.explanation else ""
    print(f"  {station.call:<10} {station.grid:<6} {band_name:>4} {station.best_snr:>4} dB "
          f"{station.distance_km:>6.0f} km {station.direction:<3}  {reason}")


def print_zones(zones):
    print("\nPropagation zones:")
    if not zones:
        print("  (none)")
    for zone in zones:
        for cluster in zone.clusters:
            flags = " <->" if cluster.bidirectional else ""
            shape = "circle" if cluster.is_degenerate else f"{len(cluster.hull)}-gon"
            print(f"  {zone.band.name:>4} {zone.direction:<8} {cluster.spot_count:>3} spots "
                  f"best {cluster.best_snr:>3} dB  ({cluster.centroid.lat:.1f}, {cluster.centroid.lon:.1f}) "
                  f"{shape}{flags}")


def print_spotters(spots, wanted, limit=15):
    print("\nActive spotters:")
    wanted = {c.upper() for c in wanted}
    for call, count in active_spotters(spots)[:limit]:
        mark = "*" if call in wanted else " "
        print(f"  {mark} {call:<10} {count:>4} spots")


def print_muf(stations, location, limit=5):
    print("\nIonosonde MUF:")
    if not stations:
        print("  (no current readings)")
        return
    nearest = nearest_station(stations, location)
    print(f"  Nearest: {nearest.name} ({nearest.code}) {nearest.mufd:.1f} MHz → {nearest.band}")
    by_distance = sorted(stations, key=lambda s: distance_between(location, s.location))
    for station in by_distance[:limit]:
        dist = distance_between(location, station.location)
        direction = bearing_to_direction(bearing_between(location, station.location))
        print(f"  {station.code:<6} {station.mufd:>5.1f} MHz {station.band:>5} "
              f"{dist:>6.0f} km {direction:<3}  {station.name}")


def main():
    parser = argparse.ArgumentParser(description="List stations you can likely work right now")
    parser.add_argument("-c", "--call", help="Your callsign")
    parser.add_argument("-g", "--grid", help="Your grid square")
    parser.add_argument("-b", "--band", choices=BAND_NAMES, help="Only show this band")
    parser.add_argument("--pota", metavar="REF", help="Operate from a POTA park (e.g. K-0001)")
    parser.add_argument("--config", type=Path, help="Config file")
    parser.add_argument("--all-antennas", action="store_true",
                        help="Assume a standard antenna on every band")
    parser.add_argument("--no-lookup", action="store_true", help="Skip HamDB grid lookups")
    parser.add_argument("--zones", action="store_true", help="Also print propagation zones")
    parser.add_argument("--spotters", action="store_true",
                        help="List the busiest spotters (* = in spotter_filter)")
    parser.add_argument("--muf", action="store_true", help="Show ionosonde MUF readings near you")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    cfg = load_config(args.config)
    if args.call:
        cfg["callsign"] = args.call
    if args.grid:
        cfg["grid"] = args.grid
        cfg["location_mode"] = "grid"
    if args.pota:
        cfg["location_mode"] = "pota"
        cfg["pota_park"] = args.pota

    session = requests.Session()

    park = None
    if cfg.get("location_mode") == "pota":
        park = fetch_park(cfg.get("pota_park", ""), session=session)
        if park is None:
            print(f"Park {cfg.get('pota_park')!r} not found, using grid location")

    observer = observer_from_config(cfg, park)
    if args.all_antennas:
        observer.antennas = default_antennas(standard=True)

    cache = GridCache(CACHE_PATH)
    cache.load()

    monitor = PropagationMonitor(
        observer,
        default_providers(observer, session),
        resolver=CallsignResolver(cache),
        band_condition=band_condition_provider(fetch_solar_data(session)),
        lookup_grids=False,
    )

    print("=" * 60)
    print(f"Workable stations - {observer.callsign or '(no call)'} @ {observer.label}")
    print("=" * 60)

    snap = monitor.refresh()
    for status in snap.statuses:
        mark = "✓" if status.ok else "✗"
        detail = f"{status.count} spots" if status.ok else status.error
        print(f"  {mark} {status.name}: {detail}")
    if snap.using_fallback:
        print(f"\n⚠ {snap.error} - showing demo data")
    local = filter_by_proximity(snap.spots, observer.location, observer.proximity_km)
    print(f"  {len(local)} of {len(snap.spots)} spots within {observer.proximity_km:.0f} km")

    if not args.no_lookup and not snap.using_fallback:
        calls = {s.callsign for s in snap.spots} | {s.spotter for s in snap.spots if s.spotter}
        looked_up = fetch_grids(sorted(calls), cache, session=session)
        if looked_up:
            print(f"  Looked up {looked_up} callsigns on HamDB")
            snap = monitor.recompute()

    stations = workable_stations(snap.stations, observer.callsign, args.band)
    groups = group_by_status(stations, args.band)
    for status, members in groups.items():
        print(f"\n{HEADINGS[status]} ({len(members)})")
        for station in members:
            print_station(station, args.band)

    if args.zones:
        print_zones(snap.visible_zones)

    if args.spotters:
        print_spotters(snap.spots, observer.spotter_filter)

    if args.muf:
        print_muf(fetch_stations(session), observer.location)

    if not observer.callsign:
        print("\nTip: set your callsign in local/config/config.yaml to see outbound zones")


if __name__ == "__main__":
    main()
