"""Canonical spot records and the multi-source normalizer.

Each feed has its own raw shape (RBN JSON objects, PSKReporter XML
reception reports). One mapping function per feed turns those into
``Spot``; nothing downstream ever sees a provider-shaped record.
"""

import logging
import math
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Spot:
    """One reception report: ``spotter`` heard ``callsign`` on ``frequency_khz``."""
    callsign: str
    frequency_khz: float
    snr: int = 0
    spotter: str = ""
    grid: str | None = None
    spotter_grid: str | None = None
    mode: str | None = None
    source: str = ""
    timestamp: datetime | None = None
    wpm: int | None = None


def _clean_call(value) -> str:
    return str(value).strip().upper() if value else ""


def _clean_grid(value) -> str | None:
    if not value or not isinstance(value, str):
        return None
    grid = value.strip()[:4].upper()
    return grid or None


def _to_int(value, default=0) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def _to_float(value) -> float | None:
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def _to_timestamp(value) -> datetime | None:
    if value in (None, ""):
        return None
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    try:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def spot_from_rbn(record: dict) -> Spot | None:
    """Map a VailReRBN JSON spot to a Spot.

    RBN mirrors name the same fields differently (``callsign``/``dx_call``,
    ``spotter``/``de_call``, ``grid``/``dx_grid``), so either is accepted.

    Returns:
        Spot, or None when the callsign or frequency is missing/unparseable
    """
    if not isinstance(record, dict):
        return None
    call = _clean_call(record.get("callsign") or record.get("dx_call"))
    freq = _to_float(record.get("frequency"))
    if not call or freq is None:
        logger.debug("Dropping RBN record without callsign/frequency: %r", record)
        return None
    return Spot(
        callsign=call,
        frequency_khz=freq,
        snr=_to_int(record.get("snr")),
        spotter=_clean_call(record.get("spotter") or record.get("de_call")),
        grid=_clean_grid(record.get("grid") or record.get("dx_grid")),
        spotter_grid=_clean_grid(record.get("spotter_grid") or record.get("de_grid")),
        mode=record.get("mode"),
        source="rbn",
        timestamp=_to_timestamp(record.get("timestamp") or record.get("time")),
        wpm=_to_int(record.get("wpm"), default=None),
    )


def spot_from_pskreporter(report) -> Spot | None:
    """Map a PSKReporter ``<receptionReport>`` element to a Spot.

    PSKReporter reports frequency in Hz and locators at up to 10
    characters; both grids are cut to the 4-character square.
    """
    call = _clean_call(report.get("senderCallsign"))
    freq_hz = _to_float(report.get("frequency"))
    if not call or freq_hz is None:
        return None
    return Spot(
        callsign=call,
        frequency_khz=freq_hz / 1000,
        snr=_to_int(report.get("sNR")),
        spotter=_clean_call(report.get("receiverCallsign")),
        grid=_clean_grid(report.get("senderLocator")),
        spotter_grid=_clean_grid(report.get("receiverLocator")),
        mode=report.get("mode"),
        source="pskreporter",
        timestamp=_to_timestamp(_to_int(report.get("flowStartSeconds"), default=None)),
    )


def demo_spots() -> list[Spot]:
    """Fallback dataset shown when every feed comes back empty."""
    return [
        Spot("K1USN", 14025, snr=25, wpm=22, source="demo"),
        Spot("VE3WH", 14032, snr=18, wpm=20, source="demo"),
        Spot("K6GTE", 14040, snr=12, wpm=18, source="demo"),
        Spot("G4ABC", 14028, snr=8, wpm=16, source="demo"),
    ]


def frequency_bucket(freq_khz: float) -> int:
    """Round to the nearest 10 kHz, halves rounding up."""
    return int(math.floor(freq_khz / 10 + 0.5)) * 10


def dedup_key(spot: Spot) -> str:
    """Identity of a spot for merging: callsign plus 10 kHz bucket.

    Deliberately lossy: two signals from the same call within the same
    bucket collapse into one.
    """
    return f"{spot.callsign.upper()}-{frequency_bucket(spot.frequency_khz)}"


def normalize_spots(*sources) -> list[Spot]:
    """Merge spot lists from several feeds into one deduplicated list.

    Single pass in arrival order. On a key collision the first spot is
    kept unless the newcomer carries a transmitter grid the kept one
    lacks. Empty or None sources are skipped.
    """
    merged: dict[str, Spot] = {}
    for source in sources:
        for spot in source or ():
            key = dedup_key(spot)
            existing = merged.get(key)
            if existing is None or (spot.grid and not existing.grid):
                merged[key] = spot
    return list(merged.values())


def active_spotters(spots) -> list[tuple[str, int]]:
    """Spotter callsigns with how many spots each reported, busiest first."""
    counts = Counter(s.spotter.upper() for s in spots if s.spotter)
    return sorted(counts.items(), key=lambda item: item[1], reverse=True)
