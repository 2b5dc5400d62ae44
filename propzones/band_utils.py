"""Band and frequency utilities for amateur radio.

Skip zones are the "dead zone" where ground wave has faded but the first
skywave hop hasn't landed yet. NVIS (Near Vertical Incidence Skywave) uses
high takeoff angles to fill in 0-500 km on the lower bands.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class SkipZone:
    min_km: float
    max_km: float

    def contains(self, distance_km: float) -> bool:
        return self.min_km <= distance_km <= self.max_km


@dataclass(frozen=True)
class Band:
    name: str
    min_khz: float
    max_khz: float
    color: str
    skip_zone: SkipZone | None = None
    nvis_capable: bool = False

    def contains(self, freq_khz: float) -> bool:
        return self.min_khz <= freq_khz <= self.max_khz


# Band edges (kHz), lowest band first
BANDS = (
    Band("160m", 1800, 2000, "#ef4444", SkipZone(80, 600), nvis_capable=True),
    Band("80m", 3500, 4000, "#f97316", SkipZone(50, 400), nvis_capable=True),
    Band("40m", 7000, 7300, "#eab308", SkipZone(150, 800), nvis_capable=True),
    Band("30m", 10100, 10150, "#84cc16", SkipZone(250, 1000)),
    Band("20m", 14000, 14350, "#22c55e", SkipZone(400, 1500)),
    Band("17m", 18068, 18168, "#14b8a6", SkipZone(500, 1800)),
    Band("15m", 21000, 21450, "#06b6d4", SkipZone(600, 2000)),
    Band("12m", 24890, 24990, "#3b82f6", SkipZone(800, 2300)),
    Band("10m", 28000, 29700, "#8b5cf6", SkipZone(1000, 2500)),
)

BAND_NAMES = tuple(b.name for b in BANDS)

NVIS_MAX_KM = 500

# Lowest frequency (MHz) each band needs the MUF to reach, highest band first
_MUF_THRESHOLDS = (
    (28.0, "10m+"),
    (24.89, "12m"),
    (21.0, "15m"),
    (18.068, "17m"),
    (14.0, "20m"),
    (10.1, "30m"),
    (7.0, "40m"),
    (3.5, "80m"),
)


def freq_to_band(freq_khz) -> Band | None:
    """Convert frequency to band.

    Args:
        freq_khz: Frequency in kHz

    Returns:
        The matching Band, or None if outside every known band
    """
    if freq_khz is None:
        return None
    for band in BANDS:
        if band.contains(freq_khz):
            return band
    return None


def get_band(name: str) -> Band | None:
    """Look up a band by name (e.g., "20m")."""
    for band in BANDS:
        if band.name == name:
            return band
    return None


def band_index(name: str) -> int:
    """Position of a band in BANDS, lowest frequency first; unknown bands sort last."""
    try:
        return BAND_NAMES.index(name)
    except ValueError:
        return len(BANDS)


def muf_to_band(muf_mhz: float) -> str:
    """Highest band an ionosonde MUF(D) reading supports.

    Args:
        muf_mhz: Maximum usable frequency in MHz

    Returns:
        Band label, "10m+" at the top end and "160m" below 80m
    """
    for threshold, label in _MUF_THRESHOLDS:
        if muf_mhz >= threshold:
            return label
    return "160m"
