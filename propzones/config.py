"""Configuration loader for the propagation-zone tools."""

import copy
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .band_utils import BANDS
from .geo_utils import Coordinate, grid_to_latlon
from .workability import AntennaCapability

logger = logging.getLogger(__name__)


DEFAULT_CONFIG = {
    "callsign": "",
    "grid": "",
    "location_mode": "grid",  # "grid" or "pota"
    "pota_park": "",
    "proximity_km": 160,      # ~100 miles
    "min_zone_snr": 0,
    "antennas": {b.name: {"standard": False, "nvis": False} for b in BANDS},
    "spotter_filter": [],
}

# Used when the configured grid doesn't parse
FALLBACK_LOCATION = Coordinate(37.5, -122.0)

MIN_PROXIMITY_KM = 80
MAX_PROXIMITY_KM = 500


@dataclass
class ObserverConfig:
    callsign: str
    location: Coordinate
    label: str = ""
    grid: str | None = None
    antennas: dict[str, AntennaCapability] = field(default_factory=dict)
    proximity_km: float = DEFAULT_CONFIG["proximity_km"]
    min_zone_snr: float = 0
    spotter_filter: list[str] = field(default_factory=list)


def default_config_paths() -> list[Path]:
    repo_root = Path(__file__).parent.parent
    return [
        # Local config (gitignored, stays with repo)
        repo_root / "local" / "config" / "config.yaml",
        # XDG config
        Path.home() / ".config" / "propzones" / "config.yaml",
    ]


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load configuration from YAML file with defaults.

    Searches for config in:
    1. Provided path
    2. local/config/config.yaml (user config, gitignored)
    3. ~/.config/propzones/config.yaml (XDG standard)
    4. Falls back to defaults

    Args:
        config_path: Optional path to config file

    Returns:
        Dict with configuration values
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    search_paths = []
    if config_path:
        search_paths.append(Path(config_path))
    search_paths.extend(default_config_paths())

    # Load first found config
    for path in search_paths:
        if path and path.exists():
            try:
                with open(path) as f:
                    user_config = yaml.safe_load(f)
                if isinstance(user_config, dict):
                    config.update(user_config)
                return config
            except (OSError, yaml.YAMLError) as e:
                logger.warning("Could not load config from %s: %s", path, e)

    return config


def save_config(config: dict[str, Any], config_path: Path | None = None) -> None:
    """Save configuration to YAML file.

    Args:
        config: Configuration dict to save
        config_path: Optional path to save to (defaults to local/config/config.yaml)
    """
    if config_path is None:
        config_path = default_config_paths()[0]
    config_path = Path(config_path)

    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, 'w') as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)


def parse_antenna(value) -> AntennaCapability:
    """Accept {"standard": .., "nvis": ..} or the older single-string form.

    Old configs stored one of "none", "lowAngle", "nvis" or "both".
    """
    if isinstance(value, str):
        return AntennaCapability(
            standard=value in ("lowAngle", "both"),
            nvis=value in ("nvis", "both"),
        )
    if isinstance(value, dict):
        return AntennaCapability(bool(value.get("standard")), bool(value.get("nvis")))
    return AntennaCapability()


def parse_antennas(raw) -> dict[str, AntennaCapability]:
    raw = raw if isinstance(raw, dict) else {}
    return {b.name: parse_antenna(raw.get(b.name)) for b in BANDS}


def observer_from_config(config: dict[str, Any], park=None) -> ObserverConfig:
    """Build the observer from a config dict.

    Args:
        config: Dict from load_config()
        park: Optional pota.ParkLocation, used when location_mode is "pota"

    Returns:
        ObserverConfig; an unparseable grid falls back to FALLBACK_LOCATION
    """
    callsign = str(config.get("callsign") or "").strip().upper()
    grid = str(config.get("grid") or "").strip().upper() or None

    if config.get("location_mode") == "pota" and park is not None:
        location = park.location
        label = park.label
        grid = park.grid or grid
    else:
        location = grid_to_latlon(grid) if grid else None
        label = grid or ""
        if location is None:
            if grid:
                logger.warning("Invalid grid %r, using default location", grid)
            location = FALLBACK_LOCATION

    try:
        proximity = float(config.get("proximity_km", DEFAULT_CONFIG["proximity_km"]))
    except (TypeError, ValueError):
        proximity = DEFAULT_CONFIG["proximity_km"]
    proximity = min(MAX_PROXIMITY_KM, max(MIN_PROXIMITY_KM, proximity))

    try:
        min_zone_snr = float(config.get("min_zone_snr") or 0)
    except (TypeError, ValueError):
        min_zone_snr = 0

    spotter_filter = [str(c).strip().upper() for c in config.get("spotter_filter") or [] if c]

    return ObserverConfig(
        callsign=callsign,
        location=location,
        label=label,
        grid=grid,
        antennas=parse_antennas(config.get("antennas")),
        proximity_km=proximity,
        min_zone_snr=min_zone_snr,
        spotter_filter=spotter_filter,
    )
