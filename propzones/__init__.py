"""HF propagation zones and workability - shared library."""

from .band_utils import BANDS, Band, freq_to_band, get_band, muf_to_band
from .geo_utils import Coordinate, grid_to_latlon, calc_bearing, calc_distance_km, bearing_to_direction
from .callsigns import CallsignResolver
from .grid_cache import GridCache
from .config import load_config, save_config, observer_from_config
from .spots import Spot, normalize_spots, demo_spots
from .zones import build_propagation_zones
from .workability import compute_workability, group_by_status
from .solar import fetch_solar_data, band_condition_provider
from .ionosonde import IonosondeStation, fetch_stations
from .feed import PropagationMonitor, default_providers, gather_spots

__all__ = [
    # Band utilities
    'BANDS',
    'Band',
    'freq_to_band',
    'get_band',
    'muf_to_band',
    # Geo utilities
    'Coordinate',
    'grid_to_latlon',
    'calc_bearing',
    'calc_distance_km',
    'bearing_to_direction',
    # Callsigns
    'CallsignResolver',
    'GridCache',
    # Config
    'load_config',
    'save_config',
    'observer_from_config',
    # Spots
    'Spot',
    'normalize_spots',
    'demo_spots',
    # Zones and workability
    'build_propagation_zones',
    'compute_workability',
    'group_by_status',
    # Solar
    'fetch_solar_data',
    'band_condition_provider',
    # Ionosonde
    'IonosondeStation',
    'fetch_stations',
    # Feed
    'PropagationMonitor',
    'default_providers',
    'gather_spots',
]
