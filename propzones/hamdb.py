"""HamDB callsign lookups used to populate the grid cache."""

import logging
import re
import threading
import time
import urllib.parse

import requests

from .grid_cache import GridCache, UNKNOWN, normalize_call

logger = logging.getLogger(__name__)

HAMDB_URL = "https://api.hamdb.org/v1/{call}/json"
USER_AGENT = "propzones/1.0"

GRID_RE = re.compile(r'^[A-R]{2}[0-9]{2}([A-X]{2})?$', re.I)

# Per-refresh cap so one busy band doesn't hammer the API
MAX_LOOKUPS = 50


def parse_hamdb_grid(data) -> str | None:
    """Pull a validated grid out of a HamDB JSON response.

    HamDB answers unknown calls with grid "NOT_FOUND", which is rejected
    here along with anything else that isn't a Maidenhead locator.
    """
    try:
        raw = data["hamdb"]["callsign"]["grid"]
    except (KeyError, TypeError):
        return None
    if isinstance(raw, str) and GRID_RE.match(raw):
        return raw.upper()
    return None


def fetch_grid(call: str, cache: GridCache, session: requests.Session | None = None) -> str | None:
    """Look up one callsign, caching the result (hits and misses).

    Returns:
        Grid string, or None when unknown, already in flight, or on error
    """
    key = normalize_call(call)
    if not key:
        return None

    cached = cache.get(key)
    if cached is not UNKNOWN:
        return cached

    if not cache.mark_pending(key):
        return None

    http = session or requests
    url = HAMDB_URL.format(call=urllib.parse.quote(key))
    try:
        r = http.get(url, headers={'User-Agent': USER_AGENT}, timeout=10)
        if not r.ok:
            logger.debug("HamDB lookup for %s returned HTTP %s", key, r.status_code)
            return None
        grid = parse_hamdb_grid(r.json())
        cache.set(key, grid)
        return grid
    except (requests.RequestException, ValueError) as e:
        logger.debug("HamDB lookup for %s failed: %s", key, e)
        return None
    finally:
        cache.clear_pending(key)


def fetch_grids(calls, cache: GridCache, on_progress=None, limit: int = MAX_LOOKUPS,
                delay: float = 0.1, session: requests.Session | None = None) -> int:
    """Sequentially look up the uncached callsigns among calls.

    Args:
        calls: Iterable of callsigns
        cache: Cache to read and populate
        on_progress: Optional callback(completed, total)
        limit: Max lookups for this batch
        delay: Seconds to sleep between requests

    Returns:
        Number of lookups performed
    """
    seen = set()
    to_fetch = []
    for call in calls:
        key = normalize_call(call)
        if key and key not in seen and cache.get(key) is UNKNOWN:
            seen.add(key)
            to_fetch.append(key)
    to_fetch = to_fetch[:limit]

    for completed, call in enumerate(to_fetch, start=1):
        fetch_grid(call, cache, session=session)
        if on_progress:
            on_progress(completed, len(to_fetch))
        if completed < len(to_fetch):
            time.sleep(delay)

    if to_fetch:
        cache.save()
    return len(to_fetch)


def populate_in_background(calls, cache: GridCache, on_complete=None, **kwargs) -> threading.Thread:
    """Fire-and-forget fetch_grids() on a daemon thread.

    on_complete(count) is called from the worker thread when done, which is
    the caller's cue to recompute anything that used the resolver.
    """
    calls = list(calls)

    def worker():
        count = fetch_grids(calls, cache, **kwargs)
        logger.debug("HamDB background lookup done: %d callsigns", count)
        if on_complete:
            on_complete(count)

    t = threading.Thread(target=worker, name="hamdb-lookup", daemon=True)
    t.start()
    return t
