"""Callsign -> grid lookup cache.

Holds verified grids from an external lookup service (HamDB) so the
resolver can prefer them over the static prefix table. Misses are cached
too (as None) so a callsign is only looked up once per TTL.
"""

import json
import logging
import threading
import time
from pathlib import Path

logger = logging.getLogger(__name__)

CACHE_TTL = 30 * 24 * 60 * 60  # 30 days, seconds

# Returned by GridCache.get() for callsigns that were never looked up
UNKNOWN = "unknown"


def normalize_call(call: str) -> str:
    """Upper-case and strip any /portable or -ssid suffix."""
    call = (call or "").strip().upper()
    for sep in ("/", "-"):
        call = call.split(sep, 1)[0]
    return call


class GridCache:
    """In-memory cache with optional JSON file persistence.

    Entries are ``{"grid": str | None, "ts": float}`` keyed by base callsign.
    """

    def __init__(self, path: Path | None = None, ttl: float = CACHE_TTL):
        self.path = path
        self.ttl = ttl
        self._entries: dict[str, dict] = {}
        self._pending: set[str] = set()
        self._lock = threading.Lock()

    def __len__(self):
        return len(self._entries)

    def __contains__(self, call):
        return normalize_call(call) in self._entries

    def get(self, call: str):
        """Return the cached grid, None for a known miss, or UNKNOWN."""
        key = normalize_call(call)
        with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            return UNKNOWN
        if time.time() - entry["ts"] >= self.ttl:
            return UNKNOWN
        return entry["grid"]

    def set(self, call: str, grid: str | None, ts: float | None = None) -> None:
        key = normalize_call(call)
        with self._lock:
            self._entries[key] = {"grid": grid, "ts": time.time() if ts is None else ts}

    def has_pending(self, call: str) -> bool:
        key = normalize_call(call)
        with self._lock:
            return key in self._pending

    def mark_pending(self, call: str) -> bool:
        """Claim a lookup. Returns False if one is already in flight."""
        key = normalize_call(call)
        with self._lock:
            if key in self._pending:
                return False
            self._pending.add(key)
            return True

    def clear_pending(self, call: str) -> None:
        with self._lock:
            self._pending.discard(normalize_call(call))

    def load(self) -> int:
        """Load entries from disk, dropping expired ones. Returns entries kept."""
        if not self.path or not self.path.exists():
            return 0
        try:
            raw = json.loads(self.path.read_text())
        except (OSError, ValueError) as e:
            logger.warning("Could not load grid cache from %s: %s", self.path, e)
            return 0

        now = time.time()
        valid = {}
        for call, entry in raw.items():
            if isinstance(entry, dict) and entry.get("ts") and now - entry["ts"] < self.ttl:
                valid[call] = {"grid": entry.get("grid"), "ts": entry["ts"]}
        with self._lock:
            self._entries = valid
        return len(valid)

    def save(self) -> None:
        if not self.path:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self._lock:
                data = dict(self._entries)
            self.path.write_text(json.dumps(data, indent=2))
        except OSError as e:
            logger.warning("Could not save grid cache to %s: %s", self.path, e)
