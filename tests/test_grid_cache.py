#!/usr/bin/env -S uv run
# /// script
# requires-python = ">=3.10"
# dependencies = ["pytest"]
# ///
"""Test the callsign grid cache."""

import json
import sys
import tempfile
import threading
import time
from pathlib import Path

# Add repo root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from propzones.grid_cache import GridCache, UNKNOWN, normalize_call


def test_normalize_call():
    assert normalize_call(" w1aw/p ") == "W1AW"
    assert normalize_call("K6GTE-7") == "K6GTE"
    assert normalize_call(None) == ""


def test_get_set():
    cache = GridCache()
    assert cache.get("W1AW") is UNKNOWN
    cache.set("w1aw", "FN31pr")
    assert cache.get("W1AW/P") == "FN31pr"
    assert "W1AW" in cache
    assert len(cache) == 1

    # Misses are cached as None
    cache.set("N0CALL", None)
    assert cache.get("N0CALL") is None
    assert "N0CALL" in cache


def test_expiry():
    cache = GridCache(ttl=100)
    cache.set("W1AW", "FN31", ts=time.time() - 200)
    assert cache.get("W1AW") is UNKNOWN
    cache.set("W1AW", "FN31", ts=time.time() - 50)
    assert cache.get("W1AW") == "FN31"


def test_pending():
    cache = GridCache()
    assert cache.mark_pending("W1AW")
    assert cache.has_pending("w1aw")
    assert not cache.mark_pending("W1AW/P")
    cache.clear_pending("W1AW")
    assert not cache.has_pending("W1AW")


def test_reads_wait_for_writer():
    """get() and has_pending() take the same lock the lookup thread writes under."""
    cache = GridCache()
    results = {}

    def read():
        results["grid"] = cache.get("W1AW")
        results["pending"] = cache.has_pending("W1AW")

    with cache._lock:
        reader = threading.Thread(target=read)
        reader.start()
        reader.join(timeout=0.2)
        assert reader.is_alive()
        cache._entries["W1AW"] = {"grid": "FN31", "ts": time.time()}
        cache._pending.add("W1AW")

    reader.join(timeout=5)
    assert results == {"grid": "FN31", "pending": True}


def test_save_and_load():
    """Entries persist as JSON; expired ones are dropped on load."""
    print("Testing GridCache save/load:")
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "cache" / "grids.json"
        cache = GridCache(path, ttl=1000)
        cache.set("W1AW", "FN31")
        cache.set("N0CALL", None)
        cache.set("OLD1", "AA00", ts=time.time() - 5000)
        cache.save()
        assert path.exists()

        raw = json.loads(path.read_text())
        assert raw["W1AW"]["grid"] == "FN31"

        fresh = GridCache(path, ttl=1000)
        kept = fresh.load()
        print(f"  Kept {kept} of {len(raw)} entries")
        assert kept == 2
        assert fresh.get("W1AW") == "FN31"
        assert fresh.get("N0CALL") is None
        assert fresh.get("OLD1") is UNKNOWN

    print("✅ Save/load works\n")


def test_load_corrupt_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "grids.json"
        path.write_text("{not json")
        cache = GridCache(path)
        assert cache.load() == 0
        assert len(cache) == 0


def test_no_path_is_memory_only():
    cache = GridCache()
    cache.set("W1AW", "FN31")
    cache.save()
    assert cache.load() == 0


if __name__ == "__main__":
    print("=" * 60)
    print("Testing grid_cache.py")
    print("=" * 60 + "\n")

    test_normalize_call()
    test_get_set()
    test_expiry()
    test_pending()
    test_reads_wait_for_writer()
    test_save_and_load()
    test_load_corrupt_file()
    test_no_path_is_memory_only()

    print("=" * 60)
    print("✅ ALL TESTS PASSED!")
    print("=" * 60)
