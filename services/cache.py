"""
Recipe Cache

Small in-process cache with per-entry expiry, shared between request
handlers and queue workers. Entries are invalidated after writes rather
than updated in place.
"""

import threading
import time


class TTLCache:
    """Thread-safe key/value store where every entry carries its own TTL."""

    def __init__(self, clock=time.monotonic):
        self._entries = {}
        self._lock = threading.Lock()
        self._clock = clock

    def get(self, key):
        """Return the cached value, or None if missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at is not None and expires_at <= self._clock():
                del self._entries[key]
                return None
            return value

    def set(self, key, value, ttl=None):
        """Store a value. ttl is in seconds; None keeps it until deleted."""
        expires_at = self._clock() + ttl if ttl else None
        with self._lock:
            self._entries[key] = (value, expires_at)

    def delete(self, key):
        with self._lock:
            self._entries.pop(key, None)

    def delete_prefix(self, prefix):
        """Drop every key starting with prefix. Returns the number removed."""
        with self._lock:
            doomed = [key for key in self._entries if key.startswith(prefix)]
            for key in doomed:
                del self._entries[key]
        return len(doomed)

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __len__(self):
        with self._lock:
            return len(self._entries)


def recipe_cache_key(username, slug):
    return f"recipe:{username}:{slug}"


def recipe_list_cache_key(username, category=None):
    return f"recipes:{username}:{category or 'all'}"


def invalidate_recipe_caches(cache, username, slug=None):
    """Drop the single-recipe entry and every listing cached for the user."""
    if cache is None or not username:
        return
    if slug:
        cache.delete(recipe_cache_key(username, slug))
    cache.delete_prefix(f"recipes:{username}:")
