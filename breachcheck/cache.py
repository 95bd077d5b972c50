"""Thread-safe in-memory cache of boolean lookup results with expiry."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from datetime import timedelta

DEFAULT_TTL = 15 * 60.0
DEFAULT_CLEANUP_INTERVAL = 5 * 60.0


def _seconds(value: float | timedelta) -> float:
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)


@dataclass(frozen=True)
class _Entry:
    value: bool
    expires_at: float


class Cache:
    """Map of keys to booleans whose entries expire after ``ttl`` seconds.

    A background thread removes expired entries every ``cleanup_interval``
    seconds; pass ``None`` to disable it.
    """

    def __init__(
        self,
        ttl: float | timedelta = DEFAULT_TTL,
        cleanup_interval: float | timedelta | None = DEFAULT_CLEANUP_INTERVAL,
    ) -> None:
        self.ttl = _seconds(ttl)
        self._items: dict[str, _Entry] = {}
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._sweeper: threading.Thread | None = None
        if cleanup_interval is not None:
            interval = _seconds(cleanup_interval)
            if interval <= 0:
                raise ValueError("cleanup_interval must be positive")
            self._sweeper = threading.Thread(
                target=self._sweep, args=(interval,), name="cache-sweeper", daemon=True
            )
            self._sweeper.start()

    def _sweep(self, interval: float) -> None:
        while not self._stop.wait(interval):
            self.remove_expired()

    def set(self, key: str, value: bool) -> None:
        """Store ``value`` under ``key`` with a fresh expiry time."""
        entry = _Entry(bool(value), time.monotonic() + self.ttl)
        with self._lock:
            self._items[key] = entry

    def get(self, key: str) -> bool | None:
        """Return the cached value, or None if missing or expired."""
        with self._lock:
            entry = self._items.get(key)
        if entry is None or time.monotonic() > entry.expires_at:
            return None
        return entry.value

    def delete(self, key: str) -> None:
        """Remove ``key`` if present."""
        with self._lock:
            self._items.pop(key, None)

    def remove_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        now = time.monotonic()
        with self._lock:
            expired = [key for key, entry in self._items.items() if now > entry.expires_at]
            for key in expired:
                del self._items[key]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def close(self) -> None:
        """Stop the background cleanup thread."""
        self._stop.set()
        if self._sweeper is not None and self._sweeper is not threading.current_thread():
            self._sweeper.join()

    def __enter__(self) -> Cache:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()