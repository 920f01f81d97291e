"""Key-value stores for short-lived issuance state.

Credential offers, pre-authorized codes, access tokens and nonces are kept
behind the ``KeyValueStore`` protocol so that the in-memory store used for
demos can be replaced with a database without touching issuance code.
"""

import threading
import time
from typing import Any, Callable, Optional, Protocol


class KeyValueStore(Protocol):
    """Protocol for stores with optional per-key expiry."""

    def get(self, key: str) -> Optional[Any]:
        """Return the value for ``key``, or None if absent or expired."""

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """Store ``value`` under ``key``, expiring after ``ttl`` seconds if given."""

    def delete(self, key: str) -> bool:
        """Remove ``key``; return whether it was present."""

    def expire(self, key: str, ttl: float) -> bool:
        """Set a new expiry on an existing key; return whether it was present."""


class InMemoryStore:
    """Thread-safe dictionary store with lazy TTL expiry."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        """Initialize an empty store.

        Args:
            clock: Returns the current time in seconds; injectable for tests
        """
        self._clock = clock
        self._data: dict[str, tuple[Any, Optional[float]]] = {}
        self._lock = threading.Lock()

    def _alive(self, key: str) -> bool:
        entry = self._data.get(key)
        if entry is None:
            return False
        expires_at = entry[1]
        if expires_at is not None and expires_at <= self._clock():
            del self._data[key]
            return False
        return True

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            if not self._alive(key):
                return None
            return self._data[key][0]

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        expires_at = self._clock() + ttl if ttl is not None else None
        with self._lock:
            self._data[key] = (value, expires_at)

    def delete(self, key: str) -> bool:
        with self._lock:
            alive = self._alive(key)
            self._data.pop(key, None)
            return alive

    def expire(self, key: str, ttl: float) -> bool:
        with self._lock:
            if not self._alive(key):
                return False
            value = self._data[key][0]
            self._data[key] = (value, self._clock() + ttl)
            return True

    def pop(self, key: str) -> Optional[Any]:
        """Atomically read and remove a value, for one-time codes."""
        with self._lock:
            if not self._alive(key):
                return None
            return self._data.pop(key)[0]

    def purge_expired(self) -> int:
        """Drop all expired entries and return how many were removed."""
        with self._lock:
            expired = [key for key in list(self._data) if not self._alive(key)]
            return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for key in list(self._data) if self._alive(key))
