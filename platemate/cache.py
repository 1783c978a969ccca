import time
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Callable

NOT_FOUND = "not found"


class ExpiringCache:
    """In-memory map with lazy expiry: stale entries are only dropped when read or swept.

    One instance is shared by every request thread of a worker, so all access
    goes through ``_lock``.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.time):
        self.ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._entries: dict[str, tuple[Any, float]] = {}
        self._lock = Lock()

    @staticmethod
    def normalize_key(key: str) -> str:
        return (key or "").strip().lower()

    def _is_expired(self, cached_at: float, now: float) -> bool:
        return now - cached_at > self.ttl_seconds

    def get(self, key: str, default: Any = None) -> Any:
        normalized = self.normalize_key(key)
        with self._lock:
            entry = self._entries.get(normalized)
            if entry is None:
                return default

            value, cached_at = entry
            if self._is_expired(cached_at, self._clock()):
                self._entries.pop(normalized, None)
                return default
            return value

    def set(self, key: str, value: Any) -> None:
        normalized = self.normalize_key(key)
        with self._lock:
            self._entries[normalized] = (value, self._clock())

    def __contains__(self, key: str) -> bool:
        marker = object()
        return self.get(key, marker) is not marker

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self) -> int:
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
            return removed

    def clear_expired(self) -> int:
        with self._lock:
            now = self._clock()
            expired = [key for key, (_, cached_at) in self._entries.items() if self._is_expired(cached_at, now)]
            for key in expired:
                del self._entries[key]
            return len(expired)

    def stats(self) -> dict:
        with self._lock:
            snapshot = list(self._entries.items())
        return {
            "total_entries": len(snapshot),
            "ttl_seconds": self.ttl_seconds,
            "entries": [
                {
                    "key": key,
                    "has_data": value != NOT_FOUND,
                    "cached_at": datetime.fromtimestamp(cached_at, tz=timezone.utc).isoformat(),
                }
                for key, (value, cached_at) in snapshot
            ],
        }
