"""
Short-lived in-memory cache for record store reads
"""

import time
from typing import Any, Callable, Dict, Optional, Tuple


class TTLCache:
    """Key to (value, timestamp) map; entries older than ``ttl`` seconds are dropped on read."""

    def __init__(self, ttl: float = 300.0, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        value, stored_at = entry
        if self.clock() - stored_at > self.ttl:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = (value, self.clock())

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def delete_prefix(self, prefix: str) -> None:
        for key in [k for k in self._entries if k.startswith(prefix)]:
            del self._entries[key]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def event_key(event_id: str) -> str:
    return f"event:{event_id}"


def organizer_events_key(organizer_id: str) -> str:
    return f"events:organizer:{organizer_id}"


def event_rsvps_key(event_id: str) -> str:
    return f"rsvps:event:{event_id}"
