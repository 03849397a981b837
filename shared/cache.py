from __future__ import annotations

import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple


class TTLCache:
    """Thread-safe expiring cache for upstream lookups (agent lists, voices).

    Lives in process memory only; every worker keeps its own entries.
    """

    def __init__(
        self,
        ttl_seconds: int = 30,
        max_items: int = 1024,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl = max(0, int(ttl_seconds))
        self.max_items = max_items
        self._clock = clock
        # key -> (expires_at, value)
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self.ttl > 0

    def get(self, key: str) -> Optional[Any]:
        if not self.enabled:
            return None
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() > expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any) -> None:
        if not self.enabled:
            return
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_items:
                self._evict_one()
            self._entries[key] = (self._clock() + self.ttl, value)

    def _evict_one(self) -> None:
        soonest = min(self._entries, key=lambda k: self._entries[k][0])
        del self._entries[soonest]

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
