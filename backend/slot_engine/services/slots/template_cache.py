# backend/slot_engine/services/slots/template_cache.py
"""
LRU cache of day templates keyed by BusinessHours.

Many businesses share the same (opening, closing, duration) triple, so the
window breakdown is computed once per triple and reused.
"""

import threading
from collections import OrderedDict

from .calculator import TimeWindow, build_day_windows
from .config import BusinessHours


class SlotTemplateCache:
    """Thread-safe bounded LRU map: BusinessHours → tuple of windows."""

    def __init__(self, max_size: int = 100):
        if max_size <= 0:
            raise ValueError(f"max_size must be positive, got {max_size}")
        self.max_size = max_size
        self._entries: OrderedDict[BusinessHours, tuple[TimeWindow, ...]] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get_template(self, hours: BusinessHours) -> tuple[TimeWindow, ...]:
        """
        Get the template for hours, computing it on a miss.

        Concurrent misses for the same key may compute twice; the first
        insert wins and both callers get equal tuples.
        """
        with self._lock:
            cached = self._entries.get(hours)
            if cached is not None:
                self._entries.move_to_end(hours)
                self.hits += 1
                return cached
            self.misses += 1

        windows = build_day_windows(hours)

        with self._lock:
            existing = self._entries.get(hours)
            if existing is not None:
                self._entries.move_to_end(hours)
                return existing

            self._entries[hours] = windows
            while len(self._entries) > self.max_size:
                self._entries.popitem(last=False)

        return windows

    def __contains__(self, hours: BusinessHours) -> bool:
        with self._lock:
            return hours in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def stats(self) -> dict:
        """Cache stats (served by GET /internal/slots/cache)."""
        with self._lock:
            return {
                "size": len(self._entries),
                "max_size": self.max_size,
                "hits": self.hits,
                "misses": self.misses,
                "keys": [hours.config_key for hours in self._entries],
            }
