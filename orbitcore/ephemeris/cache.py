import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Hashable, Optional

# 30 minutes
DEFAULT_TTL_S = 30 * 60.0
DEFAULT_MAX_ENTRIES = 256


@dataclass(frozen=True)
class CacheEntry:
    series: tuple
    fetched_at: float


class EphemerisCache:
    """
    Time-to-live cache of ephemeris series.

    Entries younger than ``ttl`` seconds are served; older ones are reported
    as misses and replaced on the next put. The map holds at most
    ``max_entries`` keys, dropping the least recently stored one first.
    Concurrent puts for the same key are last-writer-wins.
    """

    def __init__(self, ttl: float = DEFAULT_TTL_S, max_entries: int = DEFAULT_MAX_ENTRIES,
                 clock: Callable[[], float] = time.monotonic):
        """
        Args:
            ttl (float): Entry lifetime [s].
            max_entries (int): Maximum number of stored keys.
            clock (callable): Returns the current time in seconds.
        """
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        if max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[Hashable, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Optional[tuple]:
        """Returns the cached series for key, or None when absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.fetched_at >= self.ttl:
            return None
        return entry.series

    def put(self, key: Hashable, series: tuple) -> None:
        """Stores series under key, replacing any previous entry."""
        entry = CacheEntry(series=tuple(series), fetched_at=self._clock())
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = entry
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key) is not None
