from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Iterable, Mapping, Optional, Sequence

from regseries.domain.period import AggregationPeriod
from regseries.domain.record import AggregatedPoint, DataPoint


DEFAULT_TTL_SECONDS = 6 * 60 * 60

Clock = Callable[[], float]


@dataclass(frozen=True)
class CacheEntry:
    key: str
    series: tuple[DataPoint, ...]
    stored_at: float
    aggregations: Mapping[AggregationPeriod, tuple[AggregatedPoint, ...]]

    def age(self, now: float) -> float:
        return now - self.stored_at


class CacheStore:
    """Per-key series cache with a fixed time-to-live.

    Entries are immutable and replaced wholesale by ``put``. Stale entries are
    reported as absent by ``get`` but only dropped when overwritten or cleared.
    """

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, *, clock: Clock = time.monotonic) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        self.ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def now(self) -> float:
        return self._clock()

    def is_live(self, entry: CacheEntry) -> bool:
        return entry.age(self._clock()) < self.ttl_seconds

    def get(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            entry = self._entries.get(key)
        if entry is None or not self.is_live(entry):
            return None
        return entry

    def put(
        self,
        key: str,
        series: Sequence[DataPoint],
        aggregations: Mapping[AggregationPeriod, Iterable[AggregatedPoint]],
    ) -> CacheEntry:
        missing = [p.value for p in AggregationPeriod if p not in aggregations]
        if missing:
            raise ValueError(f"cache entry for {key!r} is missing aggregations: {', '.join(missing)}")
        entry = CacheEntry(
            key=key,
            series=tuple(series),
            stored_at=self._clock(),
            aggregations=MappingProxyType(
                {period: tuple(points) for period, points in aggregations.items()}
            ),
        )
        with self._lock:
            self._entries[key] = entry
        return entry

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def entries(self) -> dict[str, CacheEntry]:
        """Snapshot of every stored entry, stale ones included."""
        with self._lock:
            return dict(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
