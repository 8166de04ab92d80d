from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol, runtime_checkable

from regseries.domain.period import AggregationPeriod
from regseries.domain.record import AggregatedPoint, Series
from regseries.pipeline.cache import CacheStore
from regseries.pipeline.observability import (
    DropCounter,
    ObserverRegistry,
    default_observer_registry,
)
from regseries.transforms.aggregate import aggregate_all
from regseries.transforms.sanitize import sanitize


logger = logging.getLogger(__name__)

DEFAULT_DEDUP_WINDOW_SECONDS = 30.0


@runtime_checkable
class RawFetcher(Protocol):
    async def fetch(self, country: str) -> list[Any]:
        ...


@dataclass(frozen=True)
class PendingFetch:
    key: str
    task: "asyncio.Task[Series]"
    started_at: float


def _consume_exception(task: "asyncio.Task[Series]") -> None:
    # Every waiter may have gone away; retrieve the result so asyncio does not
    # report it as never retrieved.
    if not task.cancelled():
        task.exception()


class RequestCoordinator:
    """Cache-miss path shared by every caller in the process.

    - a live cache entry is returned without touching the network
    - concurrent callers for the same key join one in-flight fetch, as long as
      that fetch started less than ``dedup_window_seconds`` ago
    - a completed fetch is sanitized, aggregated for every period and stored
      before its waiters resume; a failed one is raised to every waiter

    Lookup-then-insert on the pending table and store-then-release on
    completion run under one lock, which is never held across an await.
    Callers await the shared task through ``asyncio.shield`` so abandoning a
    call does not cancel the fetch other callers are waiting on.
    """

    def __init__(
        self,
        fetcher: RawFetcher,
        store: CacheStore,
        *,
        dedup_window_seconds: float = DEFAULT_DEDUP_WINDOW_SECONDS,
        observers: Optional[ObserverRegistry] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.fetcher = fetcher
        self.store = store
        self.dedup_window_seconds = float(dedup_window_seconds)
        self.observers = observers or default_observer_registry()
        self._clock = clock or store.now
        self._pending: dict[str, PendingFetch] = {}
        self._lock = threading.Lock()

    async def fetch(self, key: str) -> Series:
        loop = asyncio.get_running_loop()
        with self._lock:
            entry = self.store.get(key)
            if entry is not None:
                logger.debug("Cache hit: series=%s points=%d", key, len(entry.series))
                return list(entry.series)
            pending = self._pending.get(key)
            now = self._clock()
            if pending is not None and self._joinable(pending, now, loop):
                logger.debug(
                    "Joining in-flight fetch: series=%s age=%.1fs",
                    key,
                    now - pending.started_at,
                )
                task = pending.task
            else:
                if pending is not None:
                    logger.info(
                        "Pending fetch for %s is %.1fs old; starting a new one",
                        key,
                        now - pending.started_at,
                    )
                task = loop.create_task(self._load(key), name=f"regseries-fetch-{key}")
                task.add_done_callback(_consume_exception)
                self._pending[key] = PendingFetch(key=key, task=task, started_at=now)
        return list(await asyncio.shield(task))

    def _joinable(self, pending: PendingFetch, now: float, loop: asyncio.AbstractEventLoop) -> bool:
        if pending.task.done() or pending.task.get_loop() is not loop:
            return False
        return now - pending.started_at < self.dedup_window_seconds

    def _release(self, key: str) -> None:
        # Only drop our own record; a newer fetch may have replaced it.
        current = self._pending.get(key)
        if current is not None and current.task is asyncio.current_task():
            del self._pending[key]

    async def _load(self, key: str) -> Series:
        try:
            raw = await self.fetcher.fetch(key)
            dropped = DropCounter(self.observers.get("sanitize", logger, key))
            series = sanitize(raw, observer=dropped)
            aggregations = aggregate_all(series)
        except BaseException:
            with self._lock:
                self._release(key)
            raise
        with self._lock:
            self.store.put(key, series, aggregations)
            self._release(key)
        logger.info(
            "Fetched %s: %d points (%d records dropped)",
            key,
            len(series),
            dropped.total,
        )
        return series

    def get_aggregated(
        self,
        key: str,
        period: AggregationPeriod | str,
    ) -> Optional[list[AggregatedPoint]]:
        """Cache-only peek at a precomputed aggregation; never fetches.

        Returns None when ``key`` is not cached (or stale). Raises ValueError
        for an unknown period.
        """
        resolved = AggregationPeriod.parse(period)
        entry = self.store.get(key)
        if entry is None:
            return None
        return list(entry.aggregations[resolved])

    def clear_cache(self) -> None:
        """Drop every cached entry and forget in-flight fetches."""
        with self._lock:
            self.store.clear()
            self._pending.clear()

    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)
