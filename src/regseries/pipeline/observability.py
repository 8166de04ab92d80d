from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Mapping, Optional


@dataclass(frozen=True)
class TransformEvent:
    type: str
    payload: Mapping[str, object]


# Observer receives a structured event.
Observer = Callable[[TransformEvent], None]
# Factory builds an observer for a given logger and series key (may return None if not active at current level).
ObserverFactory = Callable[[logging.Logger, str], Optional[Observer]]


class ObserverRegistry:
    def __init__(self, factories: Optional[Mapping[str, ObserverFactory]] = None) -> None:
        self._factories: dict[str, ObserverFactory] = dict(factories or {})

    def register(self, name: str, factory: ObserverFactory) -> None:
        self._factories[name] = factory

    def get(self, name: str, logger: logging.Logger, key: str) -> Optional[Observer]:
        factory = self._factories.get(name)
        if not factory:
            return None
        return factory(logger, key)


class DropCounter:
    """Observer that tallies dropped records by reason and forwards to an inner observer."""

    def __init__(self, inner: Optional[Observer] = None) -> None:
        self.counts: dict[str, int] = {}
        self._inner = inner

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def __call__(self, event: TransformEvent) -> None:
        if event.type == "validation_dropped":
            reason = str(event.payload.get("reason"))
            self.counts[reason] = self.counts.get(reason, 0) + 1
        if self._inner is not None:
            self._inner(event)


def _sanitize_observer_factory(logger: logging.Logger, key: str) -> Optional[Observer]:
    if not logger.isEnabledFor(logging.WARNING):
        return None

    warned: set[str] = set()

    def _observer(event: TransformEvent) -> None:
        if event.type != "validation_dropped":
            return
        reason = event.payload.get("reason")
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Dropped upstream record: series=%s reason=%s record=%r",
                key,
                reason,
                event.payload.get("record"),
            )
        elif isinstance(reason, str) and reason not in warned:
            # Warn once per reason; the coordinator logs the final tally.
            warned.add(reason)
            logger.warning(
                "Dropping malformed upstream records: series=%s reason=%s",
                key,
                reason,
            )

    return _observer


def default_observer_registry() -> ObserverRegistry:
    registry = ObserverRegistry()
    registry.register("sanitize", _sanitize_observer_factory)
    return registry
