from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from regseries.config.settings import AppConfig
from regseries.pipeline.cache import CacheStore
from regseries.pipeline.coordinator import RequestCoordinator
from regseries.sources.factory import build_fetcher
from regseries.sources.transports import Transport


logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    """Process-scoped state: build once at startup, hand to every request handler.

    Nothing here outlives the process; ``coordinator.clear_cache()`` is the only
    reset short of a restart.
    """

    config: AppConfig
    transport: Transport
    coordinator: RequestCoordinator

    async def aclose(self) -> None:
        await self.transport.aclose()


def build_runtime(
    config: AppConfig,
    *,
    transport: Optional[Transport] = None,
    clock: Optional[Callable[[], float]] = None,
    **fetcher_kwargs: Any,
) -> Runtime:
    fetcher = build_fetcher(config, transport=transport, **fetcher_kwargs)
    store_kwargs = {"clock": clock} if clock is not None else {}
    store = CacheStore(config.cache.ttl_seconds, **store_kwargs)
    coordinator = RequestCoordinator(
        fetcher,
        store,
        dedup_window_seconds=config.cache.dedup_window_seconds,
    )
    logger.debug(
        "Runtime ready: environment=%s countries=%s ttl=%ss dedup=%ss",
        config.environment,
        ", ".join(config.countries),
        config.cache.ttl_seconds,
        config.cache.dedup_window_seconds,
    )
    return Runtime(config=config, transport=fetcher.transport, coordinator=coordinator)
