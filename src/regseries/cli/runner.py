from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from regseries.cli.visuals import VisualsBackend
from regseries.config.settings import AppConfig
from regseries.services.bootstrap import Runtime, build_runtime


logger = logging.getLogger(__name__)

T = TypeVar("T")
Job = Callable[[Runtime, Callable[[], None]], Awaitable[T]]


def run_job(
    *,
    config: AppConfig,
    backend: VisualsBackend,
    label: str,
    total: int,
    job: Job[T],
) -> T:
    """Build a runtime, run ``job`` on a fresh event loop and close the transport.

    The backend wraps the whole run so progress and logs render consistently.
    """

    async def _main(advance: Callable[[], None]) -> T:
        runtime = build_runtime(config)
        try:
            return await job(runtime, advance)
        finally:
            await runtime.aclose()

    logger.debug("Job: '%s'", label)
    return backend.run(label, total, lambda advance: asyncio.run(_main(advance)))
