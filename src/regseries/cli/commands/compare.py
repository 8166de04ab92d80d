from __future__ import annotations

import logging
import sys
from datetime import date
from typing import Callable, Optional

from regseries.cli.runner import run_job
from regseries.cli.visuals import get_visuals_backend, stats_rows
from regseries.config.settings import AppConfig
from regseries.domain.period import AggregationPeriod
from regseries.services.bootstrap import Runtime
from regseries.services.comparison import ComparisonPage, ComparisonService


logger = logging.getLogger(__name__)


def handle(
    config: AppConfig,
    *,
    start: Optional[date] = None,
    end: Optional[date] = None,
    preset: Optional[str] = None,
    period: Optional[str] = None,
    visuals: Optional[str] = None,
) -> int:
    """Fetch both countries, print their stats and the seasonal insight.

    Returns the process exit code: 0 on success, 1 when the data could not be loaded.
    """
    if period is not None:
        try:
            period = AggregationPeriod.parse(period)
        except ValueError as exc:
            logger.error("%s", exc)
            return 2
    backend = get_visuals_backend(visuals)

    async def job(runtime: Runtime, advance: Callable[[], None]) -> ComparisonPage:
        service = ComparisonService(runtime)
        page = await service.load(start=start, end=end, preset=preset, period=period)
        for _ in service.countries:
            advance()
        return page

    page = run_job(
        config=config,
        backend=backend,
        label="Fetching registrations",
        total=min(2, len(config.countries)),
        job=job,
    )

    if not page.ok:
        print(f"{page.title}: {page.error.message} ({page.error.status_code})", file=sys.stderr)
        return 1

    window = f"{page.start or 'start'} .. {page.end or 'end'}"
    print(f"{page.title} [{window}]")
    for view in page.countries:
        backend.print_stats(view.label, stats_rows(view.stats, view.seasonal))
    print("Seasonal insight:")
    for bullet in page.insights:
        print(f"  - {bullet}")
    return 0
