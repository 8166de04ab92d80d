from __future__ import annotations

import logging
import sys
from datetime import date
from typing import Callable, NoReturn, Optional

from regseries.analysis.stats import compute_stats, seasonal_delta
from regseries.cli.runner import run_job
from regseries.cli.visuals import get_visuals_backend, stats_rows
from regseries.config.settings import AppConfig
from regseries.domain.period import AggregationPeriod
from regseries.domain.record import Series
from regseries.errors import FetchError
from regseries.io.formatters import render
from regseries.services.bootstrap import Runtime
from regseries.services.comparison import describe_failure
from regseries.transforms.aggregate import aggregate
from regseries.transforms.filter import filter_by_range, preset_range


logger = logging.getLogger(__name__)


def _error_exit(message: str, code: int = 1) -> NoReturn:
    logger.error(message)
    raise SystemExit(code)


def _load_series(config: AppConfig, country: str, visuals: Optional[str]) -> Series:
    if country not in config.countries:
        _error_exit(
            f"unknown country {country!r}; configured: {', '.join(config.countries)}",
            code=2,
        )

    async def job(runtime: Runtime, advance: Callable[[], None]) -> Series:
        series = await runtime.coordinator.fetch(country)
        advance()
        return series

    try:
        return run_job(
            config=config,
            backend=get_visuals_backend(visuals),
            label=f"Fetching {config.label_for(country)}",
            total=1,
            job=job,
        )
    except FetchError as exc:
        view = describe_failure(exc)
        logger.debug("fetch failed: %s", exc)
        _error_exit(f"{view.message} ({view.status_code})")


def _window(
    series: Series,
    *,
    start: Optional[date],
    end: Optional[date],
    preset: Optional[str],
) -> Series:
    if preset:
        start, end = preset_range([series], preset)
    return filter_by_range(series, start, end)


def handle_fetch(
    config: AppConfig,
    country: str,
    *,
    period: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    preset: Optional[str] = None,
    fmt: str = "print",
    visuals: Optional[str] = None,
) -> None:
    resolved = None
    if period is not None:
        try:
            resolved = AggregationPeriod.parse(period)
        except ValueError as exc:
            _error_exit(str(exc), code=2)
    series = _window(
        _load_series(config, country, visuals),
        start=start,
        end=end,
        preset=preset,
    )
    points = aggregate(series, resolved) if resolved is not None else series
    sys.stdout.write(render(points, fmt))


def handle_stats(
    config: AppConfig,
    country: str,
    *,
    start: Optional[date] = None,
    end: Optional[date] = None,
    preset: Optional[str] = None,
    visuals: Optional[str] = None,
) -> None:
    series = _window(
        _load_series(config, country, visuals),
        start=start,
        end=end,
        preset=preset,
    )
    pattern = config.countries[country].seasonal_pattern
    backend = get_visuals_backend(visuals)
    backend.print_stats(
        config.label_for(country),
        stats_rows(compute_stats(series), seasonal_delta(series, pattern)),
    )
