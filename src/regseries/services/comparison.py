from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Sequence

from regseries.analysis.insights import seasonal_insights
from regseries.analysis.stats import SeasonalDelta, SeriesStats, compute_stats, seasonal_delta
from regseries.domain.period import AggregationPeriod, SeasonalPattern
from regseries.domain.record import AggregatedPoint, DataPoint, Series
from regseries.errors import FetchError, FetchExhausted, RateLimited, UpstreamFailure
from regseries.services.bootstrap import Runtime
from regseries.transforms.aggregate import aggregate
from regseries.transforms.filter import filter_by_range, preset_range


logger = logging.getLogger(__name__)

RATE_LIMIT_STATUSES = frozenset({409, 429})


@dataclass(frozen=True)
class FailureView:
    message: str
    status_code: int


def describe_failure(exc: BaseException) -> FailureView:
    """Map a fetch failure to a user-facing message and an HTTP-style status."""
    if isinstance(exc, (RateLimited, FetchExhausted)):
        return FailureView("API rate limit exceeded. Please try again in a moment.", 429)
    if isinstance(exc, FetchError) and exc.status in RATE_LIMIT_STATUSES:
        return FailureView("API rate limit exceeded. Please try again in a moment.", 429)
    if isinstance(exc, UpstreamFailure) and exc.reason == "timeout":
        return FailureView("Request timeout. Please try again.", 408)
    return FailureView("Failed to fetch chart data", 500)


@dataclass
class CountryView:
    key: str
    label: str
    pattern: SeasonalPattern
    series: Series
    points: Sequence[DataPoint | AggregatedPoint]
    stats: SeriesStats
    seasonal: SeasonalDelta


@dataclass
class ComparisonPage:
    title: str
    countries: list[CountryView] = field(default_factory=list)
    start: Optional[date] = None
    end: Optional[date] = None
    insights: list[str] = field(default_factory=list)
    error: Optional[FailureView] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ComparisonService:
    """Side-by-side view of the first two configured countries."""

    def __init__(self, runtime: Runtime, countries: Optional[Sequence[str]] = None) -> None:
        self.runtime = runtime
        keys = list(countries) if countries else list(runtime.config.countries)[:2]
        unknown = [k for k in keys if k not in runtime.config.countries]
        if unknown:
            raise ValueError(f"unknown countries: {', '.join(unknown)}")
        self.countries = keys

    async def load(
        self,
        *,
        start: date | str | None = None,
        end: date | str | None = None,
        preset: Optional[str] = None,
        period: AggregationPeriod | str | None = None,
    ) -> ComparisonPage:
        config = self.runtime.config
        page = ComparisonPage(title=config.title)
        coordinator = self.runtime.coordinator

        results = await asyncio.gather(
            *(coordinator.fetch(key) for key in self.countries),
            return_exceptions=True,
        )
        for key, result in zip(self.countries, results):
            if isinstance(result, FetchError):
                page.error = describe_failure(result)
                if config.environment == "development":
                    logger.error("Chart data fetch error for %s: %s", key, result)
                else:
                    logger.warning("Chart data fetch failed for %s", key)
                return page
            if isinstance(result, BaseException):
                raise result

        resolved_period = AggregationPeriod.parse(period) if period is not None else None
        if preset:
            start, end = preset_range(results, preset)
        page.start = start if isinstance(start, date) or start is None else date.fromisoformat(start)
        page.end = end if isinstance(end, date) or end is None else date.fromisoformat(end)

        for key, series in zip(self.countries, results):
            country = config.countries[key]
            filtered = filter_by_range(series, start, end)
            points = aggregate(filtered, resolved_period) if resolved_period is not None else filtered
            page.countries.append(
                CountryView(
                    key=key,
                    label=config.label_for(key),
                    pattern=country.seasonal_pattern,
                    series=filtered,
                    points=points,
                    stats=compute_stats(filtered),
                    seasonal=seasonal_delta(filtered, country.seasonal_pattern),
                )
            )

        if page.countries and all(view.series for view in page.countries):
            page.insights = seasonal_insights(
                {view.label: (view.pattern, view.seasonal) for view in page.countries}
            )
        else:
            page.insights = seasonal_insights({})
        return page
