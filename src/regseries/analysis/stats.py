from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date
from typing import Optional, Sequence

from regseries.domain.period import SeasonalPattern
from regseries.domain.record import DataPoint


DAYS_PER_YEAR = 365.25


@dataclass(frozen=True)
class SeriesStats:
    """Summary statistics for a (filtered) series.

    Every field is None for an empty series so callers can tell "no data"
    apart from a genuine zero.
    """

    total: Optional[float] = None
    yearly_average: Optional[float] = None
    max_value: Optional[float] = None
    max_date: Optional[date] = None
    min_value: Optional[float] = None
    min_date: Optional[date] = None
    growth_pct: Optional[float] = None
    count: Optional[int] = None

    @property
    def available(self) -> bool:
        return self.count is not None

    def as_dict(self) -> dict[str, object]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class SeasonalDelta:
    occurrence_count: int
    average_delta: Optional[float]


def compute_stats(series: Sequence[DataPoint]) -> SeriesStats:
    if not series:
        return SeriesStats()

    values = [p.value for p in series]
    total = sum(values)
    first, last = series[0], series[-1]
    span_years = (last.date - first.date).days / DAYS_PER_YEAR

    max_point = max(series, key=lambda p: p.value)
    # The latest point may be a partially reported period; keep it out of the minimum.
    min_pool = series[:-1] if len(series) > 1 else series
    min_point = min(min_pool, key=lambda p: p.value)

    growth = None
    if first.value != 0:
        growth = (last.value - first.value) / first.value * 100

    return SeriesStats(
        total=total,
        yearly_average=total / max(1.0, span_years),
        max_value=max_point.value,
        max_date=max_point.date,
        min_value=min_point.value,
        min_date=min_point.date,
        growth_pct=growth,
        count=len(values),
    )


def _year_boundaries(series: Sequence[DataPoint]) -> dict[int, dict[str, float]]:
    by_year: dict[int, dict[str, float]] = {}
    for point in series:
        if point.date.month == 12:
            by_year.setdefault(point.date.year, {})["dec"] = point.value
        elif point.date.month == 1:
            by_year.setdefault(point.date.year, {})["jan"] = point.value
    return by_year


def seasonal_delta(
    series: Sequence[DataPoint],
    pattern: SeasonalPattern | str,
) -> SeasonalDelta:
    """Count Dec(Y) -> Jan(Y+1) transitions that follow ``pattern``.

    ``january-peaks`` counts years where January beats the preceding December,
    ``december-peaks`` the reverse. The average is over the matching deltas.
    """
    pattern = SeasonalPattern(pattern)
    by_year = _year_boundaries(series)
    count = 0
    delta_sum = 0.0
    for year in sorted(by_year):
        dec = by_year[year].get("dec")
        jan = by_year.get(year + 1, {}).get("jan")
        if dec is None or jan is None:
            continue
        if pattern is SeasonalPattern.JANUARY_PEAKS:
            delta = jan - dec
        else:
            delta = dec - jan
        if delta > 0:
            count += 1
            delta_sum += delta
    return SeasonalDelta(
        occurrence_count=count,
        average_delta=delta_sum / count if count else None,
    )
