from __future__ import annotations

import logging
import math
from datetime import date
from typing import Iterable, Mapping, Sequence

from regseries.domain.period import AggregationPeriod
from regseries.domain.record import AggregatedPoint, DataPoint


logger = logging.getLogger(__name__)


def period_key(day: date, period: AggregationPeriod) -> str:
    """Return the bucket label for ``day``; labels sort chronologically as strings."""
    if period is AggregationPeriod.MONTHLY:
        return f"{day.year:04d}-{day.month:02d}"
    if period is AggregationPeriod.QUARTERLY:
        return f"{day.year:04d}-Q{(day.month - 1) // 3 + 1}"
    if period is AggregationPeriod.HALF_YEARLY:
        return f"{day.year:04d}-H{1 if day.month <= 6 else 2}"
    if period is AggregationPeriod.YEARLY:
        return f"{day.year:04d}"
    raise ValueError(f"Unsupported aggregation period: {period!r}")


def round_half_up(value: float, digits: int = 2) -> float:
    scale = 10 ** digits
    scaled = value * scale
    if not math.isfinite(scaled):
        # No fractional digits left at this magnitude.
        return value
    return math.floor(scaled + 0.5) / scale


def _mean_bucket(key: str, points: Sequence[DataPoint]) -> AggregatedPoint:
    total = sum(p.value for p in points)
    return AggregatedPoint(
        period_key=key,
        representative_date=max(p.date for p in points),
        value=round_half_up(total / len(points)),
    )


def aggregate(
    series: Sequence[DataPoint],
    period: AggregationPeriod | str,
) -> list[AggregatedPoint] | list[DataPoint]:
    """Bucket ``series`` by ``period`` and average each bucket.

    Each bucket's value is the mean rounded half-up to 2 decimals, dated at the
    latest observation in the bucket. Buckets are emitted in period-key order.

    Compatibility fallback: a period that does not parse returns the input
    series unchanged (as DataPoints, not AggregatedPoints). Callers needing a
    strict answer should run ``AggregationPeriod.parse`` first.
    """
    try:
        resolved = AggregationPeriod.parse(period)
    except ValueError:
        logger.debug("Unknown aggregation period %r; returning raw series", period)
        return list(series)
    if not series:
        return []

    buckets: dict[str, list[DataPoint]] = {}
    for point in series:
        buckets.setdefault(period_key(point.date, resolved), []).append(point)
    return [_mean_bucket(key, buckets[key]) for key in sorted(buckets)]


def aggregate_all(
    series: Sequence[DataPoint],
    periods: Iterable[AggregationPeriod] = tuple(AggregationPeriod),
) -> Mapping[AggregationPeriod, tuple[AggregatedPoint, ...]]:
    """Precompute every period for a cache entry."""
    return {period: tuple(aggregate(series, period)) for period in periods}
