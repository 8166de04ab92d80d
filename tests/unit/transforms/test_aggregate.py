from __future__ import annotations

from datetime import date

import pytest

from regseries.domain.period import AggregationPeriod
from regseries.domain.record import AggregatedPoint
from regseries.transforms.aggregate import aggregate, aggregate_all, period_key, round_half_up
from tests.unit.helpers import make_series


def test_monthly_mean_uses_latest_date_in_bucket():
    series = make_series(("2020-01-05", 10), ("2020-01-20", 20))

    out = aggregate(series, AggregationPeriod.MONTHLY)

    assert out == [
        AggregatedPoint(period_key="2020-01", representative_date=date(2020, 1, 20), value=15.0)
    ]


@pytest.mark.parametrize(
    "period, expected",
    [
        (AggregationPeriod.MONTHLY, "2021-11"),
        (AggregationPeriod.QUARTERLY, "2021-Q4"),
        (AggregationPeriod.HALF_YEARLY, "2021-H2"),
        (AggregationPeriod.YEARLY, "2021"),
    ],
)
def test_period_key_formats(period, expected):
    assert period_key(date(2021, 11, 3), period) == expected


def test_period_key_boundaries():
    assert period_key(date(2021, 3, 31), AggregationPeriod.QUARTERLY) == "2021-Q1"
    assert period_key(date(2021, 4, 1), AggregationPeriod.QUARTERLY) == "2021-Q2"
    assert period_key(date(2021, 6, 30), AggregationPeriod.HALF_YEARLY) == "2021-H1"
    assert period_key(date(2021, 7, 1), AggregationPeriod.HALF_YEARLY) == "2021-H2"


def test_quarterly_across_year_boundary_sorted_by_key():
    series = make_series(
        ("2020-11-30", 10),
        ("2020-12-31", 20),
        ("2021-01-31", 30),
        ("2021-02-28", 40),
        ("2021-04-30", 50),
    )

    out = aggregate(series, "quarterly")

    assert [(p.period_key, p.value) for p in out] == [
        ("2020-Q4", 15.0),
        ("2021-Q1", 35.0),
        ("2021-Q2", 50.0),
    ]
    assert out[0].representative_date == date(2020, 12, 31)


def test_mean_rounds_half_up_to_two_decimals():
    assert round_half_up(0.125) == 0.13
    assert round_half_up(2.5, 0) == 3.0
    series = make_series(("2020-01-01", 1), ("2020-01-02", 1), ("2020-01-03", 2))
    out = aggregate(series, AggregationPeriod.MONTHLY)
    assert out[0].value == 1.33


def test_huge_finite_values_aggregate_without_overflow():
    assert round_half_up(1e307) == 1e307
    assert round_half_up(-1e307, 0) == -1e307
    out = aggregate(make_series(("2020-01-05", 1e307)), AggregationPeriod.MONTHLY)
    assert out[0].value == 1e307


@pytest.mark.parametrize("period", list(AggregationPeriod))
def test_aggregation_preserves_totals_and_orders_keys(period):
    series = make_series(
        ("2019-12-15", 3),
        ("2020-01-10", 7),
        ("2020-01-25", 11),
        ("2020-05-01", 13),
        ("2020-08-09", 17),
        ("2021-02-02", 19),
    )

    out = aggregate(series, period)

    sizes = {}
    for p in series:
        key = period_key(p.date, period)
        sizes[key] = sizes.get(key, 0) + 1
    reconstructed = sum(point.value * sizes[point.period_key] for point in out)
    assert reconstructed == pytest.approx(sum(p.value for p in series), abs=0.01 * len(series))
    assert len(out) <= len(series)
    keys = [p.period_key for p in out]
    assert keys == sorted(set(keys))


def test_empty_series_aggregates_to_empty():
    assert aggregate([], AggregationPeriod.YEARLY) == []


def test_unknown_period_falls_back_to_raw_series():
    series = make_series(("2020-01-05", 10), ("2020-02-05", 20))

    out = aggregate(series, "fortnightly")

    assert out == series


def test_aggregate_all_covers_every_period():
    series = make_series(("2020-01-05", 10))
    out = aggregate_all(series)
    assert set(out) == set(AggregationPeriod)
    assert all(isinstance(points, tuple) for points in out.values())
