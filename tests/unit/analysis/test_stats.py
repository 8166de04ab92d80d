from __future__ import annotations

from datetime import date

import pytest

from regseries.analysis.insights import seasonal_insights
from regseries.analysis.stats import SeasonalDelta, SeriesStats, compute_stats, seasonal_delta
from regseries.cli.visuals import format_number
from regseries.domain.period import SeasonalPattern
from tests.unit.helpers import make_series


def test_empty_series_reports_everything_unavailable():
    stats = compute_stats([])

    assert stats == SeriesStats()
    assert not stats.available
    assert all(value is None for value in stats.as_dict().values())


def test_stats_over_a_multi_year_series():
    series = make_series(
        ("2020-01-01", 100),
        ("2020-07-01", 300),
        ("2021-01-01", 50),
        ("2022-01-01", 200),
        ("2022-01-02", 10),
    )

    stats = compute_stats(series)

    assert stats.total == 660
    span_years = (date(2022, 1, 2) - date(2020, 1, 1)).days / 365.25
    assert stats.yearly_average == pytest.approx(660 / span_years)
    assert (stats.max_value, stats.max_date) == (300, date(2020, 7, 1))
    # The trailing 10 is excluded from the minimum.
    assert (stats.min_value, stats.min_date) == (50, date(2021, 1, 1))
    assert stats.growth_pct == pytest.approx(-90.0)
    assert stats.count == 5
    assert stats.available


def test_short_span_divides_by_at_least_one_year():
    stats = compute_stats(make_series(("2020-01-01", 10), ("2020-03-01", 20)))
    assert stats.yearly_average == 30


def test_single_point_uses_itself_for_min():
    stats = compute_stats(make_series(("2020-01-01", 42)))
    assert stats.min_value == 42
    assert stats.max_value == 42
    assert stats.growth_pct == 0


def test_growth_is_undefined_when_first_value_is_zero():
    stats = compute_stats(make_series(("2020-01-01", 0), ("2020-02-01", 5)))
    assert stats.growth_pct is None
    assert stats.total == 5


def test_max_ties_report_first_occurrence():
    stats = compute_stats(make_series(("2020-01-01", 5), ("2020-02-01", 5), ("2020-03-01", 1)))
    assert stats.max_date == date(2020, 1, 1)


def test_seasonal_delta_december_peaks_example():
    series = make_series(("2020-01-01", 100), ("2020-12-01", 150), ("2021-01-01", 120))

    delta = seasonal_delta(series, "december-peaks")

    assert delta == SeasonalDelta(occurrence_count=1, average_delta=30)


def test_seasonal_delta_january_peaks_averages_matching_years_only():
    series = make_series(
        ("2019-12-01", 100),
        ("2020-01-01", 140),  # +40
        ("2020-12-01", 200),
        ("2021-01-01", 150),  # -50, not counted
        ("2021-12-01", 80),
        ("2022-01-01", 100),  # +20
    )

    delta = seasonal_delta(series, SeasonalPattern.JANUARY_PEAKS)

    assert delta.occurrence_count == 2
    assert delta.average_delta == pytest.approx(30)


def test_seasonal_delta_skips_years_without_both_months():
    series = make_series(("2019-12-01", 100), ("2021-01-01", 50), ("2021-06-01", 10))

    delta = seasonal_delta(series, SeasonalPattern.DECEMBER_PEAKS)

    assert delta == SeasonalDelta(occurrence_count=0, average_delta=None)


def test_seasonal_delta_rejects_unknown_pattern():
    with pytest.raises(ValueError):
        seasonal_delta([], "june-peaks")


def test_insights_describe_both_patterns():
    bullets = seasonal_insights(
        {
            "Thailand": (SeasonalPattern.JANUARY_PEAKS, SeasonalDelta(2, 1234.4)),
            "Mexico": (SeasonalPattern.DECEMBER_PEAKS, SeasonalDelta(0, None)),
        }
    )

    assert bullets[0] == "In Thailand, January often comes in higher than December."
    assert "1,234" in bullets[1]
    assert bullets[-1] == "Mexico doesn't show a steady December peak in this dataset."
    assert len(bullets) <= 5


def test_insights_without_data():
    assert seasonal_insights({}) == ["Not enough data to derive seasonal insights."]


def test_insight_averages_round_half_up():
    bullets = seasonal_insights(
        {
            "Thailand": (SeasonalPattern.JANUARY_PEAKS, SeasonalDelta(2, 2.5)),
            "Mexico": (SeasonalPattern.DECEMBER_PEAKS, SeasonalDelta(1, 1234.5)),
        }
    )

    assert "roughly 3 more registrations" in bullets[1]
    assert "roughly 1,235 registrations ahead" in bullets[3]


def test_displayed_whole_numbers_round_half_up():
    assert format_number(2.5) == "3"
    assert format_number(1234.5) == "1,235"
    assert format_number(None) == "-"
