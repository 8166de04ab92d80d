from __future__ import annotations

from datetime import date

from regseries.pipeline.observability import DropCounter
from regseries.sources.decoders import RecordsDecoder
from regseries.transforms.sanitize import sanitize, to_raw, trim_trailing_zeros
from tests.unit.helpers import make_series, raw


def test_sanitize_drops_malformed_records():
    records = [
        {"DateTime": "2020-01-31T00:00:00", "Value": 10},
        {"DateTime": None, "Value": 5},
        {"Value": 5},
        {"DateTime": "2020-02-29T00:00:00"},
        {"DateTime": "2020-03-31T00:00:00", "Value": None},
        {"DateTime": "2020-04-30T00:00:00", "Value": "n/a"},
        {"DateTime": "2020-05-31T00:00:00", "Value": float("nan")},
        {"DateTime": "2020-06-30T00:00:00", "Value": float("inf")},
        {"DateTime": "not-a-date", "Value": 3},
        {"DateTime": "2020-07-31T00:00:00", "Value": True},
        "garbage",
        {"DateTime": "2020-08-31T00:00:00", "Value": "12.5"},
    ]

    series = sanitize(records)

    assert [(p.date, p.value) for p in series] == [
        (date(2020, 1, 31), 10.0),
        (date(2020, 8, 31), 12.5),
    ]


def test_sanitize_strips_time_component_and_sorts():
    records = [
        {"DateTime": "2021-03-31T00:00:00", "Value": 3},
        {"DateTime": "2021-01-31", "Value": 1},
        {"DateTime": "2021-02-28T00:00:00Z", "Value": 2},
    ]

    series = sanitize(records)

    assert [p.date for p in series] == [date(2021, 1, 31), date(2021, 2, 28), date(2021, 3, 31)]
    assert [p.value for p in series] == [1.0, 2.0, 3.0]


def test_sanitize_trims_every_trailing_zero_but_keeps_interior_zeros():
    records = raw(
        ("2020-01-31", 5),
        ("2020-02-29", 0),
        ("2020-03-31", 7),
        ("2020-04-30", 0),
        ("2020-05-31", 0),
        ("2020-06-30", 0),
    )

    series = sanitize(records)

    assert [p.value for p in series] == [5.0, 0.0, 7.0]


def test_sanitize_trailing_zero_check_runs_after_sorting():
    # Out-of-order feed: the zero is not last in the payload but is the latest date.
    records = raw(("2020-03-31", 0), ("2020-01-31", 4), ("2020-02-29", 6))

    series = sanitize(records)

    assert [p.value for p in series] == [4.0, 6.0]


def test_sanitize_all_zero_or_empty_inputs_give_empty_series():
    assert sanitize(None) == []
    assert sanitize([]) == []
    assert sanitize(raw(("2020-01-31", 0), ("2020-02-29", 0))) == []


def test_sanitize_is_idempotent():
    records = raw(
        ("2020-02-29", 9),
        ("2020-01-31", 4),
        ("2020-03-31", float("nan")),
        ("2020-04-30", 0),
    )

    once = sanitize(records)
    twice = sanitize(to_raw(once))

    assert once == twice


def test_sanitize_reports_drops_to_observer():
    counter = DropCounter()
    records = [
        {"DateTime": "2020-01-31", "Value": 1},
        {"DateTime": "", "Value": 1},
        {"DateTime": "2020-02-29", "Value": "x"},
        {"DateTime": "2020-03-31", "Value": None},
    ]

    sanitize(records, observer=counter)

    assert counter.counts == {"missing_timestamp": 1, "bad_value": 2}
    assert counter.total == 3


def test_trim_trailing_zeros_on_clean_series():
    series = make_series(("2020-01-31", 1), ("2020-02-29", 0))
    assert trim_trailing_zeros(series) == series[:1]


def test_sanitize_drops_values_too_large_for_a_float():
    body = '[{"DateTime": "2020-01-31T00:00:00", "Value": 1' + "0" * 400 + "}, " \
        '{"DateTime": "2020-02-29T00:00:00", "Value": 7}]'
    counter = DropCounter()

    series = sanitize(RecordsDecoder().decode(body), observer=counter)

    assert [(p.date, p.value) for p in series] == [(date(2020, 2, 29), 7.0)]
    assert counter.counts == {"bad_value": 1}
