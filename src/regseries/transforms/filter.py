from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional, Sequence

from regseries.domain.record import DataPoint, Series


def _as_datetime(value: date | datetime | str | None, *, end_of_day: bool = False) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        value = datetime.fromisoformat(text) if "T" in text else date.fromisoformat(text)
    if isinstance(value, datetime):
        dt = value.replace(tzinfo=None)
        day = dt.date()
    else:
        dt = datetime.combine(value, time.min)
        day = value
    if end_of_day:
        # ``end`` covers the whole calendar day it names.
        return datetime.combine(day, time.max)
    return dt


def filter_by_range(
    series: Iterable[DataPoint],
    start: date | datetime | str | None,
    end: date | datetime | str | None,
) -> Series:
    """Return points dated within ``[start, end-of-day(end)]``.

    Either bound may be None to leave that side open.
    """
    lo = _as_datetime(start)
    hi = _as_datetime(end, end_of_day=True)
    out: Series = []
    for point in series:
        moment = datetime.combine(point.date, time.min)
        if lo is not None and moment < lo:
            continue
        if hi is not None and moment > hi:
            continue
        out.append(point)
    return out


PRESETS = ("1month", "6months", "1year", "3years", "5years", "10years", "all")


def _shift_months(day: date, months: int) -> date:
    index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(index, 12)
    month += 1
    # Clamp to the last valid day of the target month.
    next_month = date(year + (month == 12), month % 12 + 1, 1)
    last_day = (next_month - timedelta(days=1)).day
    return date(year, month, min(day.day, last_day))


def preset_range(
    series_list: Sequence[Sequence[DataPoint]],
    preset: str,
) -> tuple[Optional[date], Optional[date]]:
    """Resolve a quick-range preset against the dates of every given series.

    The window ends at the latest date seen and starts ``preset`` earlier,
    clamped to the earliest date. Unknown presets behave like ``all``.
    """
    dates = [p.date for series in series_list for p in series]
    if not dates:
        return None, None
    lo, hi = min(dates), max(dates)
    months = {
        "1month": 1,
        "6months": 6,
        "1year": 12,
        "3years": 36,
        "5years": 60,
        "10years": 120,
    }.get((preset or "all").strip().lower())
    if months is None:
        return lo, hi
    start = _shift_months(hi, months)
    return max(start, lo), hi
