from __future__ import annotations

import math
from datetime import date
from typing import Any, Iterable, Iterator, Mapping, Optional

from regseries.domain.record import DataPoint, Series
from regseries.pipeline.observability import Observer, TransformEvent


DATE_FIELD = "DateTime"
VALUE_FIELD = "Value"


def _parse_date(raw: Any) -> Optional[date]:
    if raw is None:
        return None
    text = str(raw).strip()
    if not text:
        return None
    # Keep the calendar date only; upstream stamps midnight ("T00:00:00").
    head = text.split("T", 1)[0].split(" ", 1)[0]
    try:
        return date.fromisoformat(head)
    except ValueError:
        return None


def _parse_value(raw: Any) -> Optional[float]:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return None
    try:
        value = float(raw)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(value):
        return None
    return value


def _clean(records: Iterable[Any], observer: Optional[Observer]) -> Iterator[DataPoint]:
    def drop(reason: str, record: Any) -> None:
        if observer is not None:
            observer(TransformEvent("validation_dropped", {"reason": reason, "record": record}))

    for record in records:
        if not isinstance(record, Mapping):
            drop("not_a_mapping", record)
            continue
        raw_date = record.get(DATE_FIELD)
        if raw_date is None or not str(raw_date).strip():
            drop("missing_timestamp", record)
            continue
        day = _parse_date(raw_date)
        if day is None:
            drop("bad_timestamp", record)
            continue
        value = _parse_value(record.get(VALUE_FIELD))
        if value is None:
            drop("bad_value", record)
            continue
        yield DataPoint(date=day, value=value)


def trim_trailing_zeros(series: Series) -> Series:
    """Drop trailing zero-valued points (not-yet-reported placeholders)."""
    end = len(series)
    while end > 0 and series[end - 1].value == 0:
        end -= 1
    return series[:end]


def sanitize(records: Iterable[Any] | None, *, observer: Optional[Observer] = None) -> Series:
    """Turn a raw upstream payload into an ordered series.

    - records without a usable ``DateTime`` or a finite numeric ``Value`` are dropped
    - timestamps are reduced to calendar dates
    - output is sorted by date (stable, so same-day records keep upstream order)
    - trailing zero values are trimmed repeatedly

    Never raises on bad data; drops are reported to ``observer`` when given.
    Idempotent on its own output once re-encoded to the upstream shape.
    """
    if not records:
        return []
    cleaned = sorted(_clean(records, observer), key=lambda p: p.date)
    return trim_trailing_zeros(cleaned)


def to_raw(series: Iterable[DataPoint]) -> list[dict[str, Any]]:
    """Encode a series back into the upstream record shape."""
    return [{DATE_FIELD: p.date.isoformat(), VALUE_FIELD: p.value} for p in series]
