from __future__ import annotations

import csv
import io
import json
from dataclasses import asdict, is_dataclass
from datetime import date
from typing import Any, Iterable, Literal

from regseries.domain.record import AggregatedPoint, DataPoint

Format = Literal["print", "json", "json-lines", "csv"]
FORMATS = ("print", "json", "json-lines", "csv")


def point_payload(item: Any) -> dict[str, Any]:
    """Flatten a DataPoint / AggregatedPoint into JSON-friendly fields."""
    if isinstance(item, AggregatedPoint):
        return {
            "period": item.period_key,
            "date": item.representative_date.isoformat(),
            "value": item.value,
        }
    if isinstance(item, DataPoint):
        return {"date": item.date.isoformat(), "value": item.value}
    if is_dataclass(item):
        return {k: _jsonable(v) for k, v in asdict(item).items()}
    return {"value": item}


def _jsonable(value: Any) -> Any:
    if isinstance(value, date):
        return value.isoformat()
    return value


class JsonLineFormatter:
    def __call__(self, item: Any) -> str:
        return json.dumps(point_payload(item), ensure_ascii=False, default=str) + "\n"


class PrintLineFormatter:
    def __call__(self, item: Any) -> str:
        payload = point_payload(item)
        label = payload.get("period") or payload.get("date")
        return f"{label}\t{payload.get('value')}\n"


def render(items: Iterable[Any], fmt: Format) -> str:
    """Render a point sequence in one of the supported text formats."""
    items = list(items)
    if fmt == "json":
        return json.dumps([point_payload(i) for i in items], ensure_ascii=False, indent=2) + "\n"
    if fmt == "json-lines":
        line = JsonLineFormatter()
        return "".join(line(i) for i in items)
    if fmt == "csv":
        rows = [point_payload(i) for i in items]
        columns = list(rows[0]) if rows else ["date", "value"]
        buf = io.StringIO()
        writer = csv.DictWriter(buf, fieldnames=columns, lineterminator="\n")
        writer.writeheader()
        writer.writerows(rows)
        return buf.getvalue()
    if fmt == "print":
        line = PrintLineFormatter()
        return "".join(line(i) for i in items)
    raise ValueError(f"unsupported output format: {fmt!r}")
