from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import List


@dataclass(frozen=True)
class DataPoint:
    """Canonical observation used throughout the pipeline: one value per calendar day."""

    date: date
    value: float

    def __post_init__(self) -> None:
        if isinstance(self.date, datetime):
            object.__setattr__(self, "date", self.date.date())
        if not math.isfinite(self.value):
            raise ValueError(f"value must be finite, got {self.value!r}")


# Ordered by date; trailing zero placeholders already trimmed by the sanitizer.
Series = List[DataPoint]


@dataclass(frozen=True)
class AggregatedPoint:
    period_key: str
    representative_date: date
    value: float
