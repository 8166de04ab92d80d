from __future__ import annotations

from enum import Enum


class AggregationPeriod(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    HALF_YEARLY = "half-yearly"
    YEARLY = "yearly"

    @classmethod
    def parse(cls, value: "AggregationPeriod | str") -> "AggregationPeriod":
        """Return the period for a canonical name or a common alias.

        Raises ValueError for anything else.
        """
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        text = _ALIAS.get(text, text)
        try:
            return cls(text)
        except ValueError:
            valid = ", ".join(p.value for p in cls)
            raise ValueError(
                f"Unsupported aggregation period: {value!r} (expected one of {valid})"
            ) from None


_ALIAS = {
    "month": "monthly",
    "quarter": "quarterly",
    "halfyearly": "half-yearly",
    "half_yearly": "half-yearly",
    "half-year": "half-yearly",
    "year": "yearly",
    "annual": "yearly",
}


class SeasonalPattern(str, Enum):
    """Which side of the Dec -> Jan boundary a country characteristically peaks on."""

    DECEMBER_PEAKS = "december-peaks"
    JANUARY_PEAKS = "january-peaks"
