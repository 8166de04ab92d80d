from __future__ import annotations

from typing import Mapping

from regseries.analysis.stats import SeasonalDelta
from regseries.domain.period import SeasonalPattern
from regseries.transforms.aggregate import round_half_up


MAX_BULLETS = 5


def seasonal_insights(
    patterns: Mapping[str, tuple[SeasonalPattern, SeasonalDelta]],
) -> list[str]:
    """Render short descriptive bullets for each country's year-boundary pattern.

    ``patterns`` maps a display label to the country's expected pattern and the
    measured delta. Countries without data should be left out by the caller.
    """
    if not patterns:
        return ["Not enough data to derive seasonal insights."]

    bullets: list[str] = []
    for label, (pattern, delta) in patterns.items():
        if pattern is SeasonalPattern.JANUARY_PEAKS:
            if delta.occurrence_count > 0:
                bullets.append(f"In {label}, January often comes in higher than December.")
                if delta.average_delta:
                    bullets.append(
                        f"On average, that's roughly {round_half_up(delta.average_delta, 0):,.0f} more "
                        "registrations in January compared to December."
                    )
            else:
                bullets.append(f"{label} doesn't really show a January boost in this data.")
        else:
            if delta.occurrence_count > 0:
                bullets.append(
                    f"In {label}, December numbers are usually higher than the following January."
                )
                if delta.average_delta:
                    bullets.append(
                        f"On average, December runs roughly {round_half_up(delta.average_delta, 0):,.0f} "
                        "registrations ahead of the next January."
                    )
            else:
                bullets.append(f"{label} doesn't show a steady December peak in this dataset.")
    return bullets[:MAX_BULLETS]
