"""
Currency Calculator — flight miles.

    miles = score * 100 + unlocked_city_count * 250

Monotonic non-decreasing in both arguments; route unlock monotonicity
relies on it.
"""
from __future__ import annotations

from typing import Optional

from flight_planner.core.config import Settings, get_settings


def calculate_miles(
    score: int,
    unlocked_city_count: int,
    settings: Optional[Settings] = None,
) -> int:
    settings = settings or get_settings()
    score = max(0, score)
    unlocked_city_count = max(0, unlocked_city_count)
    return (
        score * settings.miles_per_score_point
        + unlocked_city_count * settings.miles_per_unlocked_city
    )
