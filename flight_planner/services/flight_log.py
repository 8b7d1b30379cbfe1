"""
Flight log analysis over the history ledger: first-vs-last improvements
and when each route was first unlocked.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from flight_planner.schemas.progression import HistoryEntry

MS_PER_DAY = 1000 * 60 * 60 * 24


@dataclass(frozen=True)
class Improvements:
    score_change: int
    score_percent_change: Optional[float]  # None when the first score was 0
    routes_unlocked: int
    miles_gained: int
    days_between: int


@dataclass(frozen=True)
class RouteUnlock:
    route_id: str
    timestamp: int


def summarize_improvements(history: Sequence[HistoryEntry]) -> Optional[Improvements]:
    if len(history) < 2:
        return None

    ordered = sorted(history, key=lambda h: h.timestamp)
    first, last = ordered[0], ordered[-1]
    score_change = last.combined_score - first.combined_score

    return Improvements(
        score_change=score_change,
        score_percent_change=(
            round(score_change / first.combined_score * 100, 1) if first.combined_score else None
        ),
        routes_unlocked=len(last.unlocked_routes) - len(first.unlocked_routes),
        miles_gained=last.flight_miles - first.flight_miles,
        days_between=(last.timestamp - first.timestamp) // MS_PER_DAY,
    )


def route_unlock_timeline(history: Sequence[HistoryEntry]) -> list[RouteUnlock]:
    first_seen: dict[str, int] = {}
    for entry in sorted(history, key=lambda h: h.timestamp):
        for route_id in entry.unlocked_routes:
            first_seen.setdefault(route_id, entry.timestamp)
    return sorted(
        (RouteUnlock(route_id=r, timestamp=t) for r, t in first_seen.items()),
        key=lambda u: u.timestamp,
    )
