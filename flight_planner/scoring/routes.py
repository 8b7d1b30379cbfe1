"""
Route Unlock Evaluator

Each route has two thresholds (score, miles):
  both met      → unlocked
  exactly one   → partial
  neither       → locked

Progress is the floored average of the two threshold ratios, each capped
at 100%. A city takes the best status of the routes touching it.

Miles depend on the unlocked-city count, which depends on route status,
which depends on miles. resolve_unlocks() settles that loop by iterating
from zero cities; both sides are monotonic so it only ever climbs.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import structlog

from flight_planner.core.config import Settings, get_settings
from flight_planner.schemas.progression import (
    City,
    CityStatus,
    Route,
    RouteStatus,
    RouteUnlockState,
)
from flight_planner.scoring.miles import calculate_miles

logger = structlog.get_logger()


# ═══════════════════════════════════════════════════════════════
# Reference data — marketing functions as cities
# ═══════════════════════════════════════════════════════════════
CITIES: list[City] = [
    City(id="nyc", name="New York City", function="Content Marketing", region="NA"),
    City(id="lax", name="Los Angeles", function="Social Media", region="NA"),
    City(id="sfo", name="San Francisco", function="AI & Marketing Tech", region="NA"),
    City(id="chi", name="Chicago", function="Sales Enablement", region="NA"),
    City(id="tor", name="Toronto", function="Account-Based Marketing", region="NA"),
    City(id="lon", name="London", function="Demand Generation", region="EU"),
    City(id="par", name="Paris", function="Brand & Positioning", region="EU"),
    City(id="ber", name="Berlin", function="Market Research", region="EU"),
    City(id="tok", name="Tokyo", function="SEO & Organic", region="APAC"),
    City(id="seo", name="Seoul", function="Video Marketing", region="APAC"),
    City(id="sin", name="Singapore", function="Growth Marketing", region="APAC"),
    City(id="dub", name="Dubai", function="Omnichannel", region="MENA"),
    City(id="sto", name="Stockholm", function="Marketing Operations", region="EU"),
]

ROUTES: list[Route] = [
    Route(id="content-demandgen", from_city="nyc", to_city="lon", name="Content → Demand Gen",
          difficulty="Medium", required_score=40, required_miles=1800),
    Route(id="content-seo", from_city="nyc", to_city="tok", name="Content → SEO Mastery",
          difficulty="Medium", required_score=40, required_miles=2100),
    Route(id="content-abm", from_city="nyc", to_city="tor", name="Content → ABM",
          difficulty="Hard", required_score=60, required_miles=1200),
    Route(id="social-video", from_city="lax", to_city="seo", name="Social → Video",
          difficulty="Easy", required_score=25, required_miles=1500),
    Route(id="demandgen-ops", from_city="lon", to_city="sto", name="Demand Gen → Marketing Ops",
          difficulty="Medium", required_score=50, required_miles=900),
    Route(id="ai-sales", from_city="sfo", to_city="chi", name="AI → Sales Enablement",
          difficulty="Hard", required_score=70, required_miles=2200),
    Route(id="seo-growth", from_city="tok", to_city="sin", name="SEO → Growth Marketing",
          difficulty="Medium", required_score=55, required_miles=1600),
]


def get_route(route_id: str, routes: Sequence[Route] = ROUTES) -> Optional[Route]:
    return next((r for r in routes if r.id == route_id), None)


def _threshold_progress(actual: int, required: int) -> float:
    if required <= 0:
        return 100.0
    return min(100.0, actual * 100 / required)


def evaluate(route: Route, score: int, miles: int) -> RouteStatus:
    score_met = score >= route.required_score
    miles_met = miles >= route.required_miles

    if score_met and miles_met:
        status = RouteUnlockState.UNLOCKED
    elif score_met or miles_met:
        status = RouteUnlockState.PARTIAL
    else:
        status = RouteUnlockState.LOCKED

    if route.required_score == 0 and route.required_miles == 0:
        progress = 0
    else:
        avg = (
            _threshold_progress(score, route.required_score)
            + _threshold_progress(miles, route.required_miles)
        ) / 2
        progress = int(avg)

    return RouteStatus(
        route_id=route.id,
        status=status,
        required_score=route.required_score,
        required_miles=route.required_miles,
        current_progress=max(0, progress),
    )


def evaluate_all(routes: Iterable[Route], score: int, miles: int) -> dict[str, RouteStatus]:
    """Fresh statuses for every route; nothing is cached between calls."""
    return {route.id: evaluate(route, score, miles) for route in routes}


def locked_status(route_id: str) -> RouteStatus:
    """Status reported for a route id missing from the table."""
    return RouteStatus(
        route_id=route_id,
        status=RouteUnlockState.LOCKED,
        required_score=0,
        required_miles=0,
        current_progress=0,
    )


def city_statuses(
    cities: Iterable[City],
    routes: Iterable[Route],
    statuses: dict[str, RouteStatus],
) -> dict[str, CityStatus]:
    touching: dict[str, list[RouteUnlockState]] = {}
    for route in routes:
        status = statuses.get(route.id)
        if status is None:
            continue
        touching.setdefault(route.from_city, []).append(status.status)
        touching.setdefault(route.to_city, []).append(status.status)

    result: dict[str, CityStatus] = {}
    for city in cities:
        states = touching.get(city.id, [])
        if RouteUnlockState.UNLOCKED in states:
            state = RouteUnlockState.UNLOCKED
        elif RouteUnlockState.PARTIAL in states:
            state = RouteUnlockState.PARTIAL
        else:
            state = RouteUnlockState.LOCKED
        result[city.id] = CityStatus(city_id=city.id, status=state)
    return result


def unlocked_city_ids(routes: Iterable[Route], statuses: dict[str, RouteStatus]) -> set[str]:
    cities: set[str] = set()
    for route in routes:
        status = statuses.get(route.id)
        if status is not None and status.status == RouteUnlockState.UNLOCKED:
            cities.add(route.from_city)
            cities.add(route.to_city)
    return cities


@dataclass(frozen=True)
class RouteResolution:
    flight_miles: int
    unlocked_city_count: int
    statuses: dict[str, RouteStatus]

    @property
    def unlocked_routes(self) -> list[str]:
        return [
            route_id for route_id, s in self.statuses.items()
            if s.status == RouteUnlockState.UNLOCKED
        ]


def resolve_unlocks(
    score: int,
    routes: Sequence[Route] = ROUTES,
    settings: Optional[Settings] = None,
) -> RouteResolution:
    """
    Miles, statuses and city count at their joint fixed point.

    At most one extra pass per newly unlocked city, so this is bounded by
    the number of cities in the route table.
    """
    settings = settings or get_settings()
    city_count = 0
    while True:
        miles = calculate_miles(score, city_count, settings)
        statuses = evaluate_all(routes, score, miles)
        new_count = len(unlocked_city_ids(routes, statuses))
        if new_count <= city_count:
            return RouteResolution(
                flight_miles=miles,
                unlocked_city_count=city_count,
                statuses=statuses,
            )
        city_count = new_count
