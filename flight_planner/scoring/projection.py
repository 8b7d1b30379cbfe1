"""
Projection Engine ("what-if")

Re-runs aggregate → classify → miles/routes against hypothetical inputs
from the Simulator sliders. Takes its tables as arguments and never
touches the cache or the history ledger.

REAO here is a linear transform of the combined score, not the
category-level breakdown of the live engine:

    readiness   = round(score * 0.9)
    efficiency  = round(min(100, score * 1.1))
    alignment   = round(score * 0.8)
    opportunity = 100
"""
from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence

from flight_planner.core.config import Settings, get_settings
from flight_planner.schemas.assessment import AssessmentResponse, TechStackEntry
from flight_planner.schemas.progression import (
    PlaneLevel,
    ProgressionSnapshot,
    ProjectedResult,
    ProjectionDelta,
    REAOScores,
    Route,
    RouteUnlockState,
)
from flight_planner.scoring.aggregator import aggregate, round_half_up
from flight_planner.scoring.reao import OPPORTUNITY_SCORE
from flight_planner.scoring.routes import resolve_unlocks
from flight_planner.scoring.tiers import classify

READINESS_MULTIPLIER = Decimal("0.9")
EFFICIENCY_MULTIPLIER = Decimal("1.1")
ALIGNMENT_MULTIPLIER = Decimal("0.8")


def projected_reao(combined_score: int) -> REAOScores:
    score = Decimal(combined_score)
    return REAOScores(
        readiness_score=round_half_up(score * READINESS_MULTIPLIER),
        efficiency_score=round_half_up(min(Decimal(100), score * EFFICIENCY_MULTIPLIER)),
        alignment_score=round_half_up(score * ALIGNMENT_MULTIPLIER),
        opportunity_score=OPPORTUNITY_SCORE,
    )


def project(
    responses: Sequence[AssessmentResponse],
    tech_stack: Sequence[TechStackEntry],
    routes: Sequence[Route],
    tiers: Sequence[PlaneLevel],
    settings: Optional[Settings] = None,
) -> ProjectedResult:
    settings = settings or get_settings()
    breakdown = aggregate(responses, tech_stack, settings)
    score = breakdown.combined_score
    resolution = resolve_unlocks(score, routes, settings)

    return ProjectedResult(
        breakdown=breakdown,
        combined_score=score,
        plane_level=classify(score, tiers),
        flight_miles=resolution.flight_miles,
        unlocked_city_count=resolution.unlocked_city_count,
        route_statuses=resolution.statuses,
        unlocked_routes=resolution.unlocked_routes,
        reao=projected_reao(score),
    )


def compare(current: ProgressionSnapshot, projected: ProgressionSnapshot) -> ProjectionDelta:
    """Before/after deltas for the Simulator comparison table."""
    already = set(current.unlocked_routes)
    newly_unlocked = [
        route_id for route_id, status in projected.route_statuses.items()
        if status.status == RouteUnlockState.UNLOCKED and route_id not in already
    ]
    return ProjectionDelta(
        score_change=projected.combined_score - current.combined_score,
        miles_change=projected.flight_miles - current.flight_miles,
        current_plane_level=current.plane_level.name,
        projected_plane_level=projected.plane_level.name,
        tier_changed=current.plane_level.name != projected.plane_level.name,
        newly_unlocked_routes=newly_unlocked,
    )
