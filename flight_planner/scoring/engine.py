"""
Progression Engine — live pipeline

Orchestrates:
  1. Score aggregation (assessment + tech stack)
  2. Plane level
  3. Flight miles and route unlocks (resolved together)
  4. Category-level REAO breakdown

Pure: the store calls this on every read; nothing here touches storage.
"""
from __future__ import annotations

import time
from typing import Optional, Sequence

import structlog

from flight_planner.core.config import Settings, get_settings
from flight_planner.schemas.assessment import AssessmentResponse, TechStackEntry
from flight_planner.schemas.progression import (
    PlaneLevel,
    ProgressionSnapshot,
    REAOScores,
    Route,
)
from flight_planner.scoring.aggregator import aggregate
from flight_planner.scoring.reao import compute_reao
from flight_planner.scoring.routes import ROUTES, evaluate_all, resolve_unlocks
from flight_planner.scoring.tiers import PLANE_LEVELS, classify

logger = structlog.get_logger()


def compute_progression(
    responses: Sequence[AssessmentResponse],
    tech_stack: Sequence[TechStackEntry],
    routes: Sequence[Route] = ROUTES,
    tiers: Sequence[PlaneLevel] = PLANE_LEVELS,
    settings: Optional[Settings] = None,
) -> ProgressionSnapshot:
    """
    Main live entry point.
    """
    settings = settings or get_settings()
    t0 = time.perf_counter_ns()

    breakdown = aggregate(responses, tech_stack, settings)

    # ── No assessment yet: defaults, skip downstream stages ──
    if not responses:
        return ProgressionSnapshot(
            breakdown=breakdown,
            combined_score=0,
            plane_level=tiers[0],
            flight_miles=0,
            unlocked_city_count=0,
            route_statuses=evaluate_all(routes, 0, 0),
            unlocked_routes=[],
            reao=REAOScores(),
        )

    score = breakdown.combined_score
    plane_level = classify(score, tiers)
    resolution = resolve_unlocks(score, routes, settings)
    reao = compute_reao(responses, breakdown, settings)

    elapsed_us = int((time.perf_counter_ns() - t0) / 1_000)
    logger.debug(
        "progression_computed",
        score=score,
        plane_level=plane_level.name,
        miles=resolution.flight_miles,
        unlocked_routes=len(resolution.unlocked_routes),
        elapsed_us=elapsed_us,
    )

    return ProgressionSnapshot(
        breakdown=breakdown,
        combined_score=score,
        plane_level=plane_level,
        flight_miles=resolution.flight_miles,
        unlocked_city_count=resolution.unlocked_city_count,
        route_statuses=resolution.statuses,
        unlocked_routes=resolution.unlocked_routes,
        reao=reao,
    )
