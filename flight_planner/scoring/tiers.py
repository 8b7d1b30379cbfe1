"""
Tier Classifier — combined score → plane level.

The tier table must partition [0, 100]: no gaps, no overlaps, so exactly
one tier matches any score. The static table is checked at import.
"""
from __future__ import annotations

from typing import Sequence

import structlog

from flight_planner.scoring.aggregator import MAX_SCORE, MIN_SCORE
from flight_planner.schemas.progression import PlaneLevel

logger = structlog.get_logger()


# ═══════════════════════════════════════════════════════════════
# Plane levels, lowest first
#   0-20    Grounded
#   21-40   Puddle Jumper
#   41-60   Regional Jet
#   61-80   Commercial Jet
#   81-100  Airbus 380
# ═══════════════════════════════════════════════════════════════
PLANE_LEVELS: list[PlaneLevel] = [
    PlaneLevel(name="Grounded", min_score=0, max_score=20, color="#ef4444", icon="🛬"),
    PlaneLevel(name="Puddle Jumper", min_score=21, max_score=40, color="#f59e0b", icon="🛩️"),
    PlaneLevel(name="Regional Jet", min_score=41, max_score=60, color="#eab308", icon="✈️"),
    PlaneLevel(name="Commercial Jet", min_score=61, max_score=80, color="#22c55e", icon="🛫"),
    PlaneLevel(name="Airbus 380", min_score=81, max_score=100, color="#06b6d4", icon="🚀"),
]


def tier_table_problems(tiers: Sequence[PlaneLevel]) -> list[str]:
    """
    Every integer score in range that matches zero or several tiers.
    Empty list means the table is a valid partition.
    """
    if not tiers:
        return ["tier table is empty"]

    problems: list[str] = []
    for score in range(MIN_SCORE, MAX_SCORE + 1):
        matches = [t.name for t in tiers if t.min_score <= score <= t.max_score]
        if not matches:
            problems.append(f"score {score} matches no tier")
        elif len(matches) > 1:
            problems.append(f"score {score} matches {', '.join(matches)}")
    return problems


def validate_tier_table(tiers: Sequence[PlaneLevel]) -> None:
    problems = tier_table_problems(tiers)
    if problems:
        raise ValueError(f"Invalid tier table: {problems[0]} ({len(problems)} problems)")


validate_tier_table(PLANE_LEVELS)


def classify(score: int, tiers: Sequence[PlaneLevel] = PLANE_LEVELS) -> PlaneLevel:
    for tier in tiers:
        if tier.min_score <= score <= tier.max_score:
            return tier

    # Unreachable with a valid table
    logger.warning("tier_table_gap", score=score, fallback=tiers[0].name)
    return tiers[0]
