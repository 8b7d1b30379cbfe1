"""
Live REAO breakdown (Readiness / Efficiency / Alignment / Opportunity).

Each dimension averages the responses whose category belongs to it:

  Readiness   strategy, planning, team, capabilities, brand, governance, budget
  Efficiency  operations, automation, technology, data, integration,
              measurement, attribution, production, orchestration
              (blended with the tech-stack score when a stack exists)
  Alignment   sales, alignment, SLAs, journey, content, demand, lead scoring

A dimension with no matching responses takes the combined score.
Opportunity is the remaining potential and is always 100.

The Simulator uses a simpler combined-score transform instead; see
scoring.projection.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence

from flight_planner.core.config import Settings, get_settings
from flight_planner.schemas.assessment import AssessmentResponse
from flight_planner.schemas.progression import REAOScores, ScoreBreakdown
from flight_planner.scoring.aggregator import clamp_score, round_half_up

OPPORTUNITY_SCORE = 100

READINESS_KEYWORDS = ("strategy", "planning", "team", "capabilities", "brand", "governance", "budget")
EFFICIENCY_KEYWORDS = (
    "operations", "automation", "technology", "data", "integration",
    "measurement", "attribution", "production", "orchestration", "innovation",
)
ALIGNMENT_KEYWORDS = ("sales", "alignment", "sla", "journey", "content", "demand", "lead scoring")


def _matches(category: str, keywords: Sequence[str]) -> bool:
    lowered = category.lower()
    return any(k in lowered for k in keywords)


def _dimension_average(
    responses: Sequence[AssessmentResponse],
    keywords: Sequence[str],
) -> Optional[int]:
    scores = [r.score for r in responses if _matches(r.category, keywords)]
    if not scores:
        return None
    return round_half_up(Decimal(sum(scores)) / Decimal(len(scores)))


def compute_reao(
    responses: Sequence[AssessmentResponse],
    breakdown: ScoreBreakdown,
    settings: Optional[Settings] = None,
) -> REAOScores:
    settings = settings or get_settings()
    if not responses:
        return REAOScores()

    combined = breakdown.combined_score

    readiness = _dimension_average(responses, READINESS_KEYWORDS)
    alignment = _dimension_average(responses, ALIGNMENT_KEYWORDS)
    efficiency = _dimension_average(responses, EFFICIENCY_KEYWORDS)

    if efficiency is not None and breakdown.tech_stack_score is not None:
        efficiency = round_half_up(
            Decimal(efficiency) * Decimal(str(settings.assessment_weight))
            + Decimal(breakdown.tech_stack_score) * Decimal(str(settings.tech_stack_weight))
        )
    elif efficiency is None and breakdown.tech_stack_score is not None:
        efficiency = breakdown.tech_stack_score

    return REAOScores(
        readiness_score=clamp_score(combined if readiness is None else readiness),
        efficiency_score=clamp_score(combined if efficiency is None else efficiency),
        alignment_score=clamp_score(combined if alignment is None else alignment),
        opportunity_score=OPPORTUNITY_SCORE,
    )
