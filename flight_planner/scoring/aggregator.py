"""
Score Aggregator

Blends assessment responses and tech-stack utilisation into the 0-100
combined score:

    assessment_score  = mean(response.score)
    tech_stack_score  = mean(entry.utilization_score * 10)   (None if no stack)
    combined_score    = assessment * W_A + tech * W_T          (stack present)
                      = assessment                             (no stack)

Without a tech stack the assessment carries the full weight; the missing
30% is reassigned, not scored as zero.

Rounding is half-up throughout (66.5 → 67), computed in decimal so that
float artefacts of the weights never flip a half.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

from flight_planner.core.config import Settings, get_settings
from flight_planner.schemas.assessment import AssessmentResponse, TechStackEntry
from flight_planner.schemas.progression import ScoreBreakdown

MIN_SCORE = 0
MAX_SCORE = 100


def round_half_up(value) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def clamp_score(value: int) -> int:
    return max(MIN_SCORE, min(MAX_SCORE, value))


def _mean(values: Sequence[int]) -> Decimal:
    return Decimal(sum(values)) / Decimal(len(values))


def assessment_average(responses: Sequence[AssessmentResponse]) -> int:
    if not responses:
        return 0
    return round_half_up(_mean([r.score for r in responses]))


def tech_stack_average(tech_stack: Sequence[TechStackEntry]) -> Optional[int]:
    if not tech_stack:
        return None
    return round_half_up(_mean([t.utilization_score * 10 for t in tech_stack]))


def aggregate(
    responses: Sequence[AssessmentResponse],
    tech_stack: Sequence[TechStackEntry],
    settings: Optional[Settings] = None,
) -> ScoreBreakdown:
    """
    Main scoring entry point. Pure; never raises for empty input.
    """
    settings = settings or get_settings()
    assessment_score = assessment_average(responses)
    tech_stack_score = tech_stack_average(tech_stack)

    # No assessment yet: nothing downstream is meaningful
    if not responses:
        return ScoreBreakdown(
            assessment_score=0,
            tech_stack_score=tech_stack_score,
            combined_score=0,
            assessment_contribution=0,
            tech_contribution=0,
        )

    if tech_stack_score is None:
        return ScoreBreakdown(
            assessment_score=assessment_score,
            tech_stack_score=None,
            combined_score=clamp_score(assessment_score),
            assessment_contribution=assessment_score,
            tech_contribution=0,
        )

    w_a = Decimal(str(settings.assessment_weight))
    w_t = Decimal(str(settings.tech_stack_weight))
    assessment_part = Decimal(assessment_score) * w_a
    tech_part = Decimal(tech_stack_score) * w_t

    return ScoreBreakdown(
        assessment_score=assessment_score,
        tech_stack_score=tech_stack_score,
        combined_score=clamp_score(round_half_up(assessment_part + tech_part)),
        assessment_contribution=round_half_up(assessment_part),
        tech_contribution=round_half_up(tech_part),
    )
