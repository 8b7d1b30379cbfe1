"""
Inputs submitted by the pages.

Assessment responses and tech-stack entries are the only values the
scoring path consumes. The profile and journey are context for scenario
filtering and are carried through the store untouched.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AssessmentType(str, Enum):
    QUICK = "quick"
    DEEP = "deep"


class AssessmentResponse(BaseModel):
    """One answered question."""
    model_config = ConfigDict(frozen=True)

    question_id: int
    category: str
    score: int = Field(ge=0, le=100)


class TechStackEntry(BaseModel):
    """One audited tool and how well it is used (1-10)."""
    model_config = ConfigDict(frozen=True)

    name: str
    category: str
    utilization_score: int = Field(ge=1, le=10)


class AssessmentSubmission(BaseModel):
    """
    A full set of responses from one assessment run.

    Question ids must be unique within a submission.
    """
    assessment_type: AssessmentType
    responses: list[AssessmentResponse]

    @field_validator("responses")
    @classmethod
    def validate_unique_questions(cls, v: list[AssessmentResponse]) -> list[AssessmentResponse]:
        seen: set[int] = set()
        for response in v:
            if response.question_id in seen:
                raise ValueError(f"duplicate question_id {response.question_id}")
            seen.add(response.question_id)
        return v


class UserProfile(BaseModel):
    """Who is flying — used for scenario filtering, never for scoring."""
    role: str
    industry: str
    company_size: str
    company_type: str
    revenue: str
    goals: list[str] = []

    # Deep dive fields
    team_size: Optional[int] = Field(None, ge=0)
    marketing_budget: Optional[str] = None
    product_count: Optional[int] = Field(None, ge=0)
    sales_cycle: Optional[str] = None
    deal_size: Optional[str] = None
    target_segments: Optional[list[str]] = None


class CurrentJourney(BaseModel):
    from_city: str
    to_city: str
    purpose: str
