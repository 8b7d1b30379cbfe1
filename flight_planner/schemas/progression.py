"""
Engine outputs and static reference shapes.

Everything here except HistoryEntry is a derived view, recomputed on
every read. HistoryEntry is the immutable snapshot appended per submission.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from flight_planner.schemas.assessment import AssessmentType


class RouteUnlockState(str, Enum):
    LOCKED = "locked"
    PARTIAL = "partial"
    UNLOCKED = "unlocked"

    @property
    def rank(self) -> int:
        return _STATE_RANK[self]


_STATE_RANK = {
    RouteUnlockState.LOCKED: 0,
    RouteUnlockState.PARTIAL: 1,
    RouteUnlockState.UNLOCKED: 2,
}


class PlaneLevel(BaseModel):
    """A maturity tier covering a contiguous score range."""
    model_config = ConfigDict(frozen=True)

    name: str
    min_score: int
    max_score: int
    color: str
    icon: str


class City(BaseModel):
    """A marketing function drawn as a city on the map."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    function: str
    region: str


class Route(BaseModel):
    """A capability-pair growth path between two cities."""
    model_config = ConfigDict(frozen=True)

    id: str
    from_city: str
    to_city: str
    name: str = ""
    difficulty: str = "Medium"
    required_score: int = Field(ge=0)
    required_miles: int = Field(ge=0)


class RouteStatus(BaseModel):
    route_id: str
    status: RouteUnlockState
    required_score: int
    required_miles: int
    current_progress: int = Field(ge=0, le=100, description="Readiness toward both thresholds")


class CityStatus(BaseModel):
    city_id: str
    status: RouteUnlockState


class ScoreBreakdown(BaseModel):
    """Assessment vs tech-stack contribution to the combined score."""
    assessment_score: int
    tech_stack_score: Optional[int] = Field(None, description="None when no tech stack was audited")
    combined_score: int = Field(ge=0, le=100)
    assessment_contribution: int
    tech_contribution: int

    @property
    def has_tech_stack(self) -> bool:
        return self.tech_stack_score is not None


class REAOScores(BaseModel):
    """Readiness / Efficiency / Alignment / Opportunity breakdown."""
    readiness_score: int = 0
    efficiency_score: int = 0
    alignment_score: int = 0
    opportunity_score: int = 100


class ProgressionSnapshot(BaseModel):
    """
    A full engine read: score, tier, miles, routes and REAO.

    Live reads and projections share this shape.
    """
    breakdown: ScoreBreakdown
    combined_score: int
    plane_level: PlaneLevel
    flight_miles: int
    unlocked_city_count: int
    route_statuses: dict[str, RouteStatus]
    unlocked_routes: list[str]
    reao: REAOScores

    @property
    def readiness_score(self) -> int:
        return self.reao.readiness_score

    @property
    def efficiency_score(self) -> int:
        return self.reao.efficiency_score

    @property
    def alignment_score(self) -> int:
        return self.reao.alignment_score

    @property
    def opportunity_score(self) -> int:
        return self.reao.opportunity_score


class ProjectedResult(ProgressionSnapshot):
    """What-if result. Never persisted."""


class ProjectionDelta(BaseModel):
    """Current vs projected, as shown on the Simulator page."""
    score_change: int
    miles_change: int
    current_plane_level: str
    projected_plane_level: str
    tier_changed: bool
    newly_unlocked_routes: list[str]


class HistoryEntry(BaseModel):
    """Immutable snapshot taken at one assessment submission."""
    model_config = ConfigDict(frozen=True)

    timestamp: int = Field(description="Epoch milliseconds")
    assessment_type: AssessmentType
    combined_score: int
    plane_level: str
    flight_miles: int
    unlocked_routes: tuple[str, ...] = ()
    readiness_score: int
    efficiency_score: int
    alignment_score: int
    opportunity_score: int
    question_count: int = 0
