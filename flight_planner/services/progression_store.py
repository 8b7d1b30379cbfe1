"""
Progression store — the engine API the pages call.

Holds only inputs (profile, responses, tech stack, journey, timestamps),
persisted through the storage cache. Score, tier, miles, REAO and route
statuses are recomputed from those inputs on every read. Each assessment
submission also appends one HistoryEntry to the ledger.

Built by flight_planner.main.create_store(); everything it needs is passed
in, so tests can assemble one over MemoryStorage.
"""
from __future__ import annotations

from typing import Optional, Sequence

import structlog
from pydantic import BaseModel, ValidationError

from flight_planner.core.config import Settings, get_settings
from flight_planner.schemas.assessment import (
    AssessmentResponse,
    AssessmentSubmission,
    AssessmentType,
    CurrentJourney,
    TechStackEntry,
    UserProfile,
)
from flight_planner.schemas.progression import (
    City,
    CityStatus,
    HistoryEntry,
    PlaneLevel,
    ProgressionSnapshot,
    ProjectedResult,
    Route,
    RouteStatus,
    ScoreBreakdown,
)
from flight_planner.scoring import projection
from flight_planner.scoring.engine import compute_progression
from flight_planner.scoring.routes import CITIES, ROUTES, city_statuses, get_route, locked_status
from flight_planner.scoring.tiers import PLANE_LEVELS
from flight_planner.services import flight_log
from flight_planner.services.analytics import ASSESSMENT_COMPLETED, AnalyticsTracker
from flight_planner.services.assessment_progress import AssessmentProgress
from flight_planner.services.flight_log import Improvements, RouteUnlock
from flight_planner.services.history_ledger import HistoryLedger
from flight_planner.services.storage_cache import Clock, StorageCache, epoch_ms

logger = structlog.get_logger()


class StoredState(BaseModel):
    """Persisted inputs under the state key."""
    profile: Optional[UserProfile] = None
    assessment_responses: list[AssessmentResponse] = []
    current_journey: Optional[CurrentJourney] = None
    assessment_timestamp: Optional[int] = None
    last_update_timestamp: Optional[int] = None


class ProgressionStore:
    def __init__(
        self,
        cache: StorageCache,
        ledger: Optional[HistoryLedger] = None,
        analytics: Optional[AnalyticsTracker] = None,
        progress: Optional[AssessmentProgress] = None,
        settings: Optional[Settings] = None,
        routes: Sequence[Route] = ROUTES,
        tiers: Sequence[PlaneLevel] = PLANE_LEVELS,
        cities: Sequence[City] = CITIES,
        clock: Clock = epoch_ms,
    ) -> None:
        self.settings = settings or get_settings()
        self.cache = cache
        self.ledger = ledger or HistoryLedger(cache, self.settings)
        self.analytics = analytics
        self.progress = progress or AssessmentProgress(cache, self.settings, clock=clock)
        self.routes = list(routes)
        self.tiers = list(tiers)
        self.cities = list(cities)
        self._clock = clock

    # ═══════════════════════════════════════════════════════════
    # Persisted inputs
    # ═══════════════════════════════════════════════════════════

    def _state(self) -> StoredState:
        raw = self.cache.get_item(self.settings.state_key)
        if raw is None:
            return StoredState()
        try:
            return StoredState.model_validate(raw)
        except ValidationError as e:
            logger.error("stored_state_invalid", key=self.settings.state_key, error=str(e))
            return StoredState()

    def _save_state(self, state: StoredState) -> None:
        self.cache.set_item(self.settings.state_key, state.model_dump(mode="json"))

    @property
    def profile(self) -> Optional[UserProfile]:
        return self._state().profile

    @property
    def current_journey(self) -> Optional[CurrentJourney]:
        return self._state().current_journey

    @property
    def assessment_responses(self) -> list[AssessmentResponse]:
        return self._state().assessment_responses

    @property
    def assessment_timestamp(self) -> Optional[int]:
        return self._state().assessment_timestamp

    @property
    def last_update_timestamp(self) -> Optional[int]:
        return self._state().last_update_timestamp

    @property
    def tech_stack(self) -> list[TechStackEntry]:
        raw = self.cache.get_item(self.settings.tech_stack_key)
        if not isinstance(raw, list):
            return []
        try:
            return [TechStackEntry.model_validate(t) for t in raw]
        except ValidationError as e:
            logger.error("stored_tech_stack_invalid", key=self.settings.tech_stack_key, error=str(e))
            return []

    # ═══════════════════════════════════════════════════════════
    # Actions
    # ═══════════════════════════════════════════════════════════

    def set_profile(self, profile: UserProfile) -> None:
        state = self._state()
        self._save_state(state.model_copy(update={"profile": profile}))

    def set_current_journey(self, from_city: str, to_city: str, purpose: str) -> None:
        state = self._state()
        journey = CurrentJourney(from_city=from_city, to_city=to_city, purpose=purpose)
        self._save_state(state.model_copy(update={"current_journey": journey}))

    def submit_quick_assessment(self, responses: Sequence[AssessmentResponse]) -> HistoryEntry:
        return self._submit(AssessmentType.QUICK, responses)

    def submit_deep_assessment(self, responses: Sequence[AssessmentResponse]) -> HistoryEntry:
        return self._submit(AssessmentType.DEEP, responses)

    def _submit(self, assessment_type: AssessmentType, responses: Sequence[AssessmentResponse]) -> HistoryEntry:
        # Last answer per question wins, in first-asked order
        by_question: dict[int, AssessmentResponse] = {}
        for response in responses:
            by_question[response.question_id] = response
        if len(by_question) < len(responses):
            logger.warning(
                "duplicate_question_ids",
                assessment_type=assessment_type.value,
                received=len(responses),
                kept=len(by_question),
            )

        submission = AssessmentSubmission(assessment_type=assessment_type, responses=list(by_question.values()))
        if not submission.responses:
            logger.warning("empty_assessment_submitted", assessment_type=assessment_type.value)

        now = self._clock()
        state = self._state()
        self._save_state(state.model_copy(update={
            "assessment_responses": submission.responses,
            "assessment_timestamp": state.assessment_timestamp or now,
            "last_update_timestamp": now,
        }))

        snapshot = compute_progression(
            submission.responses, self.tech_stack, self.routes, self.tiers, self.settings,
        )
        entry = HistoryEntry(
            timestamp=now,
            assessment_type=assessment_type,
            combined_score=snapshot.combined_score,
            plane_level=snapshot.plane_level.name,
            flight_miles=snapshot.flight_miles,
            unlocked_routes=tuple(snapshot.unlocked_routes),
            readiness_score=snapshot.readiness_score,
            efficiency_score=snapshot.efficiency_score,
            alignment_score=snapshot.alignment_score,
            opportunity_score=snapshot.opportunity_score,
            question_count=len(submission.responses),
        )
        self.ledger.append(entry)
        self.progress.clear()

        if self.analytics is not None:
            self.analytics.track_event(
                ASSESSMENT_COMPLETED,
                assessment_type=assessment_type.value,
                score=snapshot.combined_score,
                plane_level=snapshot.plane_level.name,
            )

        logger.info(
            "assessment_submitted",
            assessment_type=assessment_type.value,
            questions=len(submission.responses),
            score=snapshot.combined_score,
            plane_level=snapshot.plane_level.name,
            miles=snapshot.flight_miles,
            unlocked_routes=len(snapshot.unlocked_routes),
        )
        return entry

    def set_tech_stack(self, entries: Sequence[TechStackEntry]) -> None:
        self.cache.set_item(
            self.settings.tech_stack_key,
            [t.model_dump(mode="json") for t in entries],
        )
        state = self._state()
        self._save_state(state.model_copy(update={"last_update_timestamp": self._clock()}))
        logger.info("tech_stack_updated", tools=len(entries))

    def clear_history(self) -> None:
        self.ledger.clear()

    def reset_data(self) -> None:
        """Back to a fresh install: inputs, tech stack and history."""
        self.cache.remove_item(self.settings.state_key)
        self.cache.remove_item(self.settings.tech_stack_key)
        self.ledger.clear()
        self.progress.clear()
        logger.info("progression_reset")

    # ═══════════════════════════════════════════════════════════
    # Derived reads, recomputed every time
    # ═══════════════════════════════════════════════════════════

    def snapshot(self) -> ProgressionSnapshot:
        return compute_progression(
            self.assessment_responses, self.tech_stack, self.routes, self.tiers, self.settings,
        )

    @property
    def score_breakdown(self) -> ScoreBreakdown:
        return self.snapshot().breakdown

    @property
    def combined_score(self) -> int:
        return self.snapshot().combined_score

    @property
    def plane_level(self) -> PlaneLevel:
        return self.snapshot().plane_level

    @property
    def flight_miles(self) -> int:
        return self.snapshot().flight_miles

    @property
    def readiness_score(self) -> int:
        return self.snapshot().readiness_score

    @property
    def efficiency_score(self) -> int:
        return self.snapshot().efficiency_score

    @property
    def alignment_score(self) -> int:
        return self.snapshot().alignment_score

    @property
    def opportunity_score(self) -> int:
        return self.snapshot().opportunity_score

    @property
    def unlocked_routes(self) -> list[str]:
        return self.snapshot().unlocked_routes

    def route_statuses(self) -> dict[str, RouteStatus]:
        return self.snapshot().route_statuses

    def get_route_status(self, route_id: str) -> RouteStatus:
        if get_route(route_id, self.routes) is None:
            logger.warning("unknown_route", route_id=route_id)
            return locked_status(route_id)
        return self.route_statuses()[route_id]

    def city_statuses(self) -> dict[str, CityStatus]:
        return city_statuses(self.cities, self.routes, self.route_statuses())

    def get_assessment_history(self) -> list[HistoryEntry]:
        return self.ledger.get_history()

    def improvements(self) -> Optional[Improvements]:
        return flight_log.summarize_improvements(self.get_assessment_history())

    def route_unlock_timeline(self) -> list[RouteUnlock]:
        return flight_log.route_unlock_timeline(self.get_assessment_history())

    # ═══════════════════════════════════════════════════════════
    # What-if
    # ═══════════════════════════════════════════════════════════

    def project(
        self,
        responses: Sequence[AssessmentResponse],
        tech_stack: Sequence[TechStackEntry],
    ) -> ProjectedResult:
        """Projection against this store's tables. Reads and writes nothing."""
        return projection.project(responses, tech_stack, self.routes, self.tiers, self.settings)
