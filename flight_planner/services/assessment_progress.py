"""
In-flight assessment answers, so a user can resume within 24 hours.

The saved payload carries its own timestamp; load() discards it once older
than the configured TTL, whatever the memory tier still holds.
"""
from __future__ import annotations

from typing import Optional, Sequence

import structlog
from pydantic import BaseModel, ValidationError

from flight_planner.core.config import Settings, get_settings
from flight_planner.schemas.assessment import AssessmentResponse, AssessmentType
from flight_planner.services.storage_cache import Clock, StorageCache, epoch_ms

logger = structlog.get_logger()


class SavedProgress(BaseModel):
    assessment_type: AssessmentType
    responses: list[AssessmentResponse]
    current_question: int = 0
    timestamp: int


class AssessmentProgress:
    def __init__(
        self,
        cache: StorageCache,
        settings: Optional[Settings] = None,
        clock: Clock = epoch_ms,
    ) -> None:
        self.cache = cache
        self.settings = settings or get_settings()
        self._clock = clock

    @property
    def key(self) -> str:
        return self.settings.assessment_progress_key

    def save(
        self,
        assessment_type: AssessmentType,
        responses: Sequence[AssessmentResponse],
        current_question: int = 0,
    ) -> None:
        progress = SavedProgress(
            assessment_type=assessment_type,
            responses=list(responses),
            current_question=current_question,
            timestamp=self._clock(),
        )
        self.cache.set_item(
            self.key,
            progress.model_dump(mode="json"),
            ttl=self.settings.assessment_progress_ttl_ms,
        )

    def load(self) -> Optional[SavedProgress]:
        ttl = self.settings.assessment_progress_ttl_ms
        raw = self.cache.get_item(self.key, ttl=ttl)
        if raw is None:
            return None

        try:
            progress = SavedProgress.model_validate(raw)
        except ValidationError as e:
            logger.warning("assessment_progress_invalid", error=str(e))
            self.cache.remove_item(self.key)
            return None

        if self._clock() - progress.timestamp > ttl:
            logger.info("assessment_progress_expired", saved_at=progress.timestamp)
            self.cache.remove_item(self.key)
            return None
        return progress

    def clear(self) -> None:
        self.cache.remove_item(self.key)
