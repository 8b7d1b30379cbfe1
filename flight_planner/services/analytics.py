"""
Local analytics — fire-and-forget event tracking.

Events live in a capped ring buffer under one storage key (oldest dropped
first) and are written immediately. Tracking never fails the caller.
"""
from __future__ import annotations

from collections import Counter
from typing import Any, Optional, Union

import structlog

from flight_planner.core.config import Settings, get_settings
from flight_planner.services.storage_cache import Clock, StorageCache, epoch_ms

logger = structlog.get_logger()

EventValue = Union[str, int, float, bool]

PAGEVIEW = "pageview"
ASSESSMENT_COMPLETED = "assessment_completed"
CTA_CLICKED = "cta_clicked"
HOME_PAGES = ("/", "/#/")


class AnalyticsTracker:
    def __init__(
        self,
        cache: StorageCache,
        settings: Optional[Settings] = None,
        clock: Clock = epoch_ms,
    ) -> None:
        self.cache = cache
        self.settings = settings or get_settings()
        self._clock = clock

    def get_events(self) -> list[dict[str, Any]]:
        stored = self.cache.get_item(self.settings.analytics_key)
        return list(stored) if isinstance(stored, list) else []

    def _save(self, events: list[dict[str, Any]]) -> None:
        limited = events[-self.settings.analytics_max_events:]
        self.cache.set_item(self.settings.analytics_key, limited, immediate=True)

    def track_event(self, event_type: str, **data: EventValue) -> None:
        event: dict[str, Any] = {"type": event_type, "timestamp": self._clock(), **data}
        try:
            self._save([*self.get_events(), event])
        except Exception as e:
            # Fire-and-forget: log but don't fail the caller
            logger.warning("analytics_track_failed", event_type=event_type, error=str(e))

    def track_page_view(self, page: str) -> None:
        self.track_event(PAGEVIEW, page=page)

    def clear(self) -> None:
        self.cache.remove_item(self.settings.analytics_key)

    def summary(self) -> dict[str, Any]:
        events = self.get_events()
        pageviews = [e for e in events if e.get("type") == PAGEVIEW]
        assessments = [e for e in events if e.get("type") == ASSESSMENT_COMPLETED]
        cta_clicks = [e for e in events if e.get("type") == CTA_CLICKED]

        home_views = sum(1 for e in pageviews if e.get("page") in HOME_PAGES)
        conversion_rate = round(len(assessments) / home_views * 100, 1) if home_views else 0.0

        page_counts = Counter(e.get("page") or "unknown" for e in pageviews)
        avg_score = (
            round(sum(e.get("score") or 0 for e in assessments) / len(assessments), 1)
            if assessments else 0.0
        )

        return {
            "total_pageviews": len(pageviews),
            "total_assessments": len(assessments),
            "total_cta_clicks": len(cta_clicks),
            "conversion_rate": conversion_rate,
            "popular_pages": [{"page": p, "count": c} for p, c in page_counts.most_common(5)],
            "cta_locations": dict(Counter(e.get("location") or "unknown" for e in cta_clicks)),
            "avg_score": avg_score,
            "plane_level_counts": dict(Counter(e.get("plane_level") or "unknown" for e in assessments)),
            "total_events": len(events),
            "first_event": events[0]["timestamp"] if events else None,
            "last_event": events[-1]["timestamp"] if events else None,
        }
