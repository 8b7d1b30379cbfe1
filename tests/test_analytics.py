"""
Tests for local analytics tracking and the summary report.
"""
from flight_planner.core.config import Settings
from flight_planner.services.analytics import (
    ASSESSMENT_COMPLETED,
    CTA_CLICKED,
    AnalyticsTracker,
)
from flight_planner.services.storage_cache import StorageCache

from conftest import FailingStorage


def _make_tracker(cache, settings, clock) -> AnalyticsTracker:
    return AnalyticsTracker(cache, settings, clock=clock)


class TestTracking:
    def test_event_recorded_with_timestamp(self, cache, settings, clock):
        tracker = _make_tracker(cache, settings, clock)
        tracker.track_page_view("/#/planner")

        events = tracker.get_events()
        assert events == [{"type": "pageview", "timestamp": clock.now, "page": "/#/planner"}]

    def test_written_immediately(self, cache, backend, settings, clock):
        _make_tracker(cache, settings, clock).track_event(CTA_CLICKED, location="hero")
        assert backend.get(settings.analytics_key) is not None

    def test_ring_buffer_drops_oldest(self, backend, clock, timer_factory):
        settings = Settings(analytics_max_events=5)
        cache = StorageCache(backend, settings, clock=clock, timer_factory=timer_factory)
        tracker = _make_tracker(cache, settings, clock)

        for i in range(8):
            tracker.track_event(CTA_CLICKED, location=f"slot-{i}")

        events = tracker.get_events()
        assert len(events) == 5
        assert events[0]["location"] == "slot-3"
        assert events[-1]["location"] == "slot-7"

    def test_storage_failure_never_raises(self, settings, clock, timer_factory):
        cache = StorageCache(FailingStorage(), settings, clock=clock, timer_factory=timer_factory)
        tracker = _make_tracker(cache, settings, clock)
        tracker.track_page_view("/")
        assert len(tracker.get_events()) == 1

    def test_clear(self, cache, backend, settings, clock):
        tracker = _make_tracker(cache, settings, clock)
        tracker.track_page_view("/")
        tracker.clear()
        assert tracker.get_events() == []
        assert backend.get(settings.analytics_key) is None


class TestSummary:
    def test_summary(self, cache, settings, clock):
        tracker = _make_tracker(cache, settings, clock)
        first = clock.now
        tracker.track_page_view("/")
        tracker.track_page_view("/#/")
        tracker.track_page_view("/#/planner")
        tracker.track_page_view("/#/planner")
        tracker.track_event(CTA_CLICKED, location="hero")
        tracker.track_event(ASSESSMENT_COMPLETED, score=60, plane_level="Regional Jet")
        clock.advance(5_000)
        tracker.track_event(ASSESSMENT_COMPLETED, score=75, plane_level="Commercial Jet")

        s = tracker.summary()
        assert s["total_pageviews"] == 4
        assert s["total_assessments"] == 2
        assert s["total_cta_clicks"] == 1
        assert s["conversion_rate"] == 100.0
        assert s["popular_pages"][0] == {"page": "/#/planner", "count": 2}
        assert s["cta_locations"] == {"hero": 1}
        assert s["avg_score"] == 67.5
        assert s["plane_level_counts"] == {"Regional Jet": 1, "Commercial Jet": 1}
        assert s["total_events"] == 7
        assert s["first_event"] == first
        assert s["last_event"] == first + 5_000

    def test_empty_summary(self, cache, settings, clock):
        s = _make_tracker(cache, settings, clock).summary()
        assert s["total_events"] == 0
        assert s["conversion_rate"] == 0.0
        assert s["avg_score"] == 0.0
        assert s["first_event"] is None
