"""
Tests for flight log analysis over the history ledger.
"""
from flight_planner.schemas.assessment import AssessmentType
from flight_planner.schemas.progression import HistoryEntry
from flight_planner.services.flight_log import (
    MS_PER_DAY,
    route_unlock_timeline,
    summarize_improvements,
)


def _entry(timestamp: int, score: int, routes: tuple = ()) -> HistoryEntry:
    return HistoryEntry(
        timestamp=timestamp,
        assessment_type=AssessmentType.QUICK,
        combined_score=score,
        plane_level="Regional Jet",
        flight_miles=score * 100,
        unlocked_routes=routes,
        readiness_score=score,
        efficiency_score=score,
        alignment_score=score,
        opportunity_score=100,
        question_count=10,
    )


class TestImprovements:
    def test_needs_two_entries(self):
        assert summarize_improvements([]) is None
        assert summarize_improvements([_entry(0, 40)]) is None

    def test_first_vs_last(self):
        history = [
            _entry(10 * MS_PER_DAY, 60, ("social-video", "content-seo")),
            _entry(0, 40, ("social-video",)),
            _entry(3 * MS_PER_DAY, 50, ("social-video",)),
        ]
        imp = summarize_improvements(history)

        assert imp.score_change == 20
        assert imp.score_percent_change == 50.0
        assert imp.routes_unlocked == 1
        assert imp.miles_gained == 2000
        assert imp.days_between == 10

    def test_zero_first_score(self):
        imp = summarize_improvements([_entry(0, 0), _entry(MS_PER_DAY, 30)])
        assert imp.score_change == 30
        assert imp.score_percent_change is None

    def test_partial_days_floored(self):
        imp = summarize_improvements([_entry(0, 30), _entry(MS_PER_DAY - 1, 33)])
        assert imp.days_between == 0
        assert imp.score_percent_change == 10.0


class TestRouteTimeline:
    def test_first_unlock_wins(self):
        history = [
            _entry(100, 30, ("social-video",)),
            _entry(200, 50, ("social-video", "content-seo")),
            _entry(300, 55, ("social-video", "content-seo", "seo-growth")),
        ]
        timeline = route_unlock_timeline(history)

        assert [(u.route_id, u.timestamp) for u in timeline] == [
            ("social-video", 100),
            ("content-seo", 200),
            ("seo-growth", 300),
        ]

    def test_empty(self):
        assert route_unlock_timeline([]) == []
