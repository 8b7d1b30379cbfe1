"""
Unit tests for flight miles and the route unlock evaluator.
"""
from flight_planner.schemas.progression import City, Route, RouteUnlockState
from flight_planner.scoring.miles import calculate_miles
from flight_planner.scoring.routes import (
    CITIES,
    ROUTES,
    city_statuses,
    evaluate,
    evaluate_all,
    get_route,
    resolve_unlocks,
)


def _route(score: int, miles: int, route_id: str = "r1", frm: str = "a", to: str = "b") -> Route:
    return Route(id=route_id, from_city=frm, to_city=to, required_score=score, required_miles=miles)


class TestMiles:
    def test_worked_example(self):
        assert calculate_miles(67, 8) == 8700

    def test_zero(self):
        assert calculate_miles(0, 0) == 0

    def test_monotonic_in_both_arguments(self):
        for score in range(0, 100):
            for cities in range(0, 13):
                base = calculate_miles(score, cities)
                assert calculate_miles(score + 1, cities) >= base
                assert calculate_miles(score, cities + 1) >= base


class TestEvaluate:
    def test_worked_example_partial(self):
        """Score met, miles short: (100 + 96.7) / 2 floored."""
        s = evaluate(_route(60, 9000), score=67, miles=8700)
        assert s.status == RouteUnlockState.PARTIAL
        assert s.current_progress == 98

    def test_both_met_unlocked(self):
        s = evaluate(_route(60, 9000), score=60, miles=9000)
        assert s.status == RouteUnlockState.UNLOCKED
        assert s.current_progress == 100

    def test_only_miles_met_partial(self):
        s = evaluate(_route(60, 1000), score=30, miles=5000)
        assert s.status == RouteUnlockState.PARTIAL
        assert s.current_progress == 75

    def test_neither_met_locked(self):
        s = evaluate(_route(60, 9000), score=30, miles=4500)
        assert s.status == RouteUnlockState.LOCKED
        assert s.current_progress == 50

    def test_progress_floors(self):
        s = evaluate(_route(100, 1000), score=29, miles=0)
        assert s.current_progress == 14

    def test_zero_requirements(self):
        s = evaluate(_route(0, 0), score=0, miles=0)
        assert s.status == RouteUnlockState.UNLOCKED
        assert s.current_progress == 0

    def test_single_zero_requirement_counts_as_met(self):
        s = evaluate(_route(0, 1000), score=0, miles=500)
        assert s.status == RouteUnlockState.PARTIAL
        assert s.current_progress == 75

    def test_monotonic(self):
        route = _route(55, 1600)
        for score in range(0, 100, 5):
            for miles in range(0, 10_000, 250):
                base = evaluate(route, score, miles).status.rank
                assert evaluate(route, score + 5, miles).status.rank >= base
                assert evaluate(route, score, miles + 250).status.rank >= base

    def test_evaluate_all_is_fresh(self):
        low = evaluate_all(ROUTES, 10, 1000)
        high = evaluate_all(ROUTES, 90, 20_000)
        assert set(low) == {r.id for r in ROUTES}
        assert all(s.status == RouteUnlockState.UNLOCKED for s in high.values())
        assert low["ai-sales"].status == RouteUnlockState.LOCKED

    def test_get_route(self):
        assert get_route("ai-sales").required_score == 70
        assert get_route("nowhere") is None


class TestCityStatus:
    def test_best_touching_route_wins(self):
        cities = [City(id=c, name=c, function="f", region="NA") for c in "abcde"]
        routes = [
            _route(10, 0, "ab", "a", "b"),
            _route(50, 0, "bc", "b", "c"),
            _route(90, 99_999, "cd", "c", "d"),
        ]
        statuses = evaluate_all(routes, score=30, miles=100)
        result = city_statuses(cities, routes, statuses)

        assert result["a"].status == RouteUnlockState.UNLOCKED
        assert result["b"].status == RouteUnlockState.UNLOCKED
        assert result["c"].status == RouteUnlockState.PARTIAL
        assert result["d"].status == RouteUnlockState.LOCKED
        assert result["e"].status == RouteUnlockState.LOCKED


class TestResolveUnlocks:
    def test_city_bonus_feeds_back_into_miles(self):
        """Score 30 unlocks Social → Video; its two cities add 500 miles."""
        r = resolve_unlocks(30)
        assert r.unlocked_routes == ["social-video"]
        assert r.unlocked_city_count == 2
        assert r.flight_miles == 3500

    def test_no_unlocks(self):
        r = resolve_unlocks(20)
        assert r.unlocked_routes == []
        assert r.flight_miles == 2000

    def test_mid_score(self):
        r = resolve_unlocks(50)
        assert set(r.unlocked_routes) == {"content-demandgen", "content-seo", "social-video", "demandgen-ops"}
        assert r.unlocked_city_count == 6
        assert r.flight_miles == 6500

    def test_worked_example_eight_cities(self):
        r = resolve_unlocks(67)
        assert r.unlocked_city_count == 8
        assert r.flight_miles == 8700
        assert r.statuses["ai-sales"].status == RouteUnlockState.PARTIAL

    def test_all_cities_known(self):
        city_ids = {c.id for c in CITIES}
        for route in ROUTES:
            assert route.from_city in city_ids
            assert route.to_city in city_ids
