"""
End-to-end: raw records → run_pipeline → JSON-ready response.

Two-day Delhi trip with the lodging at Connaught Place and four attractions
(two per day).  Every day is a round trip, so each route has two outbound
legs plus the return leg.
"""

from __future__ import annotations

import pytest

from routewise.main import build_itinerary, run_pipeline
from routewise.modules.planning.day_scheduler import DayScheduler
from routewise.modules.planning.route_planner import RoutePlanner
from routewise.modules.tool_usage.directions_tool import LiveRoute, RouteProviderChain
from routewise.modules.validation import TripValidationError

HOTEL = {"name": "Hotel Connaught", "coordinates": [28.6139, 77.2090]}


def test_two_day_delhi_trip(delhi_attractions):
    result = run_pipeline(delhi_attractions, "2026-03-01", "2026-03-03", accommodation=HOTEL, destination="Delhi")

    days = result["itinerary"]["days"]
    assert len(days) == 2
    for day in days:
        assert len(day["attractions"]) == 2
        assert len(day["route"]) == 3
        assert day["route"][0]["from"]["id"] == "lodging"
        assert day["route"][-1]["to"]["id"] == "lodging"
        assert day["totalDistance"] > 0
        assert day["algorithm"] == "nearest_neighbor"
        assert len(day["schedule"]) == 2

    summary = result["tripSummary"]
    assert summary["totalAttractions"] == 4
    assert summary["routedAttractions"] == 4
    assert summary["totalDistance"] == pytest.approx(sum(d["totalDistance"] for d in days), abs=0.02)


def test_without_lodging_days_are_open_paths(delhi_attractions):
    itinerary = build_itinerary(delhi_attractions, "2026-03-01", "2026-03-03")
    assert [len(d.route) for d in itinerary.days] == [1, 1]
    assert all(d.lodging_ref is None for d in itinerary.days)


def test_reversed_dates_fail_fast(delhi_attractions):
    with pytest.raises(TripValidationError):
        run_pipeline(delhi_attractions, "2026-03-03", "2026-03-01")


def test_live_provider_flows_through_to_days(delhi_attractions):
    class Provider:
        name = "fake"
        available = True

        def lookup(self, origin, destination):
            return LiveRoute(3.0, 10.0, provider=self.name)

    scheduler = DayScheduler(RoutePlanner(route_provider=RouteProviderChain([Provider()])))
    result = run_pipeline(delhi_attractions, "2026-03-01", "2026-03-03", accommodation=HOTEL, scheduler=scheduler)

    days = result["itinerary"]["days"]
    assert all(d["dataSource"] == "live" for d in days)
    assert [d["totalDistance"] for d in days] == [9.0, 9.0]
    assert days[0]["schedule"][0]["travelMinutes"] == 10.0
