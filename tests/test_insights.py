"""Ratings, route insights and advisory recommendations."""

from __future__ import annotations

import pytest

from routewise.modules.planning.insights import (
    day_efficiency,
    diversity_rating,
    itinerary_insights,
    itinerary_recommendations,
    load_rating,
    route_efficiency_score,
    route_insights,
    route_rating,
    trip_summary,
)
from routewise.schemas.itinerary import (
    DayPlan,
    GeoPoint,
    Itinerary,
    ItineraryPoint,
    NodeRef,
    RouteResult,
    RouteSegment,
)


def _day(make_poi, number, hours, travel=0.0, categories=None):
    categories = categories or [None] * len(hours)
    points = [make_poi(f"d{number}p{i}", 0.0, 0.01, hours=h, category=c)
              for i, (h, c) in enumerate(zip(hours, categories))]
    return DayPlan(
        day_number=number,
        points_of_interest=points,
        bucket_ids=[p.id for p in points],
        total_travel_minutes=travel,
    )


def _itinerary(days):
    points = [ItineraryPoint(point=p, day_number=d.day_number, routed=p.has_location)
              for d in days for p in d.points_of_interest + d.unrouted_points]
    return Itinerary(days=days, points=points)


# ── Ratings ───────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("hours,travel,rating", [
    ([2.0, 2.0], 60.0, "excellent"),
    ([2.0, 2.0], 160.0, "good"),
    ([1.0], 120.0, "needs_improvement"),
    ([], 0.0, "needs_improvement"),
])
def test_day_efficiency(make_poi, hours, travel, rating):
    assert day_efficiency(_day(make_poi, 1, hours, travel))["rating"] == rating


def test_load_and_diversity_ratings():
    assert [load_rating(n) for n in (0, 4, 5, 6, 7)] == ["good", "good", "moderate", "moderate", "busy"]
    assert [diversity_rating(n) for n in (0, 1, 2, 3)] == ["low", "low", "moderate", "high"]


def test_route_efficiency_score():
    assert route_efficiency_score(0.0, 0.0) == 1.0
    assert route_efficiency_score(300.0, 200.0) == 0.0
    assert route_efficiency_score(600.0, 0.0) == 0.5
    assert [route_rating(s) for s in (0.9, 0.8, 0.6, 0.4, 0.39)] == [
        "excellent", "excellent", "good", "fair", "poor",
    ]


# ── Route insights ────────────────────────────────────────────────────────────

def _segment(minutes, km):
    a = NodeRef("a", "Start", GeoPoint(0.0, 0.0))
    b = NodeRef("b", "Far Fort", GeoPoint(1.0, 1.0))
    return RouteSegment(from_node=a, to_node=b, distance_km=km, duration_minutes=minutes)


def test_route_insights_warnings_and_recommendations():
    result = RouteResult(route=[_segment(90.0, 60.0), _segment(100.0, 50.0), _segment(10.0, 5.0)])
    result.recompute_totals()
    insights = route_insights(result)

    assert insights["efficiency"]["totalStops"] == 3
    assert insights["efficiency"]["averageDistancePerStop"] == pytest.approx(38.33)
    assert [w["segment"] for w in insights["warnings"]] == [0, 1]
    assert "Far Fort" in insights["warnings"][0]["message"]
    assert {r["type"] for r in insights["recommendations"]} == {"travel_time", "distance"}


def test_route_insights_for_empty_route():
    insights = route_insights(RouteResult())
    assert insights["efficiency"]["averageDistancePerStop"] == 0.0
    assert insights["efficiency"]["rating"] == "excellent"
    assert insights["warnings"] == []


# ── Itinerary insights ────────────────────────────────────────────────────────

def test_balanced_diverse_itinerary(make_poi):
    days = [
        _day(make_poi, 1, [2.0, 2.0], 30.0, ["heritage", "cultural"]),
        _day(make_poi, 2, [2.0], 10.0, ["nature"]),
    ]
    insights = itinerary_insights(_itinerary(days))

    assert insights["efficiency"]["totalAttractions"] == 3
    assert insights["efficiency"]["averagePerDay"] == 1.5
    assert insights["diversity"]["diversity"] == "high"
    assert insights["diversity"]["categories"] == ["heritage", "cultural", "nature"]
    assert insights["balance"]["overallBalance"] == "excellent"
    assert insights["recommendations"] == []


def test_busy_day_needs_optimization(make_poi):
    days = [_day(make_poi, 1, [1.0] * 7, 0.0, ["heritage"] * 7), _day(make_poi, 2, [1.0])]
    insights = itinerary_insights(_itinerary(days))

    assert insights["balance"]["overallBalance"] == "needs_optimization"
    assert insights["diversity"]["diversity"] == "low"
    types = [r["type"] for r in insights["recommendations"]]
    assert "balance" in types and "diversity" in types


def test_trip_summary(make_poi):
    days = [_day(make_poi, 1, [2.0, 1.0], 30.0)]
    days[0].total_distance_km = 12.3456
    summary = trip_summary(_itinerary(days))
    assert summary["duration"] == 1
    assert summary["totalAttractions"] == 2
    assert summary["totalDistance"] == 12.35
    assert summary["totalAttractionTime"] == 180.0


# ── Recommendations ───────────────────────────────────────────────────────────

def test_packed_and_light_days(make_poi):
    days = [_day(make_poi, 1, [5.0, 4.0]), _day(make_poi, 2, [1.0]), _day(make_poi, 3, [])]
    recs = itinerary_recommendations(_itinerary(days))
    assert [(r["day"], r["priority"]) for r in recs["timeManagement"]] == [(1, "high"), (2, "low")]


def test_interest_and_logistics_advice(make_poi):
    days = [_day(make_poi, 1, [2.0, 2.0], 0.0, ["heritage", "shopping"])]
    prefs = {"interests": ["Culture", "nature"], "groupType": "family", "tripType": "budget"}
    recs = itinerary_recommendations(_itinerary(days), prefs)
    assert {r["type"] for r in recs["experience"]} == {"cultural", "nature"}
    assert {r["type"] for r in recs["logistics"]} == {"family", "budget"}


def test_data_quality_advisories(make_poi):
    day = _day(make_poi, 1, [2.0])
    ghost = make_poi("ghost", preferred_day=2)
    day.unrouted_points.append(ghost)
    day.bucket_ids.append("ghost")
    itinerary = _itinerary([day])

    recs = itinerary_recommendations(itinerary)
    types = [r["type"] for r in recs["dataQuality"]]
    assert types == ["no_location", "preferred_day"]
    assert "no location available" in recs["dataQuality"][0]["message"]
    # advisory only
    assert itinerary.days[0].bucket_ids == ["d1p0", "ghost"]
