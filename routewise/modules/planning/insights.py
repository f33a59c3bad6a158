"""
modules/planning/insights.py
-----------------------------
Read-only analysis of a finished itinerary or route.

Nothing here mutates its input: every function returns a fresh dict that the
API layer serialises as-is.  Thresholds:

  Day efficiency   attraction / (attraction + travel)   excellent ≥ 0.8, good ≥ 0.6
  Day load         points per day                        good ≤ 4, moderate ≤ 6, busy
  Diversity        distinct categories                   high ≥ 3, moderate ≥ 2, low
  Route score      mean of (1 - travel/300), (1 - km/200), each floored at 0
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from routewise.schemas.itinerary import DayPlan, Itinerary, RouteResult

# ── Thresholds ────────────────────────────────────────────────────────────────
_LOAD_GOOD_MAX      = 4
_LOAD_MODERATE_MAX  = 6
_PACKED_DAY_HOURS   = 8.0
_LIGHT_DAY_HOURS    = 4.0
_ROUTE_MAX_MINUTES  = 300.0
_ROUTE_MAX_KM       = 200.0
_LONG_ROUTE_MINUTES = 180.0
_LONG_ROUTE_KM      = 100.0
_LONG_LEG_MINUTES   = 60.0


# ── Ratings ───────────────────────────────────────────────────────────────────

def day_efficiency(plan: DayPlan) -> dict:
    attraction = plan.attraction_minutes
    total = attraction + plan.total_travel_minutes
    score = attraction / total if total > 0 else 0.0
    if score >= 0.8:
        rating = "excellent"
    elif score >= 0.6:
        rating = "good"
    else:
        rating = "needs_improvement"
    return {"score": round(score, 3), "rating": rating}


def load_rating(count: float) -> str:
    if count <= _LOAD_GOOD_MAX:
        return "good"
    if count <= _LOAD_MODERATE_MAX:
        return "moderate"
    return "busy"


def diversity_rating(category_count: int) -> str:
    if category_count >= 3:
        return "high"
    if category_count >= 2:
        return "moderate"
    return "low"


def route_efficiency_score(total_travel_minutes: float, total_distance_km: float) -> float:
    time_score = max(0.0, 1.0 - total_travel_minutes / _ROUTE_MAX_MINUTES)
    distance_score = max(0.0, 1.0 - total_distance_km / _ROUTE_MAX_KM)
    return (time_score + distance_score) / 2.0


def route_rating(score: float) -> str:
    if score >= 0.8:
        return "excellent"
    if score >= 0.6:
        return "good"
    if score >= 0.4:
        return "fair"
    return "poor"


# ── Route level ───────────────────────────────────────────────────────────────

def route_insights(result: RouteResult) -> dict:
    """Efficiency, warnings and recommendations for one computed route."""
    stops = len(result.route)
    score = route_efficiency_score(result.total_travel_minutes, result.total_distance_km)
    insights: dict[str, Any] = {
        "efficiency": {
            "averageDistancePerStop": round(result.total_distance_km / stops, 2) if stops else 0.0,
            "totalStops": stops,
            "efficiencyScore": round(score, 3),
            "rating": route_rating(score),
        },
        "recommendations": [],
        "warnings": [],
    }

    if result.total_travel_minutes > _LONG_ROUTE_MINUTES:
        insights["recommendations"].append({
            "type": "travel_time",
            "message": "Consider reducing the number of attractions or staying overnight",
            "priority": "medium",
        })
    if result.total_distance_km > _LONG_ROUTE_KM:
        insights["recommendations"].append({
            "type": "distance",
            "message": "Long distance route - ensure adequate fuel and breaks",
            "priority": "low",
        })

    for index, seg in enumerate(result.route):
        if seg.duration_minutes > _LONG_LEG_MINUTES:
            insights["warnings"].append({
                "type": "long_travel",
                "message": (
                    f"Long travel time between {seg.from_node.name} and {seg.to_node.name} "
                    f"({round(seg.duration_minutes)} minutes)"
                ),
                "segment": index,
            })
    return insights


def route_metrics(result: RouteResult) -> dict:
    return {
        "totalDistance": round(result.total_distance_km, 2),
        "totalTravelTime": round(result.total_travel_minutes, 2),
        "segments": len(result.route),
        "providerBacked": result.provider_backed,
    }


# ── Itinerary level ───────────────────────────────────────────────────────────

def trip_summary(itinerary: Itinerary) -> dict:
    return {
        "destination": itinerary.destination,
        "duration": len(itinerary.days),
        "startDate": itinerary.start_date.isoformat() if itinerary.start_date else None,
        "endDate": itinerary.end_date.isoformat() if itinerary.end_date else None,
        "totalAttractions": len(itinerary.points),
        "routedAttractions": sum(1 for p in itinerary.points if p.routed),
        "totalDistance": round(itinerary.total_distance_km, 2),
        "totalTravelTime": round(itinerary.total_travel_minutes, 2),
        "totalAttractionTime": round(sum(d.attraction_minutes for d in itinerary.days), 2),
    }


def itinerary_insights(itinerary: Itinerary) -> dict:
    """Efficiency, diversity and balance across all days."""
    days = itinerary.days
    total_points = sum(len(d.bucket_ids) for d in days)
    avg_per_day = total_points / len(days) if days else 0.0

    categories: list[str] = []
    for d in days:
        for p in d.points_of_interest + d.unrouted_points:
            if p.category and p.category not in categories:
                categories.append(p.category)

    balances = [
        {
            "day": d.day_number,
            "attractionCount": len(d.bucket_ids),
            "estimatedDuration": round(d.attraction_minutes / 60.0, 2),
            "balance": load_rating(len(d.bucket_ids)),
            "efficiency": day_efficiency(d),
        }
        for d in days
    ]
    if all(b["balance"] == "good" for b in balances):
        overall = "excellent"
    elif all(b["balance"] != "busy" for b in balances):
        overall = "good"
    else:
        overall = "needs_optimization"

    insights: dict[str, Any] = {
        "efficiency": {
            "totalAttractions": total_points,
            "averagePerDay": round(avg_per_day, 1),
            "efficiency": load_rating(avg_per_day),
        },
        "diversity": {
            "categoryCount": len(categories),
            "categories": categories,
            "diversity": diversity_rating(len(categories)),
        },
        "balance": {"dailyBalances": balances, "overallBalance": overall},
        "recommendations": [],
    }

    if insights["efficiency"]["efficiency"] == "busy":
        insights["recommendations"].append({
            "type": "efficiency",
            "message": "Consider reducing attractions per day for a more relaxed experience",
            "priority": "medium",
        })
    if insights["diversity"]["diversity"] == "low":
        insights["recommendations"].append({
            "type": "diversity",
            "message": "Add more variety to your itinerary with different types of attractions",
            "priority": "low",
        })
    if overall == "needs_optimization":
        insights["recommendations"].append({
            "type": "balance",
            "message": "Redistribute attractions across days for better balance",
            "priority": "high",
        })
    return insights


def itinerary_recommendations(
    itinerary: Itinerary,
    preferences: Optional[Mapping[str, Any]] = None,
) -> dict:
    """
    Advisory messages grouped by concern.  Never changes the itinerary:
    preferred-day mismatches and unrouted points are reported, not fixed.
    """
    prefs = preferences or {}
    interests = [str(i).lower() for i in (prefs.get("interests") or [])]
    out: dict[str, list[dict]] = {
        "timeManagement": [],
        "experience": [],
        "logistics": [],
        "dataQuality": [],
    }

    for d in itinerary.days:
        hours = round(d.attraction_minutes / 60.0, 2)
        if hours > _PACKED_DAY_HOURS:
            out["timeManagement"].append({
                "day": d.day_number,
                "message": (
                    f"Day {d.day_number} is packed with activities ({hours:g} hours). "
                    "Consider reducing attractions or extending your stay."
                ),
                "priority": "high",
            })
        elif d.bucket_ids and hours < _LIGHT_DAY_HOURS:
            out["timeManagement"].append({
                "day": d.day_number,
                "message": (
                    f"Day {d.day_number} has light activities ({hours:g} hours). "
                    "You could add more attractions or have a relaxing day."
                ),
                "priority": "low",
            })

    categories = {(p.point.category or "").lower() for p in itinerary.points}
    if "cultural" not in categories and "culture" in interests:
        out["experience"].append({
            "type": "cultural",
            "message": "Consider adding cultural attractions like museums or historical sites",
            "priority": "medium",
        })
    if "nature" not in categories and "nature" in interests:
        out["experience"].append({
            "type": "nature",
            "message": "Consider adding nature attractions like parks or scenic viewpoints",
            "priority": "medium",
        })

    if prefs.get("groupType") == "family":
        out["logistics"].append({
            "type": "family",
            "message": "Ensure attractions are family-friendly and have facilities like restrooms and parking",
            "priority": "medium",
        })
    if prefs.get("tripType") == "budget":
        out["logistics"].append({
            "type": "budget",
            "message": "Consider mixing free attractions with paid ones to manage costs",
            "priority": "high",
        })

    for ip in itinerary.points:
        p = ip.point
        if not p.has_location:
            out["dataQuality"].append({
                "type": "no_location",
                "id": p.id,
                "day": ip.day_number,
                "message": f"{p.name}: no location available; not included in the route",
                "priority": "medium",
            })
        if p.preferred_day is not None and ip.day_number is not None and p.preferred_day != ip.day_number:
            out["dataQuality"].append({
                "type": "preferred_day",
                "id": p.id,
                "day": ip.day_number,
                "message": f"{p.name} was requested for day {p.preferred_day} but is scheduled on day {ip.day_number}",
                "priority": "low",
            })
    return out
