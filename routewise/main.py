"""
main.py
--------
routewise pipeline entry point.

Stages:
  Stage 1: Ingestion — raw attraction / accommodation records → typed points
  Stage 2: Day scheduling — contiguous day buckets, one route per day
  Stage 3: Insights — totals, day balance, advisories

Run:
  python -m routewise.main

Notes:
  - Without GOOGLE_MAPS_API_KEY every route uses the haversine estimate.
  - Set ROUTE_CACHE_ENABLED=true to reuse live legs through Redis.
"""

from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any, Mapping, Optional

from routewise import config
from routewise.modules.observability.logger import get_event_log
from routewise.modules.planning.day_scheduler import DayScheduler
from routewise.modules.planning.insights import (
    itinerary_insights,
    itinerary_recommendations,
    trip_summary,
)
from routewise.modules.planning.route_planner import RoutePlanner
from routewise.modules.validation.ingestion_validator import ingest_lodging, ingest_points
from routewise.schemas.itinerary import Itinerary

logger = logging.getLogger(__name__)


def serialize_itinerary(itinerary: Itinerary) -> dict:
    return {
        "destination": itinerary.destination,
        "startDate":   itinerary.start_date.isoformat() if itinerary.start_date else None,
        "endDate":     itinerary.end_date.isoformat() if itinerary.end_date else None,
        "generatedAt": itinerary.generated_at,
        "days":        [d.to_dict() for d in itinerary.days],
        "attractions": [p.to_dict() for p in itinerary.points],
    }


def build_itinerary(
    attractions: Any,
    start_date: date | str,
    end_date: date | str,
    accommodation: Optional[Mapping[str, Any]] = None,
    preferences: Optional[Mapping[str, Any]] = None,
    destination: str = "",
    scheduler: DayScheduler | None = None,
) -> Itinerary:
    """Stages 1 + 2.  Raises TripValidationError on bad input."""
    points = ingest_points(attractions)
    lodging = ingest_lodging(accommodation)
    scheduler = scheduler or DayScheduler(RoutePlanner.from_config())
    return scheduler.schedule(
        points,
        start_date,
        end_date,
        lodging=lodging,
        preferences=preferences,
        destination=destination,
    )


def run_pipeline(
    attractions: Any,
    start_date: date | str,
    end_date: date | str,
    accommodation: Optional[Mapping[str, Any]] = None,
    preferences: Optional[Mapping[str, Any]] = None,
    destination: str = "",
    scheduler: DayScheduler | None = None,
) -> dict:
    """
    End-to-end run: ingestion, day scheduling, insights.

    Returns:
        {"itinerary", "insights", "recommendations", "tripSummary"} — plain
        JSON-ready dicts.

    Raises:
        TripValidationError: malformed/reversed dates, non-list attractions,
            duplicate or reserved attraction ids.
    """
    itinerary = build_itinerary(
        attractions, start_date, end_date,
        accommodation=accommodation,
        preferences=preferences,
        destination=destination,
        scheduler=scheduler,
    )
    logger.info(
        "pipeline: %d day(s), %.2f km, %.1f travel min, %d unrouted",
        len(itinerary.days), itinerary.total_distance_km,
        itinerary.total_travel_minutes, len(itinerary.unrouted_ids),
    )
    return {
        "itinerary":       serialize_itinerary(itinerary),
        "insights":        itinerary_insights(itinerary),
        "recommendations": itinerary_recommendations(itinerary, preferences),
        "tripSummary":     trip_summary(itinerary),
    }


def _print_itinerary(result: dict) -> None:
    """Human-readable day-by-day schedule with visit times."""
    width = 52
    it = result["itinerary"]
    print()
    print("═" * width)
    print(f"  YOUR ITINERARY  —  {it['destination'] or 'trip'}  ({len(it['days'])} day(s))")
    print("═" * width)

    for day in it["days"]:
        print(f"\n  Day {day['day']}  —  {day['date']}   [{day['algorithm']}, {day['dataSource']}]")
        print("  " + "─" * (width - 2))
        if not day["schedule"]:
            print("    (no stops scheduled)")
        for visit in day["schedule"]:
            name_col = visit["name"][:28].ljust(28)
            print(f"    {visit['startTime']} – {visit['endTime']}   {name_col}  (+{visit['travelMinutes']} min travel)")
        for meal in day["meals"]:
            print(f"    {meal['time']}           {meal['type']}")
        for p in day["unrouted"]:
            print(f"    --:--           {p['name'][:28].ljust(28)}  ({p['reason']})")
        print(f"    {day['totalDistance']} km, {day['totalTravelTime']} min on the road")

    print()
    print("═" * width)
    summary = result["tripSummary"]
    print(f"  Total distance : {summary['totalDistance']} km")
    print(f"  Travel time    : {summary['totalTravelTime']} min")
    print("═" * width)
    print()


if __name__ == "__main__":
    logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    _demo_attractions = [
        {"id": "red_fort",     "name": "Red Fort",      "coordinates": [28.6562, 77.2410], "duration": "2 hours", "category": "heritage"},
        {"id": "india_gate",   "name": "India Gate",    "coordinates": [28.6129, 77.2295], "duration": "1 hour",  "category": "monument"},
        {"id": "qutub_minar",  "name": "Qutub Minar",   "coordinates": [28.5245, 77.1855], "duration": "2 hours", "category": "heritage"},
        {"id": "lotus_temple", "name": "Lotus Temple",  "coordinates": [28.5535, 77.2588], "duration": "1 hour",  "category": "cultural"},
        {"id": "humayun_tomb", "name": "Humayun's Tomb", "coordinates": [28.5933, 77.2507], "duration": "2 hours", "category": "heritage"},
        {"id": "akshardham",   "name": "Akshardham",    "coordinates": [28.6127, 77.2773], "duration": "3 hours", "category": "cultural"},
        {"id": "chandni_chowk", "name": "Chandni Chowk", "duration": "2 hours", "category": "market"},
    ]
    _result = run_pipeline(
        _demo_attractions,
        "2026-03-01",
        "2026-03-03",
        accommodation={"name": "Hotel Connaught", "coordinates": {"lat": 28.6139, "lng": 77.2090}},
        preferences={"interests": ["culture", "nature"]},
        destination="Delhi",
    )
    _print_itinerary(_result)
    print("RECOMMENDATIONS (JSON):")
    print(json.dumps(_result["recommendations"], indent=2))
    get_event_log().close()
