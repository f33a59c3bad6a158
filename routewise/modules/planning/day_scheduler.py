"""
modules/planning/day_scheduler.py
-----------------------------------
Multi-day scheduler: splits the selected points into per-day buckets and asks
RoutePlanner for each day's route.

Per trip:
  1. number_of_days = max(1, end - start in whole days); start > end is rejected.
  2. Buckets are contiguous blocks of ceil(P / N) points in input order.
     N * ceil(P / N) >= P, so no point is dropped; trailing days may be
     short or empty.
  3. Each bucket's points with a location are routed (round trip from the
     lodging); days run concurrently and are reassembled in day order.
  4. Visits are timed inside the day window and meal slots are attached.

Preferred days are never used for bucketing; see insights.py for the
advisories built from them.
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Mapping, Optional

from routewise import config
from routewise.modules.observability.logger import get_event_log
from routewise.modules.planning.route_planner import RoutePlanner
from routewise.modules.validation.ingestion_validator import TripValidationError, parse_trip_dates
from routewise.schemas.itinerary import (
    DayPlan,
    Itinerary,
    ItineraryPoint,
    Lodging,
    MealSlot,
    NodeRef,
    PointOfInterest,
    ScheduledVisit,
)

logger = logging.getLogger(__name__)
_events = get_event_log()


# ── Module-level time helpers ─────────────────────────────────────────────────

def _t2m(t: time) -> int:
    """Convert a time object to integer minutes-from-midnight."""
    return t.hour * 60 + t.minute


def _m2t(mins: float) -> time:
    """Convert minutes-from-midnight to a time object (clamped to [0, 1439])."""
    mins = max(0, min(int(round(mins)), 23 * 60 + 59))
    return time(mins // 60, mins % 60)


def _parse_hhmm(value: Any, field_name: str) -> time:
    if isinstance(value, time):
        return value
    try:
        hh, mm = str(value).split(":", 1)
        return time(int(hh), int(mm))
    except ValueError:
        raise TripValidationError([f"{field_name}={value!r} is not a HH:MM time"]) from None


# ── Pure helpers ──────────────────────────────────────────────────────────────

def number_of_days(start: date, end: date) -> int:
    """Whole days between start and end, at least 1.  Raises on start > end."""
    if start > end:
        raise TripValidationError([f"end_date={end} is before start_date={start}"])
    return max(1, (end - start).days)


def bucket_points(points: list[PointOfInterest], days: int) -> list[list[PointOfInterest]]:
    """
    Contiguous blocks of ceil(P / days) points; always ``days`` buckets.

    7 points over 3 days → sizes [3, 3, 1]; 2 points over 3 days → [1, 1, 0].
    """
    if days < 1:
        raise ValueError("days must be >= 1")
    size = math.ceil(len(points) / days) if points else 0
    if size == 0:
        return [[] for _ in range(days)]
    return [points[i * size:(i + 1) * size] for i in range(days)]


# ── DayScheduler ──────────────────────────────────────────────────────────────

class DayScheduler:
    """
    Builds an Itinerary from a flat selection of points.

    Args:
        route_planner: Shared RoutePlanner (stateless between calls).
        max_workers:   Days routed in parallel.
    """

    def __init__(
        self,
        route_planner: RoutePlanner | None = None,
        max_workers: Optional[int] = None,
    ) -> None:
        self.route_planner = route_planner or RoutePlanner()
        self.max_workers = max(1, max_workers or config.SCHEDULER_MAX_WORKERS)
        self.day_start  = _parse_hhmm(config.DAY_START, "DAY_START")
        self.day_end    = _parse_hhmm(config.DAY_END, "DAY_END")
        self.lunch_at   = _parse_hhmm(config.LUNCH_TIME, "LUNCH_TIME")
        self.dinner_at  = _parse_hhmm(config.DINNER_TIME, "DINNER_TIME")

    def schedule(
        self,
        points: list[PointOfInterest],
        start_date: date | str,
        end_date: date | str,
        lodging: Optional[Lodging] = None,
        preferences: Optional[Mapping[str, Any]] = None,
        destination: str = "",
    ) -> Itinerary:
        """
        Assign points to days and route every day.

        preferences may override the day window via ``dayStart`` / ``dayEnd``
        (HH:MM).  Everything else in it is advisory and read by insights.py.

        Raises:
            TripValidationError: malformed or reversed dates, bad window.
        """
        start, end = parse_trip_dates(start_date, end_date)
        days = number_of_days(start, end)

        prefs = preferences or {}
        window_start = _parse_hhmm(prefs.get("dayStart", self.day_start), "dayStart")
        window_end   = _parse_hhmm(prefs.get("dayEnd", self.day_end), "dayEnd")
        if _t2m(window_end) <= _t2m(window_start):
            raise TripValidationError([f"dayEnd={window_end} must be after dayStart={window_start}"])

        buckets = bucket_points(points, days)
        logger.info("scheduling %d point(s) over %d day(s): bucket sizes %s",
                    len(points), days, [len(b) for b in buckets])

        with _events.timed("DayScheduler.schedule", days=days, points=len(points)), \
                ThreadPoolExecutor(max_workers=min(self.max_workers, days)) as pool:
            futures = [
                pool.submit(
                    self._plan_day, n + 1, start + timedelta(days=n), bucket,
                    lodging, window_start, window_end,
                )
                for n, bucket in enumerate(buckets)
            ]
            day_plans = [f.result() for f in futures]

        day_of = {pid: plan.day_number for plan in day_plans for pid in plan.bucket_ids}
        on_route = {
            node.id
            for plan in day_plans for seg in plan.route
            for node in (seg.from_node, seg.to_node)
        }
        itinerary_points = [
            ItineraryPoint(point=p, day_number=day_of.get(p.id), routed=p.id in on_route)
            for p in points
        ]
        return Itinerary(
            days=day_plans,
            points=itinerary_points,
            start_date=start,
            end_date=end,
            destination=destination,
            lodging=lodging,
            generated_at=datetime.now(timezone.utc).isoformat(),
        )

    # ── One day ──────────────────────────────────────────────────────────────

    def _plan_day(
        self,
        day_number: int,
        day_date: date,
        bucket: list[PointOfInterest],
        lodging: Optional[Lodging],
        window_start: time,
        window_end: time,
    ) -> DayPlan:
        routable = [p for p in bucket if p.has_location]
        plan = DayPlan(
            day_number=day_number,
            date=day_date,
            bucket_ids=[p.id for p in bucket],
            unrouted_points=[p for p in bucket if not p.has_location],
            lodging_ref=NodeRef.of(lodging) if lodging is not None and lodging.has_location else None,
            day_start=window_start,
            day_end=window_end,
        )
        if not routable:
            return plan

        result = self.route_planner.optimize_route(routable, lodging)
        by_id = {p.id: p for p in routable}
        ordered_ids = result.visit_order or [p.id for p in routable]

        plan.points_of_interest = [by_id[pid] for pid in ordered_ids]
        plan.route = result.route
        plan.total_distance_km = result.total_distance_km
        plan.total_travel_minutes = result.total_travel_minutes
        plan.algorithm = result.algorithm
        plan.data_source = result.data_source

        self._time_visits(plan, window_start)
        return plan

    def _time_visits(self, plan: DayPlan, window_start: time) -> None:
        """arrival = previous departure + inbound travel; departure = arrival + visit."""
        inbound = {seg.to_node.id: seg.duration_minutes for seg in plan.route}
        cursor = float(_t2m(window_start))
        for p in plan.points_of_interest:
            travel = inbound.get(p.id, 0.0)
            arrival = cursor + travel
            departure = arrival + p.visit_duration_hours * 60.0
            plan.visits.append(ScheduledVisit(
                point_id=p.id,
                name=p.name,
                arrival_time=_m2t(arrival),
                departure_time=_m2t(departure),
                travel_minutes_before=travel,
            ))
            cursor = departure

        if plan.route and plan.lodging_ref is not None and plan.route[-1].to_node.id == plan.lodging_ref.id:
            cursor += plan.route[-1].duration_minutes

        if plan.day_end is not None and cursor > _t2m(plan.day_end):
            logger.info("day %d runs until %s, past its %s window end", plan.day_number,
                        _m2t(cursor).strftime("%H:%M"), plan.day_end.strftime("%H:%M"))

        start_m = _t2m(window_start)
        if start_m < _t2m(self.lunch_at) < cursor:
            plan.meals.append(MealSlot("lunch", self.lunch_at))
        if start_m < _t2m(self.dinner_at) < cursor:
            plan.meals.append(MealSlot("dinner", self.dinner_at))
