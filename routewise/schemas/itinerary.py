"""
schemas/itinerary.py
--------------------
Dataclass definitions for the routing inputs and the itinerary output.

Coordinates are normalised into ``GeoPoint`` at the ingestion boundary
(modules/validation); nothing below this module branches on coordinate shape.
A point whose coordinates are missing or malformed carries ``location=None``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, time
from enum import Enum
from typing import Any, Optional

LODGING_ID = "lodging"   # reserved node id for the day's anchor


class RouteAlgorithm(str, Enum):
    """Which code path produced a route."""
    NEAREST_NEIGHBOR = "nearest_neighbor"
    SIMPLE_PATH      = "simple_path"
    DIJKSTRA         = "dijkstra"
    NONE             = "none"


class DataSource(str, Enum):
    """Where a route's distance/duration figures came from."""
    ESTIMATE = "estimate"   # haversine + linear speed model only
    LIVE     = "live"       # every segment answered by a live provider
    MIXED    = "mixed"      # some live, some estimated


# ─────────────────────────────────────────────────────────────────────────────
# Geography
# ─────────────────────────────────────────────────────────────────────────────

def _is_coordinate(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # int beyond float range
        return False


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float

    @classmethod
    def from_values(cls, latitude: Any, longitude: Any) -> Optional["GeoPoint"]:
        """
        Return a GeoPoint, or None when either value is missing, non-numeric,
        NaN/inf, or out of range.  Never clamps.
        """
        if not (_is_coordinate(latitude) and _is_coordinate(longitude)):
            return None
        if not (-90.0 <= latitude <= 90.0 and -180.0 <= longitude <= 180.0):
            return None
        return cls(float(latitude), float(longitude))

    def as_list(self) -> list[float]:
        return [self.latitude, self.longitude]

    def as_query(self) -> str:
        """``lat,lng`` as expected by the Google Maps web services."""
        return f"{self.latitude},{self.longitude}"


@dataclass(frozen=True)
class PointOfInterest:
    """
    One selectable stop.  Immutable for the duration of an optimisation call.

    location is None when the upstream record had no usable coordinates; such
    points are never routed but stay visible in the itinerary.
    """
    id: str
    name: str
    location: Optional[GeoPoint] = None
    visit_duration_hours: float = 2.0
    rating: Optional[float] = None
    category: Optional[str] = None
    preferred_day: Optional[int] = None   # hint only; never load-bearing

    @property
    def has_location(self) -> bool:
        return self.location is not None

    def to_dict(self) -> dict:
        return {
            "id":                   self.id,
            "name":                 self.name,
            "coordinates":          self.location.as_list() if self.location else None,
            "visitDurationHours":   self.visit_duration_hours,
            "rating":               self.rating,
            "category":             self.category,
            "preferredDay":         self.preferred_day,
        }


@dataclass(frozen=True)
class Lodging:
    name: str = "Accommodation"
    location: Optional[GeoPoint] = None
    id: str = LODGING_ID

    @property
    def has_location(self) -> bool:
        return self.location is not None


@dataclass(frozen=True)
class NodeRef:
    """A graph endpoint with a validated location."""
    id: str
    name: str
    location: GeoPoint

    @classmethod
    def of(cls, item: PointOfInterest | Lodging) -> "NodeRef":
        if item.location is None:
            raise ValueError(f"{item.id!r} has no valid location and cannot be a route node")
        return cls(id=item.id, name=item.name, location=item.location)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "coordinates": self.location.as_list()}


# ─────────────────────────────────────────────────────────────────────────────
# Routes
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class RouteSegment:
    from_node: NodeRef
    to_node: NodeRef
    distance_km: float
    duration_minutes: float
    source: DataSource = DataSource.ESTIMATE
    instructions: list[dict] = field(default_factory=list)
    polyline: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "from": self.from_node.to_dict(),
            "to":   self.to_node.to_dict(),
            "route": {
                "distance":     round(self.distance_km, 3),
                "duration":     round(self.duration_minutes, 2),
                "instructions": list(self.instructions),
                "source":       self.source.value,
            },
        }


@dataclass
class RouteResult:
    """
    One computed route plus diagnostics.

    algorithm   — which path produced the order (never a provider tag).
    data_source — whether any segment metric came from a live provider.
    """
    route: list[RouteSegment] = field(default_factory=list)
    total_distance_km: float = 0.0
    total_travel_minutes: float = 0.0
    algorithm: RouteAlgorithm = RouteAlgorithm.NONE
    data_source: DataSource = DataSource.ESTIMATE
    visit_order: list[str] = field(default_factory=list)   # point ids, lodging excluded
    excluded_ids: list[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def provider_backed(self) -> bool:
        return self.data_source is not DataSource.ESTIMATE

    def recompute_totals(self) -> None:
        self.total_distance_km = sum(s.distance_km for s in self.route)
        self.total_travel_minutes = sum(s.duration_minutes for s in self.route)

    def to_dict(self) -> dict:
        out = {
            "route":         [s.to_dict() for s in self.route],
            "totalDistance": round(self.total_distance_km, 2),
            "totalTime":     round(self.total_travel_minutes, 2),
            "algorithm":     self.algorithm.value,
            "dataSource":    self.data_source.value,
            "visitOrder":    list(self.visit_order),
            "excludedIds":   list(self.excluded_ids),
        }
        if self.error:
            out["error"] = self.error
        return out


# ─────────────────────────────────────────────────────────────────────────────
# Itinerary
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class ScheduledVisit:
    """A timed stop inside a day's window."""
    point_id: str
    name: str
    arrival_time: time
    departure_time: time
    travel_minutes_before: float = 0.0

    def to_dict(self) -> dict:
        return {
            "id":            self.point_id,
            "name":          self.name,
            "startTime":     self.arrival_time.strftime("%H:%M"),
            "endTime":       self.departure_time.strftime("%H:%M"),
            "travelMinutes": round(self.travel_minutes_before, 1),
        }


@dataclass
class MealSlot:
    meal_type: str      # "lunch" | "dinner"
    at: time

    def to_dict(self) -> dict:
        return {"type": self.meal_type, "time": self.at.strftime("%H:%M")}


@dataclass
class DayPlan:
    """One calendar day of the trip."""
    day_number: int = 0
    date: Optional[date] = None
    points_of_interest: list[PointOfInterest] = field(default_factory=list)  # route order
    bucket_ids: list[str] = field(default_factory=list)                      # scheduler assignment
    unrouted_points: list[PointOfInterest] = field(default_factory=list)     # no usable location
    lodging_ref: Optional[NodeRef] = None
    route: list[RouteSegment] = field(default_factory=list)
    total_distance_km: float = 0.0
    total_travel_minutes: float = 0.0
    algorithm: RouteAlgorithm = RouteAlgorithm.NONE
    data_source: DataSource = DataSource.ESTIMATE
    day_start: Optional[time] = None
    day_end: Optional[time] = None
    visits: list[ScheduledVisit] = field(default_factory=list)
    meals: list[MealSlot] = field(default_factory=list)

    @property
    def attraction_minutes(self) -> float:
        return sum(p.visit_duration_hours for p in self.points_of_interest) * 60.0

    def to_dict(self) -> dict:
        return {
            "day":              self.day_number,
            "date":             self.date.isoformat() if self.date else None,
            "attractions":      [p.to_dict() for p in self.points_of_interest],
            "unrouted":         [
                {**p.to_dict(), "routeContribution": False, "reason": "no location available"}
                for p in self.unrouted_points
            ],
            "lodging":          self.lodging_ref.to_dict() if self.lodging_ref else None,
            "route":            [s.to_dict() for s in self.route],
            "totalDistance":    round(self.total_distance_km, 2),
            "totalTravelTime":  round(self.total_travel_minutes, 2),
            "algorithm":        self.algorithm.value,
            "dataSource":       self.data_source.value,
            "timeWindow": {
                "start": self.day_start.strftime("%H:%M") if self.day_start else None,
                "end":   self.day_end.strftime("%H:%M") if self.day_end else None,
            },
            "schedule":         [v.to_dict() for v in self.visits],
            "meals":            [m.to_dict() for m in self.meals],
        }


@dataclass
class ItineraryPoint:
    """Every input point, routed or not, so the UI can flag missing locations."""
    point: PointOfInterest
    day_number: Optional[int] = None
    routed: bool = False

    def to_dict(self) -> dict:
        out = {**self.point.to_dict(), "day": self.day_number, "routeContribution": self.routed}
        if not self.routed and not self.point.has_location:
            out["reason"] = "no location available"
        return out


@dataclass
class Itinerary:
    """Top-level output; regenerated in full whenever the selection changes."""
    days: list[DayPlan] = field(default_factory=list)
    points: list[ItineraryPoint] = field(default_factory=list)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    destination: str = ""
    lodging: Optional[Lodging] = None
    generated_at: str = ""   # ISO-8601 timestamp

    @property
    def total_distance_km(self) -> float:
        return sum(d.total_distance_km for d in self.days)

    @property
    def total_travel_minutes(self) -> float:
        return sum(d.total_travel_minutes for d in self.days)

    @property
    def unrouted_ids(self) -> list[str]:
        return [p.point.id for p in self.points if not p.routed]
