"""
schemas package — dataclasses shared by every planning stage.
"""
from routewise.schemas.itinerary import (
    LODGING_ID,
    DataSource,
    DayPlan,
    GeoPoint,
    Itinerary,
    ItineraryPoint,
    Lodging,
    MealSlot,
    NodeRef,
    PointOfInterest,
    RouteAlgorithm,
    RouteResult,
    RouteSegment,
    ScheduledVisit,
)

__all__ = [
    "LODGING_ID",
    "DataSource",
    "DayPlan",
    "GeoPoint",
    "Itinerary",
    "ItineraryPoint",
    "Lodging",
    "MealSlot",
    "NodeRef",
    "PointOfInterest",
    "RouteAlgorithm",
    "RouteResult",
    "RouteSegment",
    "ScheduledVisit",
]
