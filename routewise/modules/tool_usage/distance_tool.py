"""
modules/tool_usage/distance_tool.py
-------------------------------------
Travel-distance and travel-time estimator using the Haversine formula with a
linear minutes-per-kilometre model.  No external HTTP calls are made.

This is the authoritative fallback whenever no live provider answer is
available (see directions_tool.py).

Config knob (config.py):
  ESTIMATE_MINUTES_PER_KM -- linear time model (default: 2.0 ≈ 30 km/h)
"""

from __future__ import annotations
import math
import logging
from typing import Optional

from routewise import config
from routewise.schemas.itinerary import GeoPoint

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Pure maths
# ---------------------------------------------------------------------------

_EARTH_RADIUS_KM = 6371.0


def haversine_km(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance between two points (Haversine formula) in km."""
    if a == b:
        return 0.0
    r = _EARTH_RADIUS_KM
    phi1, phi2 = math.radians(a.latitude), math.radians(b.latitude)
    d_phi = math.radians(b.latitude - a.latitude)
    d_lam = math.radians(b.longitude - a.longitude)
    h = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lam / 2) ** 2
    )
    # min() guards asin against float drift just above 1.0 for antipodes
    return 2 * r * math.asin(min(1.0, math.sqrt(h)))


def estimate_travel_minutes(distance_km: float, minutes_per_km: Optional[float] = None) -> float:
    """Linear distance → minutes estimate (2 min/km unless overridden)."""
    rate = config.ESTIMATE_MINUTES_PER_KM if minutes_per_km is None else minutes_per_km
    return max(distance_km, 0.0) * rate


# ---------------------------------------------------------------------------
# DistanceTool
# ---------------------------------------------------------------------------


class DistanceTool:
    """
    Computes distances and travel times between GeoPoints using the Haversine
    formula plus a linear speed model (config.ESTIMATE_MINUTES_PER_KM).
    No external HTTP calls are made.
    """

    def __init__(self, minutes_per_km: Optional[float] = None) -> None:
        self.minutes_per_km: float = (
            config.ESTIMATE_MINUTES_PER_KM if minutes_per_km is None else minutes_per_km
        )

    def distance_km(self, a: GeoPoint, b: GeoPoint) -> float:
        return haversine_km(a, b)

    def minutes_for_distance(self, distance_km: float) -> float:
        return estimate_travel_minutes(distance_km, self.minutes_per_km)

    def distance_matrix(self, points: list[GeoPoint]) -> list[list[float]]:
        """Full n x n distance matrix [km], row = origin; used by build_graph()."""
        return [
            [0.0 if i == j else haversine_km(p, q) for j, q in enumerate(points)]
            for i, p in enumerate(points)
        ]
