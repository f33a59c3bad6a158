"""
Shared fixtures.  The environment is pinned before any routewise import so
config.py never sees a real API key and the JSONL logger stays off.
"""

from __future__ import annotations

import os

os.environ["GOOGLE_MAPS_API_KEY"] = ""
os.environ["STRUCTURED_LOG_ENABLED"] = "false"
os.environ["ROUTE_CACHE_ENABLED"] = "false"

import pytest  # noqa: E402

from routewise.schemas.itinerary import GeoPoint, Lodging, PointOfInterest  # noqa: E402

DELHI_LODGING = (28.6139, 77.2090)

# Four Delhi attractions: two in the north, two in the south.
DELHI_ATTRACTIONS = [
    {"id": "red_fort",     "name": "Red Fort",     "coordinates": [28.6562, 77.2410], "duration": "2 hours", "category": "heritage"},
    {"id": "india_gate",   "name": "India Gate",   "coordinates": {"lat": 28.6129, "lng": 77.2295}, "duration": "1 hour", "category": "monument"},
    {"id": "qutub_minar",  "name": "Qutub Minar",  "location": {"latitude": 28.5245, "longitude": 77.1855}, "duration": "2-3 hours", "category": "heritage"},
    {"id": "lotus_temple", "name": "Lotus Temple", "lat": 28.5535, "lon": 77.2588, "duration": "45 min", "category": "cultural"},
]


@pytest.fixture
def make_poi():
    """Factory: make_poi("a", 0.0, 0.01, hours=1.0)."""
    def _make(pid, lat=None, lon=None, hours=2.0, category=None, preferred_day=None, name=None):
        location = GeoPoint.from_values(lat, lon) if lat is not None else None
        return PointOfInterest(
            id=pid,
            name=name or pid.upper(),
            location=location,
            visit_duration_hours=hours,
            category=category,
            preferred_day=preferred_day,
        )
    return _make


@pytest.fixture
def origin_lodging():
    return Lodging(name="Hotel", location=GeoPoint(0.0, 0.0))


@pytest.fixture
def delhi_lodging():
    return Lodging(name="Hotel Connaught", location=GeoPoint(*DELHI_LODGING))


@pytest.fixture
def delhi_attractions():
    return [dict(a) for a in DELHI_ATTRACTIONS]
