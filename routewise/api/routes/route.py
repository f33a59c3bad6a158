"""
api/routes/route.py
--------------------
Single-route endpoints (no day scheduling):

    POST /v1/route/optimize        nearest-neighbour round trip (or caller order)
    POST /v1/route/shortest-path   Dijkstra between two attraction ids
    GET  /v1/route/details         one leg, live directions or the estimate
    POST /v1/route/distance        consecutive-leg distances for a point list
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field

from routewise.modules.planning.insights import route_insights, route_metrics
from routewise.modules.planning.route_planner import RoutePlanner, route_segment_between
from routewise.modules.tool_usage.directions_tool import DirectionsTool
from routewise.modules.tool_usage.distance_tool import DistanceTool
from routewise.modules.validation.ingestion_validator import (
    TripValidationError,
    ingest_lodging,
    ingest_points,
    normalize_coordinates,
)
from routewise.schemas.itinerary import DataSource, GeoPoint, NodeRef, RouteResult

logger = logging.getLogger(__name__)

router = APIRouter()


# ── Request schemas ────────────────────────────────────────────────────────────

class OptimizeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    attractions: list[dict[str, Any]] = Field(default_factory=list)
    accommodation: Optional[dict[str, Any]] = None
    preserve_order: bool = Field(False, alias="preserveOrder")


class ShortestPathRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    attractions: list[dict[str, Any]] = Field(default_factory=list)
    accommodation: Optional[dict[str, Any]] = None
    start_id: str = Field(..., alias="startId")
    end_id:   str = Field(..., alias="endId")


class DistanceRequest(BaseModel):
    points: list[Any] = Field(..., description="[lat, lng] pairs or {lat, lng} objects")


# ── Helpers ────────────────────────────────────────────────────────────────────

def _parse_query_point(raw: str, name: str) -> GeoPoint:
    point = normalize_coordinates(raw.split(","))
    if point is None:
        raise HTTPException(status_code=422, detail=f"{name}={raw!r} must be 'lat,lng' with valid ranges")
    return point


def _route_response(result: RouteResult) -> dict:
    body = result.to_dict()
    body["metrics"] = route_metrics(result)
    body["insights"] = route_insights(result)
    return body


# ── Endpoints ──────────────────────────────────────────────────────────────────

@router.post("/optimize", summary="Optimise the visiting order for a set of attractions")
def optimize_route(req: OptimizeRequest) -> dict:
    try:
        points = ingest_points(req.attractions)
        lodging = ingest_lodging(req.accommodation)
        result = RoutePlanner.from_config().optimize_route(points, lodging, preserve_order=req.preserve_order)
    except TripValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors) from exc
    except Exception as exc:
        logger.exception("route optimisation failed")
        raise HTTPException(status_code=500, detail=f"Route optimisation error: {exc}") from exc
    return _route_response(result)


@router.post("/shortest-path", summary="Shortest path between two attractions")
def shortest_path(req: ShortestPathRequest) -> dict:
    try:
        points = ingest_points(req.attractions)
        lodging = ingest_lodging(req.accommodation)
        result = RoutePlanner.from_config().point_to_point(points, lodging, req.start_id, req.end_id)
    except TripValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors) from exc
    except Exception as exc:
        logger.exception("shortest path failed")
        raise HTTPException(status_code=500, detail=f"Shortest path error: {exc}") from exc
    return _route_response(result)


@router.get("/details", summary="Directions for a single leg")
def route_details(
    start: str = Query(..., description="lat,lng"),
    end: str = Query(..., description="lat,lng"),
) -> dict:
    origin = _parse_query_point(start, "start")
    destination = _parse_query_point(end, "end")

    segment = route_segment_between(
        NodeRef(id="start", name="Start", location=origin),
        NodeRef(id="end", name="End", location=destination),
    )
    live = DirectionsTool().fetch_live_route(origin, destination)
    if live is not None:
        segment.distance_km = live.distance_km
        segment.duration_minutes = live.duration_minutes
        segment.instructions = list(live.instructions)
        segment.polyline = live.polyline
        segment.source = DataSource.LIVE

    body = segment.to_dict()
    body["polyline"] = segment.polyline
    return body


@router.post("/distance", summary="Distances between consecutive points")
def calculate_distance(req: DistanceRequest) -> dict:
    points = [normalize_coordinates(p) for p in req.points]
    bad = [i for i, p in enumerate(points) if p is None]
    if bad:
        raise HTTPException(status_code=422, detail=[f"points[{i}] is not a valid coordinate" for i in bad])
    if len(points) < 2:
        raise HTTPException(status_code=422, detail=["at least two points are required"])

    tool = DistanceTool()
    matrix = None
    directions = DirectionsTool()
    if len(points) > 2 and directions.available:
        matrix = directions.fetch_distance_matrix(points[:-1], points[1:])

    legs = []
    for i in range(len(points) - 1):
        cell = matrix[i][i] if matrix is not None else None
        if cell is not None:
            km, minutes, source = cell.distance_km, cell.duration_minutes, DataSource.LIVE
        else:
            km = tool.distance_km(points[i], points[i + 1])
            minutes, source = tool.minutes_for_distance(km), DataSource.ESTIMATE
        legs.append({
            "from": points[i].as_list(),
            "to": points[i + 1].as_list(),
            "distance": round(km, 3),
            "duration": round(minutes, 2),
            "source": source.value,
        })

    return {
        "distances": legs,
        "totalDistance": round(sum(leg["distance"] for leg in legs), 3),
        "totalDuration": round(sum(leg["duration"] for leg in legs), 2),
    }
