"""
modules/tool_usage/directions_tool.py
-------------------------------------
Live driving distance/duration backed by the Google Maps web services.

Endpoints:
    GET https://maps.googleapis.com/maps/api/directions/json
        ?origin=lat,lng&destination=lat,lng&mode=driving&key=...
    GET https://maps.googleapis.com/maps/api/distancematrix/json
        ?origins=lat,lng|lat,lng&destinations=...&mode=driving&units=metric&key=...

Response fields used:
    routes[0].legs[0].distance.value   → metres
    routes[0].legs[0].duration.value   → seconds
    routes[0].legs[0].steps[].html_instructions (tags stripped)
    routes[0].overview_polyline.points
    rows[i].elements[j].{status, distance.value, duration.value, duration_in_traffic.value}

Failure policy: every failure (missing key, timeout, HTTP error, non-"OK"
status, malformed payload) is reported as ``Unavailable`` / ``None`` — never
raised.  The caller falls back to DistanceTool for that pair.

Providers are consulted through ``RouteProviderChain`` in priority order; the
first live answer wins and an exhausted chain yields ``NoDataAvailable``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Union

import requests

from routewise import config
from routewise.schemas.itinerary import GeoPoint

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]*>")


# ─────────────────────────────────────────────────────────────────────────────
# Configuration
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RouteProviderConfig:
    """
    Everything the live adapter needs, resolved once at construction time.
    An empty api_key means the provider is unavailable for the whole call.
    """
    api_key: str = ""
    directions_url: str = "https://maps.googleapis.com/maps/api/directions/json"
    distance_matrix_url: str = "https://maps.googleapis.com/maps/api/distancematrix/json"
    directions_timeout_s: float = 15.0
    matrix_timeout_s: float = 10.0
    travel_mode: str = "driving"
    max_concurrency: int = 4
    day_deadline_s: float = 20.0

    @classmethod
    def from_env(cls) -> "RouteProviderConfig":
        return cls(
            api_key=config.GOOGLE_MAPS_API_KEY,
            directions_url=config.DIRECTIONS_URL,
            distance_matrix_url=config.DISTANCE_MATRIX_URL,
            directions_timeout_s=config.DIRECTIONS_TIMEOUT_S,
            matrix_timeout_s=config.DISTANCE_MATRIX_TIMEOUT_S,
            travel_mode=config.ROUTE_TRAVEL_MODE,
            max_concurrency=max(1, config.ROUTE_PROVIDER_MAX_CONCURRENCY),
            day_deadline_s=config.ROUTE_DAY_DEADLINE_S,
        )


# ─────────────────────────────────────────────────────────────────────────────
# Result types
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class LiveRoute:
    """Provider answer for one origin → destination leg."""
    distance_km: float
    duration_minutes: float
    provider: str = "google_directions"
    polyline: Optional[str] = None
    instructions: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "distance_km":      self.distance_km,
            "duration_minutes": self.duration_minutes,
            "provider":         self.provider,
            "polyline":         self.polyline,
            "instructions":     self.instructions,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LiveRoute":
        return cls(
            distance_km=float(data["distance_km"]),
            duration_minutes=float(data["duration_minutes"]),
            provider=str(data.get("provider", "cache")),
            polyline=data.get("polyline"),
            instructions=list(data.get("instructions") or []),
        )


@dataclass(frozen=True)
class MatrixCell:
    distance_km: float
    duration_minutes: float
    duration_in_traffic_minutes: Optional[float] = None


@dataclass(frozen=True)
class Unavailable:
    """A single provider could not answer."""
    provider: str
    reason: str


@dataclass(frozen=True)
class NoDataAvailable:
    """Every candidate provider was exhausted."""
    attempts: tuple[Unavailable, ...] = ()

    @property
    def reason(self) -> str:
        if not self.attempts:
            return "no route providers configured"
        return "; ".join(f"{a.provider}: {a.reason}" for a in self.attempts)


LookupResult = Union[LiveRoute, Unavailable]


class RouteProvider(Protocol):
    name: str

    def lookup(self, origin: GeoPoint, destination: GeoPoint) -> LookupResult:
        ...


# ─────────────────────────────────────────────────────────────────────────────
# Payload parsing
# ─────────────────────────────────────────────────────────────────────────────

def _parse_directions(payload: Any) -> LiveRoute:
    """Raises KeyError/IndexError/TypeError/ValueError on a malformed payload."""
    route = payload["routes"][0]
    leg = route["legs"][0]
    return LiveRoute(
        distance_km=float(leg["distance"]["value"]) / 1000.0,
        duration_minutes=float(leg["duration"]["value"]) / 60.0,
        polyline=(route.get("overview_polyline") or {}).get("points"),
        instructions=[
            {
                "instruction": _TAG_RE.sub("", step.get("html_instructions", "")),
                "distance":    float(step["distance"]["value"]) / 1000.0,
                "duration":    float(step["duration"]["value"]) / 60.0,
            }
            for step in leg.get("steps", [])
        ],
    )


def _parse_matrix_cell(element: Any) -> Optional[MatrixCell]:
    if not isinstance(element, dict) or element.get("status") != "OK":
        return None
    try:
        traffic = element.get("duration_in_traffic")
        return MatrixCell(
            distance_km=float(element["distance"]["value"]) / 1000.0,
            duration_minutes=float(element["duration"]["value"]) / 60.0,
            duration_in_traffic_minutes=(
                float(traffic["value"]) / 60.0 if isinstance(traffic, dict) else None
            ),
        )
    except (KeyError, TypeError, ValueError):
        return None


# ─────────────────────────────────────────────────────────────────────────────
# DirectionsTool
# ─────────────────────────────────────────────────────────────────────────────

class DirectionsTool:
    """Google Directions / Distance Matrix adapter.  Never raises to callers."""

    name = "google_directions"

    def __init__(
        self,
        provider_config: RouteProviderConfig | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.config = provider_config or RouteProviderConfig.from_env()
        self._session = session or requests.Session()
        if not self.config.api_key:
            logger.info("DirectionsTool: no GOOGLE_MAPS_API_KEY configured; live routing disabled")

    @property
    def available(self) -> bool:
        return bool(self.config.api_key)

    # ── single leg ───────────────────────────────────────────────────────────

    def lookup(self, origin: GeoPoint, destination: GeoPoint) -> LookupResult:
        """Typed variant: LiveRoute on success, Unavailable with a reason otherwise."""
        if not self.available:
            return Unavailable(self.name, "missing credentials")
        params = {
            "origin":       origin.as_query(),
            "destination":  destination.as_query(),
            "mode":         self.config.travel_mode,
            "alternatives": "false",
            "key":          self.config.api_key,
        }
        try:
            payload = self._get_json(self.config.directions_url, params, self.config.directions_timeout_s)
        except requests.Timeout:
            return self._fail("timeout", origin, destination)
        except requests.RequestException as exc:
            return self._fail(f"request failed: {exc}", origin, destination)
        except ValueError:
            return self._fail("response is not JSON", origin, destination)

        status = payload.get("status") if isinstance(payload, dict) else None
        if status != "OK":
            return self._fail(f"status={status!r}", origin, destination)
        try:
            return _parse_directions(payload)
        except (KeyError, IndexError, TypeError, ValueError):
            return self._fail("malformed payload", origin, destination)

    def fetch_live_route(self, origin: GeoPoint, destination: GeoPoint) -> Optional[LiveRoute]:
        """LiveRoute, or None on any failure."""
        result = self.lookup(origin, destination)
        return result if isinstance(result, LiveRoute) else None

    # ── batch ────────────────────────────────────────────────────────────────

    def fetch_distance_matrix(
        self,
        origins: list[GeoPoint],
        destinations: list[GeoPoint],
    ) -> Optional[list[list[Optional[MatrixCell]]]]:
        """
        Matrix[i][j] for origins[i] → destinations[j].  Cells the provider could
        not answer are None; a failed call returns None altogether.
        """
        if not self.available or not origins or not destinations:
            return None
        params = {
            "origins":      "|".join(p.as_query() for p in origins),
            "destinations": "|".join(p.as_query() for p in destinations),
            "mode":         self.config.travel_mode,
            "units":        "metric",
            "key":          self.config.api_key,
        }
        try:
            payload = self._get_json(self.config.distance_matrix_url, params, self.config.matrix_timeout_s)
        except (requests.RequestException, ValueError) as exc:
            logger.warning("DistanceMatrix: request failed: %s", exc)
            return None

        if not isinstance(payload, dict) or payload.get("status") != "OK":
            logger.warning("DistanceMatrix: status=%r", payload.get("status") if isinstance(payload, dict) else None)
            return None

        rows = payload.get("rows")
        if not isinstance(rows, list):
            return None
        matrix: list[list[Optional[MatrixCell]]] = []
        for i in range(len(origins)):
            elements = rows[i].get("elements", []) if i < len(rows) and isinstance(rows[i], dict) else []
            matrix.append([
                _parse_matrix_cell(elements[j]) if j < len(elements) else None
                for j in range(len(destinations))
            ])
        return matrix

    # ── internals ────────────────────────────────────────────────────────────

    def _get_json(self, url: str, params: dict, timeout: float) -> Any:
        resp = self._session.get(url, params=params, timeout=timeout)
        resp.raise_for_status()
        return resp.json()

    def _fail(self, reason: str, origin: GeoPoint, destination: GeoPoint) -> Unavailable:
        logger.warning(
            "DirectionsTool: %s for (%.4f,%.4f) -> (%.4f,%.4f)",
            reason, origin.latitude, origin.longitude, destination.latitude, destination.longitude,
        )
        return Unavailable(self.name, reason)


# ─────────────────────────────────────────────────────────────────────────────
# Candidate provider chain
# ─────────────────────────────────────────────────────────────────────────────

class RouteProviderChain:
    """
    Prioritised list of route providers.

    A cache (anything with ``lookup`` and ``store``) is consulted first and is
    written back whenever a later provider answers.
    """

    def __init__(self, providers: list[RouteProvider], cache: Any = None) -> None:
        self.providers = list(providers)
        self.cache = cache

    @property
    def available(self) -> bool:
        return any(getattr(p, "available", True) for p in self.providers)

    def resolve(self, origin: GeoPoint, destination: GeoPoint) -> LiveRoute | NoDataAvailable:
        attempts: list[Unavailable] = []

        if self.cache is not None:
            cached = self.cache.lookup(origin, destination)
            if isinstance(cached, LiveRoute):
                return cached
            attempts.append(cached)

        for provider in self.providers:
            result = provider.lookup(origin, destination)
            if isinstance(result, LiveRoute):
                if self.cache is not None:
                    self.cache.store(origin, destination, result)
                return result
            attempts.append(result)

        return NoDataAvailable(tuple(attempts))
