"""
db/redis_client.py
-------------------
redis-py client — singleton plus the live-route cache.

Key schema:

  route:{origin_lat},{origin_lng}:{dest_lat},{dest_lng}:{mode}
       Type : String (JSON-encoded LiveRoute)
       TTL  : ROUTE_CACHE_TTL  (default 86,400 s = 24 hours)

Coordinates are rounded to 5 decimals (~1 m) in the key.

Environment variables (set in config.py):
    ROUTE_CACHE_ENABLED default: false
    REDIS_HOST          default: localhost
    REDIS_PORT          default: 6379
    REDIS_DB            default: 0
    REDIS_PASSWORD      default: ""  (empty = no auth)
    ROUTE_CACHE_TTL     default: 86400
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import redis

from routewise import config
from routewise.modules.tool_usage.directions_tool import LiveRoute, LookupResult, Unavailable
from routewise.schemas.itinerary import GeoPoint

logger = logging.getLogger(__name__)

# Module-level singleton; initialised lazily on first call to get_redis()
_client: redis.Redis | None = None


def get_redis() -> redis.Redis:
    """Return the singleton Redis client, creating it on first call."""
    global _client
    if _client is None:
        kwargs: dict[str, Any] = {
            "host":             config.REDIS_HOST,
            "port":             config.REDIS_PORT,
            "db":               config.REDIS_DB,
            "decode_responses": True,   # return str, not bytes
        }
        if config.REDIS_PASSWORD:
            kwargs["password"] = config.REDIS_PASSWORD
        _client = redis.Redis(**kwargs)
    return _client


def _route_key(origin: GeoPoint, destination: GeoPoint, mode: str) -> str:
    return (
        f"route:{origin.latitude:.5f},{origin.longitude:.5f}:"
        f"{destination.latitude:.5f},{destination.longitude:.5f}:{mode}"
    )


class RouteCache:
    """
    Live-route cache used as the first provider in a RouteProviderChain.
    Redis errors are reported as Unavailable; the cache never breaks routing.
    """

    name = "redis_cache"

    def __init__(
        self,
        client: Optional[redis.Redis] = None,
        ttl: Optional[int] = None,
        mode: Optional[str] = None,
    ) -> None:
        self._client = client
        self.ttl = config.ROUTE_CACHE_TTL if ttl is None else ttl
        self.mode = mode or config.ROUTE_TRAVEL_MODE

    @property
    def client(self) -> redis.Redis:
        return self._client if self._client is not None else get_redis()

    def lookup(self, origin: GeoPoint, destination: GeoPoint) -> LookupResult:
        try:
            raw = self.client.get(_route_key(origin, destination, self.mode))
        except redis.RedisError as exc:
            logger.warning("RouteCache: lookup failed: %s", exc)
            return Unavailable(self.name, f"redis error: {exc}")
        if raw is None:
            return Unavailable(self.name, "cache miss")
        try:
            return LiveRoute.from_dict(json.loads(raw))
        except (KeyError, TypeError, ValueError):
            return Unavailable(self.name, "corrupt cache entry")

    def store(self, origin: GeoPoint, destination: GeoPoint, route: LiveRoute) -> None:
        try:
            self.client.set(
                _route_key(origin, destination, self.mode),
                json.dumps(route.to_dict()),
                ex=self.ttl,
            )
        except redis.RedisError as exc:
            logger.warning("RouteCache: store failed: %s", exc)
