"""
config.py
---------
Central configuration for the routewise engine.
All secrets loaded from environment variables — never hard-coded.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (if it exists) so env vars in that file are
# picked up by os.getenv() below.  Never overrides vars already set in the shell.
_env_path = Path(__file__).resolve().parent.parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path, override=False)


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


# ── Google Maps (Directions + Distance Matrix) ───────────────────────────────
# Obtain at: https://console.cloud.google.com/apis/credentials
# Enable:  Directions API  +  Distance Matrix API
# Absent key → live routing disabled, haversine estimate used everywhere.
GOOGLE_MAPS_API_KEY: str = os.getenv("GOOGLE_MAPS_API_KEY", "")
DIRECTIONS_URL: str      = os.getenv("DIRECTIONS_URL", "https://maps.googleapis.com/maps/api/directions/json")
DISTANCE_MATRIX_URL: str = os.getenv("DISTANCE_MATRIX_URL", "https://maps.googleapis.com/maps/api/distancematrix/json")
DIRECTIONS_TIMEOUT_S: float      = float(os.getenv("DIRECTIONS_TIMEOUT_S", "15"))
DISTANCE_MATRIX_TIMEOUT_S: float = float(os.getenv("DISTANCE_MATRIX_TIMEOUT_S", "10"))
ROUTE_TRAVEL_MODE: str = os.getenv("ROUTE_TRAVEL_MODE", "driving")

# Third-party rate limit guard: max in-flight lookups per day route
ROUTE_PROVIDER_MAX_CONCURRENCY: int = int(os.getenv("ROUTE_PROVIDER_MAX_CONCURRENCY", "4"))
# Hard deadline for all live lookups of one day's route (seconds)
ROUTE_DAY_DEADLINE_S: float = float(os.getenv("ROUTE_DAY_DEADLINE_S", "20"))

# ── Local estimator ──────────────────────────────────────────────────────────
# 2 min/km ≈ 30 km/h urban driving
ESTIMATE_MINUTES_PER_KM: float = float(os.getenv("ESTIMATE_MINUTES_PER_KM", "2.0"))

# ── Day scheduling (HH:MM, local trip time) ─────────────────────────────────
DAY_START: str   = os.getenv("DAY_START", "09:00")
DAY_END: str     = os.getenv("DAY_END", "18:00")
LUNCH_TIME: str  = os.getenv("LUNCH_TIME", "12:00")
DINNER_TIME: str = os.getenv("DINNER_TIME", "19:00")
DEFAULT_VISIT_HOURS: float = float(os.getenv("DEFAULT_VISIT_HOURS", "2"))
FULL_DAY_VISIT_HOURS: float = float(os.getenv("FULL_DAY_VISIT_HOURS", "8"))
# Worker threads used to route independent days in parallel
SCHEDULER_MAX_WORKERS: int = int(os.getenv("SCHEDULER_MAX_WORKERS", "4"))

# ── Redis route cache (optional) ─────────────────────────────────────────────
ROUTE_CACHE_ENABLED: bool = _flag("ROUTE_CACHE_ENABLED", "false")
REDIS_HOST: str     = os.getenv("REDIS_HOST",     "localhost")
REDIS_PORT: int     = int(os.getenv("REDIS_PORT", "6379"))
REDIS_DB: int       = int(os.getenv("REDIS_DB",   "0"))
REDIS_PASSWORD: str = os.getenv("REDIS_PASSWORD", "")
# Live leg TTL: 24 hours — provider durations drift with traffic patterns
ROUTE_CACHE_TTL: int = int(os.getenv("ROUTE_CACHE_TTL", "86400"))

# ── Observability ────────────────────────────────────────────────────────────
STRUCTURED_LOG_ENABLED: bool = _flag("STRUCTURED_LOG_ENABLED", "true")
LOGS_DIR: str = os.getenv("LOGS_DIR", str(Path(__file__).resolve().parent.parent / "logs"))
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
