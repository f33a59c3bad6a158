"""
modules/validation/ingestion_validator.py
------------------------------------------
System boundary: raw request records → canonical dataclasses.

Every coordinate shape accepted from upstream is normalised here into one
``GeoPoint`` (or ``None``); the planning modules never branch on shape.

  POI / lodging records:
    ✓ coordinates as [lat, lng], {lat, lng}, {lat, lon}, {latitude, longitude}
      (either under "coordinates" / "location" or at the top level)
    ✓ latitude in [-90, 90], longitude in [-180, 180], finite, numeric
    ✓ out-of-range / NaN / missing → location=None (never clamped)
    ✓ id defaults to "attraction_<index>", must be unique, "lodging" reserved
    ✓ duration strings ("2-3 hours", "45 min", "Full day") → hours

  Trip:
    ✓ start/end are YYYY-MM-DD dates (or date objects); timestamps rejected
    ✓ start_date <= end_date

Usage:
    from routewise.modules.validation import ingest_points, parse_trip_dates

    points = ingest_points(request_body["attractions"])
    start, end = parse_trip_dates("2024-12-01", "2024-12-03")
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Mapping, Optional, Sequence

from routewise import config
from routewise.schemas.itinerary import LODGING_ID, GeoPoint, Lodging, PointOfInterest

logger = logging.getLogger(__name__)

_INT_RE = re.compile(r"\d+")
_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")
_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")


class TripValidationError(ValueError):
    """Invalid input; rejected before any computation."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


# ── Result dataclass ───────────────────────────────────────────────────────────

@dataclass
class ValidationResult:
    """
    Outcome of a single validation run.

    Attributes:
        valid:  True iff there are zero errors.
        errors: Human-readable list of failure reasons.
        record: The input record dict (for logging purposes).
    """
    valid: bool
    errors: list[str] = field(default_factory=list)
    record: dict = field(default_factory=dict, repr=False)

    def __bool__(self) -> bool:
        return self.valid


# ── Coordinates ────────────────────────────────────────────────────────────────

def _as_number(value: Any) -> Any:
    """Numeric strings ("28.61") are accepted; anything else passes through."""
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return value


def normalize_coordinates(raw: Any) -> Optional[GeoPoint]:
    """Convert any supported coordinate shape to a GeoPoint, else None."""
    if raw is None:
        return None
    if isinstance(raw, GeoPoint):
        return raw
    if isinstance(raw, Mapping):
        for lat_key, lon_key in (("lat", "lng"), ("latitude", "longitude"), ("lat", "lon")):
            if lat_key in raw and lon_key in raw:
                return GeoPoint.from_values(_as_number(raw[lat_key]), _as_number(raw[lon_key]))
        return None
    if isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
        if len(raw) != 2:
            return None
        return GeoPoint.from_values(_as_number(raw[0]), _as_number(raw[1]))
    return None


def extract_location(record: Mapping[str, Any]) -> Optional[GeoPoint]:
    """Find the location of an upstream record, whichever key it lives under."""
    for key in ("coordinates", "location"):
        if record.get(key) is not None:
            return normalize_coordinates(record[key])
    return normalize_coordinates(record)


# ── Duration ───────────────────────────────────────────────────────────────────

def parse_duration_hours(duration: Any) -> float:
    """
    "2-3 hours" → 2.0, "1 hour" → 1.0, "45 min" → 0.75, "Full day" → 8.0.
    Numeric input is taken as hours.  Anything unparseable, non-positive or
    beyond float range → 2.0.

    Minutes are converted rather than read as a bare integer, so "45 min"
    is 0.75 h and not 45 h.
    """
    default = config.DEFAULT_VISIT_HOURS
    if isinstance(duration, bool):
        return default
    if isinstance(duration, (int, float)):
        hours = _optional_float(duration)
        return hours if hours is not None and hours > 0 else default
    if not isinstance(duration, str):
        return default

    text = duration.lower()
    if "hour" in text or "hr" in text:
        return _first_number(_INT_RE, text, default)
    if "min" in text:
        minutes = _first_number(_NUMBER_RE, text, None)
        return round(minutes / 60.0, 2) if minutes is not None else default
    if "day" in text:
        return config.FULL_DAY_VISIT_HOURS
    return _first_number(_INT_RE, text, default)


def _first_number(pattern: re.Pattern, text: str, default: Optional[float]) -> Optional[float]:
    """First match of ``pattern`` as a finite float, else ``default``."""
    match = pattern.search(text)
    value = _optional_float(match.group()) if match else None
    return default if value is None else value


# ── POI validation ─────────────────────────────────────────────────────────────

def validate_attraction(record: Mapping[str, Any]) -> ValidationResult:
    """
    Report why an upstream POI record cannot be routed.

    A failing record is still ingested (with location=None); the result is
    used for diagnostics only.
    """
    errors: list[str] = []

    if extract_location(record) is None:
        errors.append(
            "no usable coordinates (expected [lat, lng] or {lat, lng} with "
            "lat in [-90, 90] and lng in [-180, 180])"
        )

    name = record.get("name", "")
    if not name or not str(name).strip():
        errors.append("name must not be empty or NULL")

    rating = record.get("rating")
    if rating is not None:
        try:
            r = float(rating)
            if not (0.0 <= r <= 5.0):
                errors.append(f"rating={r} is outside valid range [0, 5]")
        except (TypeError, ValueError, OverflowError):
            errors.append(f"rating={rating!r} must be numeric")

    return ValidationResult(valid=len(errors) == 0, errors=errors, record=dict(record))


def _optional_float(value: Any) -> Optional[float]:
    try:
        f = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return f if math.isfinite(f) else None


def _optional_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def ingest_point_of_interest(record: Mapping[str, Any], index: int) -> PointOfInterest:
    """Build one PointOfInterest from an upstream attraction record."""
    if not isinstance(record, Mapping):
        raise TripValidationError([f"attractions[{index}] must be an object"])

    result = validate_attraction(record)
    raw_id = record.get("id")
    point_id = str(raw_id) if raw_id not in (None, "") else f"attraction_{index}"
    name = str(record.get("name") or f"Attraction {index + 1}")
    if not result.valid:
        logger.warning("attraction %r (%s): %s", name, point_id, "; ".join(result.errors))

    category = record.get("category")
    return PointOfInterest(
        id=point_id,
        name=name,
        location=extract_location(record),
        visit_duration_hours=parse_duration_hours(record.get("duration")),
        rating=_optional_float(record.get("rating")),
        category=str(category) if category else None,
        preferred_day=_optional_int(record.get("preferredDay", record.get("preferred_day"))),
    )


def ingest_points(records: Any) -> list[PointOfInterest]:
    """
    Normalise the caller's point list.  Raises TripValidationError for a
    non-list input or duplicate/reserved ids.
    """
    if records is None:
        return []
    if not isinstance(records, list):
        raise TripValidationError(["attractions must be an array"])

    points = [ingest_point_of_interest(r, i) for i, r in enumerate(records)]

    errors: list[str] = []
    seen: set[str] = set()
    for p in points:
        if p.id == LODGING_ID:
            errors.append(f"attraction id {LODGING_ID!r} is reserved for the accommodation")
        elif p.id in seen:
            errors.append(f"duplicate attraction id {p.id!r}")
        seen.add(p.id)
    if errors:
        raise TripValidationError(errors)

    missing = sum(1 for p in points if not p.has_location)
    if missing:
        logger.info("%d/%d attraction(s) have no usable location", missing, len(points))
    return points


def ingest_lodging(record: Any) -> Optional[Lodging]:
    """Accommodation record → Lodging (location may be None), or None if absent."""
    if record is None:
        return None
    if not isinstance(record, Mapping):
        raise TripValidationError(["accommodation must be an object"])
    location = extract_location(record)
    if location is None:
        logger.warning("accommodation %r has no usable location; routes will be open paths",
                       record.get("name"))
    return Lodging(name=str(record.get("name") or "Accommodation"), location=location)


# ── Trip validation ────────────────────────────────────────────────────────────

def _to_date(value: Any) -> date:
    """
    date or "YYYY-MM-DD" → date.  Raises ValueError for anything else,
    datetimes and full timestamps included.
    """
    if isinstance(value, datetime):
        raise ValueError(f"{value!r} carries a time of day")
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not _DATE_RE.fullmatch(text):
        raise ValueError(f"{value!r} is not YYYY-MM-DD")
    return date.fromisoformat(text)


def validate_trip(record: Mapping[str, Any]) -> ValidationResult:
    """
    Validate trip dates.

    Checks:
      - start_date / end_date are ISO-8601 dates (or date objects)
      - end_date >= start_date
    """
    errors: list[str] = []

    start = record.get("start_date")
    end = record.get("end_date")
    if start is None or end is None:
        errors.append("start_date and end_date are required")
        return ValidationResult(valid=False, errors=errors, record=dict(record))

    try:
        start_d = _to_date(start)
        end_d = _to_date(end)
        if end_d < start_d:
            errors.append(f"end_date={end_d} is before start_date={start_d}")
    except ValueError:
        errors.append(
            f"start_date={start!r} or end_date={end!r} is not a valid ISO-8601 date (YYYY-MM-DD)"
        )

    return ValidationResult(valid=len(errors) == 0, errors=errors, record=dict(record))


def parse_trip_dates(start: date | str, end: date | str) -> tuple[date, date]:
    """Return (start, end) as dates or raise TripValidationError."""
    result = validate_trip({"start_date": start, "end_date": end})
    if not result:
        raise TripValidationError(result.errors)
    start_d = _to_date(start)
    end_d = _to_date(end)
    return start_d, end_d
