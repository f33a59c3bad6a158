"""
modules/validation package — ingestion boundary and input guards.
"""
from routewise.modules.validation.ingestion_validator import (
    TripValidationError,
    ValidationResult,
    extract_location,
    ingest_lodging,
    ingest_point_of_interest,
    ingest_points,
    normalize_coordinates,
    parse_duration_hours,
    parse_trip_dates,
    validate_attraction,
    validate_trip,
)

__all__ = [
    "TripValidationError",
    "ValidationResult",
    "extract_location",
    "ingest_lodging",
    "ingest_point_of_interest",
    "ingest_points",
    "normalize_coordinates",
    "parse_duration_hours",
    "parse_trip_dates",
    "validate_attraction",
    "validate_trip",
]
