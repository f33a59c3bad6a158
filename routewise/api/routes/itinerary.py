"""
api/routes/itinerary.py
------------------------
POST /v1/itinerary/generate

Runs ingestion → day scheduling → insights and returns the itinerary JSON.
The whole itinerary is regenerated on every call; nothing is stored.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from routewise.main import run_pipeline
from routewise.modules.validation.ingestion_validator import TripValidationError

logger = logging.getLogger(__name__)

router = APIRouter()


# ── Request schema ─────────────────────────────────────────────────────────────

class GenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    destination: str = ""
    start_date: str = Field(..., alias="startDate", description="ISO-8601 date YYYY-MM-DD")
    end_date:   str = Field(..., alias="endDate",   description="ISO-8601 date YYYY-MM-DD")
    attractions: list[dict[str, Any]] = Field(default_factory=list)
    accommodation: Optional[dict[str, Any]] = None
    user_preferences: dict[str, Any] = Field(default_factory=dict, alias="userPreferences")


# ── Endpoint ───────────────────────────────────────────────────────────────────

@router.post("/generate", summary="Generate a multi-day itinerary")
def generate_itinerary(req: GenerateRequest) -> dict:
    """
    Splits the attractions into day buckets, routes each day as a round trip
    from the accommodation, and adds insights and recommendations.

    Attractions without a usable location stay in the response, flagged with
    ``routeContribution: false``.
    """
    try:
        return run_pipeline(
            req.attractions,
            req.start_date,
            req.end_date,
            accommodation=req.accommodation,
            preferences=req.user_preferences,
            destination=req.destination,
        )
    except TripValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors) from exc
    except Exception as exc:
        logger.exception("itinerary generation failed")
        raise HTTPException(status_code=500, detail=f"Pipeline error: {exc}") from exc
