"""
api/server.py
-------------
FastAPI application entry point.

Run dev server:
    uvicorn routewise.api.server:app --reload --port 8000

Endpoints:
    GET  /v1/health
    POST /v1/itinerary/generate
    POST /v1/route/optimize
    POST /v1/route/shortest-path
    GET  /v1/route/details?start=lat,lng&end=lat,lng
    POST /v1/route/distance
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from routewise import __version__, config
from routewise.api.routes import health, itinerary, route
from routewise.modules.observability.logger import get_event_log

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    get_event_log().close()


app = FastAPI(
    title="routewise Trip Route Optimizer API",
    version=__version__,
    description=(
        "Day scheduling and nearest-neighbour route optimisation for trip itineraries. "
        "Optionally refines leg metrics with Google Directions / Distance Matrix."
    ),
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Allow the web frontend (any origin during development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router,     prefix="/v1",           tags=["Health"])
app.include_router(itinerary.router,  prefix="/v1/itinerary", tags=["Itinerary"])
app.include_router(route.router,      prefix="/v1/route",     tags=["Route"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("routewise.api.server:app", host="0.0.0.0", port=8000, reload=True)
