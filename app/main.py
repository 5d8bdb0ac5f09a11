"""
FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import (
    CORS_ORIGINS,
    HISTORY_BACKEND,
    HTTP_TIMEOUT,
    LOG_LEVEL,
    PREDICTION_HISTORY_CAPACITY,
    PREDICTION_HISTORY_TABLE,
    WEATHER_HISTORY_CAPACITY,
    WEATHER_HISTORY_TABLE,
)
from app.routes import history, predict, weather
from app.services.database import (
    MemoryHistoryBackend,
    SupabaseHistoryBackend,
    create_supabase_client,
)
from app.services.history_store import BoundedHistoryStore
from app.services.prediction import PredictionClient
from app.services.weather import WeatherClient

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)


def build_history_stores(backend: str = HISTORY_BACKEND) -> tuple[BoundedHistoryStore, BoundedHistoryStore]:
    """Create the (weather, prediction) stores on top of one shared backend handle."""
    if backend == "supabase":
        client = create_supabase_client()
        weather_backend = SupabaseHistoryBackend(client, WEATHER_HISTORY_TABLE)
        prediction_backend = SupabaseHistoryBackend(client, PREDICTION_HISTORY_TABLE)
    elif backend == "memory":
        logger.warning("Using in-memory history; records will not survive a restart.")
        weather_backend = MemoryHistoryBackend(WEATHER_HISTORY_TABLE)
        prediction_backend = MemoryHistoryBackend(PREDICTION_HISTORY_TABLE)
    else:
        raise RuntimeError(f"Unknown HISTORY_BACKEND: {backend!r} (use 'supabase' or 'memory')")

    return (
        BoundedHistoryStore(weather_backend, WEATHER_HISTORY_CAPACITY),
        BoundedHistoryStore(prediction_backend, PREDICTION_HISTORY_CAPACITY),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup — history backend: %s", HISTORY_BACKEND)
    app.state.weather_store, app.state.prediction_store = build_history_stores(HISTORY_BACKEND)

    http = httpx.AsyncClient(timeout=HTTP_TIMEOUT)
    app.state.weather_client = WeatherClient(http)
    app.state.prediction_client = PredictionClient(http)
    logger.info("Startup complete.")
    try:
        yield
    finally:
        await http.aclose()
        logger.info("Application shutting down.")


app = FastAPI(
    title="Weather & Spiral Prediction API",
    description="Weather lookups and spiral-drawing predictions with bounded recent history.",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(weather.router)
app.include_router(predict.router)
app.include_router(history.router)


@app.get("/health")
async def health():
    return {"status": "ok", "history_backend": HISTORY_BACKEND}
