"""
/api/weather/{city} — current weather via the upstream API, logged to history.
/api/history        — the most recent weather lookups.
"""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool

from app.config import WEATHER_HISTORY_LIMIT
from app.dependencies import get_weather_client, get_weather_store
from app.exceptions import WeatherLookupError
from app.models.schemas import HistoryResponse, WeatherResponse
from app.services.history_store import BoundedHistoryStore, Logged, recent_safely, record_safely
from app.services.weather import WeatherClient

router = APIRouter(prefix="/api", tags=["weather"])


@router.get("/weather/{city}", response_model=WeatherResponse)
async def weather(
    city: str,
    client: WeatherClient = Depends(get_weather_client),
    store: BoundedHistoryStore = Depends(get_weather_store),
):
    try:
        reading = await client.current(city)
    except WeatherLookupError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)

    # Save to history (best effort; the reading is returned either way)
    outcome = Logged(
        result=reading,
        history=await run_in_threadpool(
            record_safely,
            store,
            reading.city,
            {
                "temp": reading.temp,
                "humidity": reading.humidity,
                "wind": reading.wind,
                "condition": reading.condition,
            },
        ),
    )

    return WeatherResponse(
        **outcome.result.model_dump(),
        history_id=outcome.history.record.id if outcome.history.recorded else None,
    )


@router.get("/history", response_model=HistoryResponse)
async def history(store: BoundedHistoryStore = Depends(get_weather_store)):
    records = await run_in_threadpool(recent_safely, store, WEATHER_HISTORY_LIMIT)
    return HistoryResponse(data=records, count=len(records))
