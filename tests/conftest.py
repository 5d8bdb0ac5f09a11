from __future__ import annotations

from datetime import datetime, timedelta, timezone
from io import BytesIO

import httpx
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from app.dependencies import (
    get_prediction_client,
    get_prediction_store,
    get_weather_client,
    get_weather_store,
)
from app.exceptions import PersistenceError
from app.main import app
from app.services.database import MemoryHistoryBackend
from app.services.history_store import BoundedHistoryStore
from app.services.prediction import PredictionClient
from app.services.weather import WeatherClient

WEATHER_URL = "https://weather.test/data/2.5/weather"
PREDICT_URL = "https://model.test/predict"

LONDON = {
    "name": "London",
    "sys": {"country": "GB"},
    "main": {"temp": 11.2, "humidity": 81},
    "wind": {"speed": 4.6},
    "weather": [{"main": "Clouds", "description": "overcast clouds"}],
}


class StepClock:
    """Deterministic clock: each call is one second after the previous one."""

    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(seconds=1)):
        self.now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current


class FrozenClock:
    def __init__(self, at: datetime):
        self.at = at

    def __call__(self) -> datetime:
        return self.at


class FlakyBackend(MemoryHistoryBackend):
    """Memory backend whose calls can be switched to fail."""

    def __init__(self, name: str = "flaky"):
        super().__init__(name)
        self.fail_writes = False
        self.fail_reads = False
        self.fail_deletes = False

    def add(self, row: dict) -> None:
        if self.fail_writes:
            raise PersistenceError("simulated write failure")
        super().add(row)

    def delete_ids(self, ids: list[str]) -> None:
        if self.fail_deletes:
            raise PersistenceError("simulated delete failure")
        super().delete_ids(ids)

    def newest(self, limit: int) -> list[dict]:
        if self.fail_reads:
            raise PersistenceError("simulated read failure")
        return super().newest(limit)


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def backend() -> FlakyBackend:
    return FlakyBackend("test_history")


@pytest.fixture
def store(backend, clock) -> BoundedHistoryStore:
    return BoundedHistoryStore(backend, capacity=5, clock=clock)


@pytest.fixture
def png_bytes() -> bytes:
    buf = BytesIO()
    Image.new("RGB", (16, 16), color=(255, 255, 255)).save(buf, format="PNG")
    return buf.getvalue()


class FakeUpstream:
    """Routes MockTransport requests to replaceable weather / model handlers."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.weather = lambda request: httpx.Response(200, json=LONDON)
        self.predict = lambda request: httpx.Response(
            200, json={"label": "parkinson", "score": 0.87, "modelVersion": "rf-v2"}
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "weather.test":
            return self.weather(request)
        if request.url.host == "model.test":
            return self.predict(request)
        return httpx.Response(404)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def weather_store() -> BoundedHistoryStore:
    return BoundedHistoryStore(FlakyBackend("weather_history"), capacity=5)


@pytest.fixture
def prediction_store() -> BoundedHistoryStore:
    return BoundedHistoryStore(FlakyBackend("prediction_history"), capacity=100)


@pytest.fixture
def api(monkeypatch, upstream, weather_store, prediction_store):
    monkeypatch.setattr("app.main.HISTORY_BACKEND", "memory")
    http = httpx.AsyncClient(transport=httpx.MockTransport(upstream))
    weather_client = WeatherClient(http, api_key="test-key", base_url=WEATHER_URL)
    prediction_client = PredictionClient(http, endpoint=PREDICT_URL)

    app.dependency_overrides[get_weather_client] = lambda: weather_client
    app.dependency_overrides[get_prediction_client] = lambda: prediction_client
    app.dependency_overrides[get_weather_store] = lambda: weather_store
    app.dependency_overrides[get_prediction_store] = lambda: prediction_store
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
