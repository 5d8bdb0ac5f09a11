"""
FastAPI dependencies — hand the objects built in the lifespan to route handlers.
"""

from fastapi import Request

from app.services.history_store import BoundedHistoryStore
from app.services.prediction import PredictionClient
from app.services.weather import WeatherClient


def get_weather_store(request: Request) -> BoundedHistoryStore:
    return request.app.state.weather_store


def get_prediction_store(request: Request) -> BoundedHistoryStore:
    return request.app.state.prediction_store


def get_weather_client(request: Request) -> WeatherClient:
    return request.app.state.weather_client


def get_prediction_client(request: Request) -> PredictionClient:
    return request.app.state.prediction_client
