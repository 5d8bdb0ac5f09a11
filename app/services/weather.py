"""
Weather service — proxies the OpenWeatherMap current-weather endpoint and
maps its response onto a WeatherReading.
"""

import logging

import httpx

from app.config import WEATHER_API_KEY, WEATHER_API_URL, WEATHER_UNITS
from app.exceptions import WeatherLookupError
from app.models.schemas import WeatherReading

logger = logging.getLogger(__name__)

_GENERIC_ERROR = "Could not fetch weather. Try again."


def parse_reading(data: dict) -> WeatherReading:
    """Pick the fields the app uses out of an OpenWeatherMap payload."""
    try:
        weather = data["weather"][0]
        return WeatherReading(
            city=f"{data['name']}, {data['sys']['country']}",
            temp=data["main"]["temp"],
            humidity=data["main"]["humidity"],
            wind=data["wind"]["speed"],
            condition=weather["main"],
            description=weather["description"],
        )
    except (KeyError, IndexError, TypeError) as exc:
        raise WeatherLookupError(f"Unexpected weather API response: missing {exc}") from exc
    except ValueError as exc:
        raise WeatherLookupError(f"Unexpected weather API response: {exc}") from exc


class WeatherClient:
    def __init__(
        self,
        http: httpx.AsyncClient,
        api_key: str = WEATHER_API_KEY,
        base_url: str = WEATHER_API_URL,
        units: str = WEATHER_UNITS,
    ):
        self._http = http
        self.api_key = api_key
        self.base_url = base_url
        self.units = units

    async def current(self, city: str) -> WeatherReading:
        if not self.api_key:
            raise WeatherLookupError("API key not configured.", status_code=503)

        params = {"q": city, "units": self.units, "appid": self.api_key}
        try:
            response = await self._http.get(self.base_url, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            message = _upstream_message(exc.response)
            logger.info("Weather lookup for %r rejected (%d): %s", city, exc.response.status_code, message)
            status = 404 if exc.response.status_code == 404 else 502
            raise WeatherLookupError(message or _GENERIC_ERROR, status_code=status) from exc
        except httpx.HTTPError as exc:
            logger.error("Weather API unreachable: %s", exc)
            raise WeatherLookupError(_GENERIC_ERROR) from exc

        try:
            data = response.json()
        except ValueError as exc:
            logger.error("Weather API returned a non-JSON body: %s", exc)
            raise WeatherLookupError(_GENERIC_ERROR) from exc
        return parse_reading(data)


def _upstream_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return ""
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return ""
