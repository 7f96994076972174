"""AdOrchestrator — OpenWeatherMap Client.

Fetches current conditions for weather-driven data sources. Provider
status codes are translated into readable errors; nothing is retried.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional

import httpx
from pydantic import BaseModel

from adorchestrator.config import settings
from adorchestrator.core.logging import get_logger

logger = get_logger("weather.client")

WEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"
ICON_URL = "https://openweathermap.org/img/wn/{icon}@2x.png"


class WeatherAPIError(Exception):
    """Raised when OpenWeatherMap cannot return current weather."""

    def __init__(self, message: str, status_code: int = 0):
        self.status_code = status_code
        super().__init__(message)


class WeatherData(BaseModel):
    temperature: int
    feels_like: int
    humidity: int
    conditions: str
    description: str
    icon: str
    wind_speed: float
    location: str
    fetched_at: str


def parse_weather_response(data: Dict[str, Any], location: str) -> WeatherData:
    main = data.get("main", {})
    weather = (data.get("weather") or [{}])[0]
    return WeatherData(
        temperature=round(main.get("temp", 0)),
        feels_like=round(main.get("feels_like", 0)),
        humidity=main.get("humidity", 0),
        conditions=weather.get("main") or "Unknown",
        description=weather.get("description") or "Unknown conditions",
        icon=weather.get("icon") or "01d",
        wind_speed=round(data.get("wind", {}).get("speed", 0) * 10) / 10,
        location=data.get("name") or location,
        fetched_at=datetime.now(timezone.utc).isoformat(),
    )


def get_weather_icon_url(icon: str) -> str:
    return ICON_URL.format(icon=icon)


class WeatherClient:
    """Async HTTP client for the OpenWeatherMap current-weather endpoint."""

    def __init__(
        self,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key or settings.openweathermap_api_key
        self._transport = transport

    async def fetch_weather(
        self,
        location: str,
        units: Literal["metric", "imperial"] = "metric",
        api_key: Optional[str] = None,
    ) -> WeatherData:
        """Current weather for ``location``; a per-call key overrides the configured one."""
        key = api_key or self.api_key
        if not key:
            raise WeatherAPIError(
                "OpenWeatherMap API key is required. Set OPENWEATHERMAP_API_KEY "
                "or provide api_key in the data source config."
            )

        params = {"q": location, "units": units, "appid": key}
        try:
            async with httpx.AsyncClient(timeout=15.0, transport=self._transport) as client:
                resp = await client.get(WEATHER_URL, params=params)
        except httpx.RequestError as e:
            raise WeatherAPIError(
                "Failed to fetch weather data. Please check your network connection."
            ) from e

        if resp.status_code == 401:
            raise WeatherAPIError(
                "Invalid API key. Please check your OpenWeatherMap API key.", 401
            )
        if resp.status_code == 404:
            raise WeatherAPIError(
                f'Location not found: "{location}". Please check the city name.', 404
            )
        if resp.status_code == 429:
            raise WeatherAPIError("Rate limit exceeded. Please try again later.", 429)
        if resp.status_code >= 400:
            try:
                message = resp.json().get("message")
            except ValueError:
                message = None
            raise WeatherAPIError(
                message or f"Failed to fetch weather data (status {resp.status_code})",
                resp.status_code,
            )

        weather = parse_weather_response(resp.json(), location)
        logger.info(f"Fetched weather for {weather.location}: {weather.conditions}")
        return weather
