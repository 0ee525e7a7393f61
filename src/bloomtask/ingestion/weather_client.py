"""
Current-weather client for saved locations.

Primary source is WeatherAPI.com (`current.json`). If the key is rejected (HTTP 403)
the client falls back to OpenWeatherMap (`/data/2.5/weather`, metric units).
Weather is decoration on the saved-locations list, so every other failure is
logged and reported as `None` rather than raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from bloomtask.config.settings import Settings
from bloomtask.core.http import get_json
from bloomtask.domain.models import Coordinate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrentWeather:
    """Current conditions at a coordinate."""

    temp_c: int
    condition: str
    icon_url: str | None
    feels_like_c: int | None
    humidity: float | None
    wind_kph: float | None


def _parse_weatherapi(data: Any) -> CurrentWeather | None:
    current = data.get("current") if isinstance(data, dict) else None
    if not isinstance(current, dict) or current.get("temp_c") is None:
        return None
    condition = current.get("condition")
    if not isinstance(condition, dict):
        condition = {}
    icon = condition.get("icon")
    feels = current.get("feelslike_c")
    return CurrentWeather(
        temp_c=round(float(current["temp_c"])),
        condition=str(condition.get("text") or ""),
        icon_url=f"https:{icon}" if icon else None,
        feels_like_c=round(float(feels)) if feels is not None else None,
        humidity=current.get("humidity"),
        wind_kph=current.get("wind_kph"),
    )


def _parse_openweathermap(data: Any) -> CurrentWeather | None:
    if not isinstance(data, dict):
        return None
    main = data.get("main")
    weather = data.get("weather")
    if not isinstance(main, dict) or main.get("temp") is None:
        return None
    if not isinstance(weather, list) or not weather or not isinstance(weather[0], dict):
        return None
    first = weather[0]
    icon = first.get("icon")
    feels = main.get("feels_like")
    wind = data.get("wind")
    speed = wind.get("speed") if isinstance(wind, dict) else None
    return CurrentWeather(
        temp_c=round(float(main["temp"])),
        condition=str(first.get("main") or ""),
        icon_url=f"https://openweathermap.org/img/wn/{icon}@2x.png" if icon else None,
        feels_like_c=round(float(feels)) if feels is not None else None,
        humidity=main.get("humidity"),
        wind_kph=float(speed) * 3.6 if speed is not None else None,
    )


class WeatherClient:
    """Fetches current weather for a coordinate (WeatherAPI, OpenWeatherMap fallback)."""

    def __init__(self, settings: Settings):
        self._settings = settings
        self._weather = settings.ingestion.weather

    def _fetch_openweathermap(self, coordinate: Coordinate) -> CurrentWeather | None:
        owm = self._weather.openweathermap
        if not owm.api_key:
            logger.warning("OpenWeatherMap fallback skipped: no API key configured")
            return None
        logger.info("Trying OpenWeatherMap fallback for %.4f,%.4f", coordinate.latitude, coordinate.longitude)
        try:
            data = get_json(
                owm.base_url,
                params={
                    "lat": coordinate.latitude,
                    "lon": coordinate.longitude,
                    "units": "metric",
                    "appid": owm.api_key,
                },
                timeout_seconds=self._weather.timeout_seconds,
            )
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Fallback weather API failed: %s", exc)
            return None
        return _parse_openweathermap(data)

    def get_current(self, coordinate: Coordinate) -> CurrentWeather | None:
        """Return current conditions, or None when no provider could answer."""
        api = self._weather.weatherapi
        if not api.api_key:
            return self._fetch_openweathermap(coordinate)

        try:
            data = get_json(
                api.base_url,
                params={"key": api.api_key, "q": f"{coordinate.latitude},{coordinate.longitude}"},
                timeout_seconds=self._weather.timeout_seconds,
            )
        except httpx.HTTPStatusError as exc:
            logger.error("Weather API error (%s)", exc.response.status_code)
            if exc.response.status_code == 403:
                return self._fetch_openweathermap(coordinate)
            return None
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Error fetching weather: %s", exc)
            return None

        summary = _parse_weatherapi(data)
        if summary is None:
            logger.error("Unexpected weather data format")
        return summary
