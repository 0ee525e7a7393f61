# src/bloomtask/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/bloomtask/config/defaults.yaml` (or an external YAML
file via `BLOOMTASK_CONFIG_PATH`), then overridden by a small whitelist of
environment variables (store URL/key, weather API keys, log level).

Design rule:
- Proximity thresholds live in YAML and are passed explicitly to the resolver;
  the resolver itself has no default threshold.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from bloomtask.core.env import load_dotenv_if_present


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `bloomtask.config`."""
    text = resources.files("bloomtask.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "BloomTask"
    timezone: str = "Asia/Singapore"
    http_timeout_seconds: float = 15
    log_level: str = "INFO"


class ProximitySettings(BaseModel):
    locations_threshold_m: float = Field(15, ge=0)
    tasks_threshold_m: float = Field(50, ge=0)


class StoreSettings(BaseModel):
    base_url: str
    api_key: str | None = None
    locations_table: str = "user_locations"
    tasks_table: str = "tasks"


class WeatherApiSettings(BaseModel):
    base_url: str = "https://api.weatherapi.com/v1/current.json"
    api_key: str | None = None


class OpenWeatherMapSettings(BaseModel):
    base_url: str = "https://api.openweathermap.org/data/2.5/weather"
    api_key: str | None = None


class WeatherSettings(BaseModel):
    timeout_seconds: float = 5
    weatherapi: WeatherApiSettings = Field(default_factory=WeatherApiSettings)
    openweathermap: OpenWeatherMapSettings = Field(default_factory=OpenWeatherMapSettings)


class IngestionSettings(BaseModel):
    store: StoreSettings
    weather: WeatherSettings = Field(default_factory=WeatherSettings)


class DigestSettings(BaseModel):
    week_starts_on: int = Field(0, ge=0, le=6)
    top_hours: int = Field(3, ge=1, le=24)


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    proximity: ProximitySettings = Field(default_factory=ProximitySettings)
    ingestion: IngestionSettings
    digest: DigestSettings = Field(default_factory=DigestSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: the whitelist is kept small on purpose; only credentials and the log
    level are read from the environment.
    """
    load_dotenv_if_present()
    data = dict(data)

    log_level = os.getenv("BLOOMTASK_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    ingestion = data.setdefault("ingestion", {})
    store_url = os.getenv("BLOOMTASK_STORE_URL")
    store_key = os.getenv("BLOOMTASK_STORE_KEY")
    if store_url:
        ingestion.setdefault("store", {})["base_url"] = store_url
    if store_key:
        ingestion.setdefault("store", {})["api_key"] = store_key

    weatherapi_key = os.getenv("WEATHERAPI_KEY")
    owm_key = os.getenv("OPENWEATHERMAP_KEY")
    if weatherapi_key:
        ingestion.setdefault("weather", {}).setdefault("weatherapi", {})["api_key"] = weatherapi_key
    if owm_key:
        ingestion.setdefault("weather", {}).setdefault("openweathermap", {})["api_key"] = owm_key

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("BLOOMTASK_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
