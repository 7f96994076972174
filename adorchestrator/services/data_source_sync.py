"""AdOrchestrator — Data Source Sync."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from sqlmodel import Session, select

from adorchestrator.connectors.weather.client import WeatherClient, get_weather_icon_url
from adorchestrator.core.logging import get_logger
from adorchestrator.models.data_source_models import (
    DataSource,
    DataSourceType,
    DataSourceValue,
)

logger = get_logger("services.data_source_sync")

WEATHER_TTL = timedelta(minutes=30)


class DataSourceConfigError(Exception):
    """The data source's stored config cannot be synced."""


async def _sync_weather(
    session: Session, source: DataSource, client: WeatherClient
) -> Dict[str, Any]:
    config = source.config or {}
    location = config.get("location")
    if not location:
        raise DataSourceConfigError("Weather data source requires a location")

    units = config.get("units") or "metric"
    weather = await client.fetch_weather(location, units, config.get("api_key"))

    expires_at = datetime.now(timezone.utc) + WEATHER_TTL
    values = {
        "current": weather.model_dump(),
        "temperature": {
            "value": weather.temperature,
            "unit": "F" if units == "imperial" else "C",
        },
        "conditions": {
            "main": weather.conditions,
            "description": weather.description,
            "icon_url": get_weather_icon_url(weather.icon),
        },
    }

    stale = session.exec(
        select(DataSourceValue).where(DataSourceValue.data_source_id == source.id)
    ).all()
    for row in stale:
        session.delete(row)
    for key, value in values.items():
        session.add(
            DataSourceValue(
                data_source_id=source.id, key=key, value=value, expires_at=expires_at
            )
        )
    return values


async def sync_data_source(
    session: Session,
    source: DataSource,
    weather_client: Optional[WeatherClient] = None,
) -> Dict[str, Any]:
    """Refresh ``source`` and return the synced values.

    Raises DataSourceConfigError for unusable configs and WeatherAPIError
    for weather provider failures.
    """
    if source.type == DataSourceType.WEATHER.value:
        values = await _sync_weather(session, source, weather_client or WeatherClient())
    elif source.type == DataSourceType.CALENDAR.value:
        values = {"events": (source.config or {}).get("events", [])}
    elif source.type == DataSourceType.CUSTOM.value:
        values = {"data": (source.config or {}).get("data", {})}
    else:
        raise DataSourceConfigError(f"Unknown data source type: {source.type}")

    now = datetime.now(timezone.utc)
    source.last_sync_at = now
    source.updated_at = now
    session.add(source)
    session.commit()
    logger.info(f"Synced {source.type} data source", extra={"entity_id": str(source.id)})
    return values
