"""AdOrchestrator — External Data Source Routes."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlmodel import Session, select

from adorchestrator.connectors.weather.client import WeatherAPIError, WeatherClient
from adorchestrator.core.auth import require_user
from adorchestrator.core.logging import get_logger
from adorchestrator.core.validation import parse_uuid
from adorchestrator.database import get_session
from adorchestrator.models.data_source_models import (
    VALID_DATA_SOURCE_TYPES,
    DataSource,
    DataSourceValue,
)
from adorchestrator.models.trigger_models import TriggerRule
from adorchestrator.services.data_source_sync import DataSourceConfigError, sync_data_source

logger = get_logger("api.data_sources")

router = APIRouter(
    prefix="/api/data-sources",
    tags=["Data Sources"],
    dependencies=[Depends(require_user)],
)

INVALID_TYPE_MESSAGE = f"Invalid type. Must be one of: {', '.join(VALID_DATA_SOURCE_TYPES)}"


class DataSourceCreate(BaseModel):
    name: Optional[str] = None
    type: Optional[str] = None
    config: Optional[Dict[str, Any]] = None
    is_active: Optional[bool] = None


class DataSourceUpdate(BaseModel):
    name: Optional[str] = None
    config: Optional[Dict[str, Any]] = None
    is_active: Optional[bool] = None

    model_config = {"extra": "ignore"}


def get_weather_client() -> WeatherClient:
    return WeatherClient()


def _get_source_or_404(session: Session, source_id: str) -> DataSource:
    source = session.get(DataSource, parse_uuid(source_id, "data source ID"))
    if not source:
        raise HTTPException(status_code=404, detail="Data source not found")
    return source


def _with_values(session: Session, source: DataSource) -> dict:
    values = session.exec(
        select(DataSourceValue)
        .where(DataSourceValue.data_source_id == source.id)
        .order_by(DataSourceValue.created_at.asc())  # type: ignore
    ).all()
    return {**source.model_dump(), "values": [v.model_dump() for v in values]}


@router.get("")
async def list_data_sources(
    type: Optional[str] = Query(None),
    session: Session = Depends(get_session),
):
    query = select(DataSource).order_by(DataSource.created_at.desc())  # type: ignore
    if type:
        if type not in VALID_DATA_SOURCE_TYPES:
            raise HTTPException(status_code=400, detail=INVALID_TYPE_MESSAGE)
        query = query.where(DataSource.type == type)
    return session.exec(query).all()


@router.post("", status_code=201)
async def create_data_source(body: DataSourceCreate, session: Session = Depends(get_session)):
    if not body.name:
        raise HTTPException(status_code=400, detail="Name is required")
    if not body.type:
        raise HTTPException(status_code=400, detail="Type is required")
    if body.type not in VALID_DATA_SOURCE_TYPES:
        raise HTTPException(status_code=400, detail=INVALID_TYPE_MESSAGE)

    source = DataSource(
        name=body.name,
        type=body.type,
        config=body.config or {},
        is_active=True if body.is_active is None else body.is_active,
    )
    session.add(source)
    session.commit()
    session.refresh(source)
    return source


@router.get("/{source_id}")
async def get_data_source(source_id: str, session: Session = Depends(get_session)):
    """A data source with its latest synced values."""
    return _with_values(session, _get_source_or_404(session, source_id))


@router.patch("/{source_id}")
async def update_data_source(
    source_id: str,
    body: DataSourceUpdate,
    session: Session = Depends(get_session),
):
    source = _get_source_or_404(session, source_id)
    updates = body.model_dump(exclude_unset=True)
    if "name" in updates and not updates["name"]:
        raise HTTPException(status_code=400, detail="Name is required")

    for field, value in updates.items():
        setattr(source, field, {} if field == "config" and value is None else value)
    source.updated_at = datetime.now(timezone.utc)

    session.add(source)
    session.commit()
    session.refresh(source)
    return _with_values(session, source)


@router.delete("/{source_id}")
async def delete_data_source(source_id: str, session: Session = Depends(get_session)):
    source = _get_source_or_404(session, source_id)
    for model in (DataSourceValue, TriggerRule):
        for row in session.exec(select(model).where(model.data_source_id == source.id)).all():
            session.delete(row)
    session.flush()
    session.delete(source)
    session.commit()
    return {"success": True, "deleted_id": source_id}


@router.post("/{source_id}/sync")
async def sync_source(
    source_id: str,
    session: Session = Depends(get_session),
    weather_client: WeatherClient = Depends(get_weather_client),
):
    """Refresh a data source and return the synced values."""
    source = _get_source_or_404(session, source_id)
    try:
        values = await sync_data_source(session, source, weather_client)
    except DataSourceConfigError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except WeatherAPIError as e:
        session.rollback()
        logger.warning(f"Weather sync failed: {e}", extra={"entity_id": source_id})
        raise HTTPException(
            status_code=400,
            detail={"error": "Failed to fetch weather data", "details": str(e)},
        )

    return {
        "id": source_id,
        "type": source.type,
        "synced_at": source.last_sync_at,
        "values": values,
    }
