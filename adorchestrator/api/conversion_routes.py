"""AdOrchestrator — Conversion Event Routes."""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from adorchestrator.core.auth import require_user
from adorchestrator.core.logging import get_logger
from adorchestrator.core.validation import parse_uuid
from adorchestrator.database import get_session
from adorchestrator.models.conversion_models import ConversionEvent
from adorchestrator.services.conversion_sync import get_sync_status, sync_pending_conversions
from adorchestrator.services.conversions import (
    ConversionEventInput,
    generate_event_id,
    prepare_conversion_event,
)

logger = get_logger("api.conversions")

router = APIRouter(
    prefix="/api/conversions",
    tags=["Conversions"],
    dependencies=[Depends(require_user)],
)


# ── Request Models ──


class ConversionSyncUpdate(BaseModel):
    """Sync-state fields a caller may change. Any other key is dropped."""

    sync_status: Optional[str] = None
    sync_error: Optional[str] = None
    synced_at: Optional[datetime] = None
    sync_attempts: Optional[int] = None

    model_config = {"extra": "ignore"}


NON_NULLABLE_SYNC_FIELDS = ("sync_status", "sync_attempts")


# ── Helpers ──


def _get_event_or_404(session: Session, conversion_id: str) -> ConversionEvent:
    event = session.get(ConversionEvent, parse_uuid(conversion_id, "conversion event ID"))
    if not event:
        raise HTTPException(status_code=404, detail="Conversion event not found")
    return event


def _find_by_event_id(session: Session, event_id: str) -> Optional[ConversionEvent]:
    return session.exec(
        select(ConversionEvent).where(ConversionEvent.event_id == event_id)
    ).first()


# ── Endpoints ──


@router.get("")
async def list_conversions(
    status: Optional[str] = Query(None, description="Filter by sync_status"),
    event_name: Optional[str] = Query(None),
    campaign_id: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    session: Session = Depends(get_session),
):
    """List conversion events, newest first, with the total matching count."""
    filters = []
    if status:
        filters.append(ConversionEvent.sync_status == status)
    if event_name:
        filters.append(ConversionEvent.event_name == event_name)
    if campaign_id:
        filters.append(
            ConversionEvent.campaign_id == parse_uuid(campaign_id, "campaign_id")
        )

    count = session.exec(
        select(func.count()).select_from(ConversionEvent).where(*filters)
    ).one()
    data = session.exec(
        select(ConversionEvent)
        .where(*filters)
        .order_by(ConversionEvent.event_time.desc())  # type: ignore
        .offset(offset)
        .limit(limit)
    ).all()

    return {"data": data, "count": count, "limit": limit, "offset": offset}


@router.post("", status_code=201)
async def create_conversion(
    body: ConversionEventInput,
    response: Response,
    session: Session = Depends(get_session),
):
    """Record a conversion event.

    PII is hashed before storage. A repeated ``event_id`` returns the
    stored event with 200 instead of writing a second row.
    """
    if not body.event_name:
        raise HTTPException(status_code=400, detail="event_name is required")

    event_id = body.event_id or generate_event_id(body.event_name)
    existing = _find_by_event_id(session, event_id)
    if existing:
        response.status_code = 200
        return existing

    event = ConversionEvent(**prepare_conversion_event(body.model_copy(update={"event_id": event_id})))
    session.add(event)
    try:
        session.commit()
    except IntegrityError:
        # Lost a race with a concurrent submission of the same event_id.
        session.rollback()
        existing = _find_by_event_id(session, event_id)
        if existing is None:
            raise
        response.status_code = 200
        return existing

    session.refresh(event)
    logger.info(
        f"Conversion event recorded: {event.event_name}",
        extra={"entity_id": str(event.id), "endpoint": "/api/conversions"},
    )
    return event


@router.post("/sync")
async def sync_conversions(
    brand_id: Optional[str] = Query(None),
    session: Session = Depends(get_session),
):
    """Upload pending events to Google Ads for every active CAPI config."""
    brand_uuid = parse_uuid(brand_id, "brand_id") if brand_id else None
    return await sync_pending_conversions(session, brand_id=brand_uuid)


@router.get("/sync")
async def conversion_sync_status(session: Session = Depends(get_session)):
    """Sync state for every CAPI config with pending-event counts."""
    return {"status": get_sync_status(session)}


@router.get("/{conversion_id}")
async def get_conversion(conversion_id: str, session: Session = Depends(get_session)):
    return _get_event_or_404(session, conversion_id)


@router.patch("/{conversion_id}")
async def update_conversion_sync(
    conversion_id: str,
    body: ConversionSyncUpdate,
    session: Session = Depends(get_session),
):
    """Update sync-state fields only. Transitions are not checked."""
    event = _get_event_or_404(session, conversion_id)
    updates = body.model_dump(exclude_unset=True)

    for field in NON_NULLABLE_SYNC_FIELDS:
        if field in updates and updates[field] is None:
            raise HTTPException(status_code=400, detail=f"{field} cannot be null")

    for field, value in updates.items():
        setattr(event, field, value)
    event.updated_at = datetime.now(timezone.utc)

    session.add(event)
    session.commit()
    session.refresh(event)
    return event


@router.delete("/{conversion_id}", status_code=204)
async def delete_conversion(conversion_id: str, session: Session = Depends(get_session)):
    event = _get_event_or_404(session, conversion_id)
    session.delete(event)
    session.commit()
    return Response(status_code=204)
