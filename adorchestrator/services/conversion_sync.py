"""AdOrchestrator — Conversion Sync Orchestrator.

For each active CAPI config:
  pending events (oldest first, up to batch_size) → queued → upload → sent | failed
and the config's last-sync fields are stamped.
"""

import uuid
from collections import Counter
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel
from sqlmodel import Session, select

from adorchestrator.connectors.google_ads.client import GoogleAdsClient
from adorchestrator.core.logging import get_logger
from adorchestrator.models.brand_models import Brand
from adorchestrator.models.conversion_models import (
    CAPIConfig,
    ConversionEvent,
    SyncStatus,
)

logger = get_logger("services.conversion_sync")


class BrandSyncResult(BaseModel):
    brand_id: uuid.UUID
    brand_name: str
    events_processed: int = 0
    success_count: int = 0
    failure_count: int = 0
    errors: List[str] = []


class SyncSummary(BaseModel):
    total_processed: int = 0
    total_success: int = 0
    total_failure: int = 0


class SyncRunResult(BaseModel):
    message: str
    summary: SyncSummary = SyncSummary()
    results: List[BrandSyncResult] = []


class BrandSyncStatus(BaseModel):
    brand_id: uuid.UUID
    brand_name: str
    is_active: bool
    last_sync_at: Optional[datetime] = None
    last_sync_status: Optional[str] = None
    last_sync_count: Optional[int] = None
    pending_events: int = 0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _brand_name(session: Session, brand_id: uuid.UUID) -> str:
    brand = session.get(Brand, brand_id)
    return brand.name if brand else "Unknown"


async def _sync_config(
    session: Session, client: GoogleAdsClient, config: CAPIConfig
) -> BrandSyncResult:
    result = BrandSyncResult(
        brand_id=config.brand_id, brand_name=_brand_name(session, config.brand_id)
    )

    events = session.exec(
        select(ConversionEvent)
        .where(
            ConversionEvent.brand_id == config.brand_id,
            ConversionEvent.sync_status == SyncStatus.PENDING.value,
        )
        .order_by(ConversionEvent.event_time.asc())  # type: ignore
        .limit(config.batch_size)
    ).all()

    if not events:
        return result

    now = _utcnow()
    for event in events:
        event.sync_status = SyncStatus.QUEUED.value
        event.updated_at = now
        session.add(event)
    session.commit()

    upload = await client.upload_conversions(config, list(events))

    now = _utcnow()
    for event in events:
        # Per-row outcomes are not reported back, so one success marks the batch sent.
        if upload.success_count > 0:
            event.sync_status = SyncStatus.SENT.value
            event.synced_at = now
            event.sync_error = None
        else:
            event.sync_status = SyncStatus.FAILED.value
            event.sync_error = "; ".join(upload.errors) or "Upload failed"
        event.sync_attempts = (event.sync_attempts or 0) + 1
        event.updated_at = now
        session.add(event)

    config.last_sync_at = now
    config.last_sync_status = "success" if upload.success else "partial_failure"
    config.last_sync_count = len(events)
    config.updated_at = now
    session.add(config)
    session.commit()

    result.events_processed = len(events)
    result.success_count = upload.success_count
    result.failure_count = upload.failure_count
    result.errors = upload.errors
    return result


def _fail_queued(session: Session, config: CAPIConfig, error: str) -> BrandSyncResult:
    """Move a crashed batch from queued to failed so it is not stranded."""
    events = session.exec(
        select(ConversionEvent).where(
            ConversionEvent.brand_id == config.brand_id,
            ConversionEvent.sync_status == SyncStatus.QUEUED.value,
        )
    ).all()

    now = _utcnow()
    for event in events:
        event.sync_status = SyncStatus.FAILED.value
        event.sync_error = error
        event.sync_attempts = (event.sync_attempts or 0) + 1
        event.updated_at = now
        session.add(event)

    config.last_sync_at = now
    config.last_sync_status = "partial_failure"
    config.last_sync_count = len(events)
    config.updated_at = now
    session.add(config)
    session.commit()

    return BrandSyncResult(
        brand_id=config.brand_id,
        brand_name=_brand_name(session, config.brand_id),
        events_processed=len(events),
        failure_count=len(events),
        errors=[error],
    )


async def sync_pending_conversions(
    session: Session,
    brand_id: Optional[uuid.UUID] = None,
    client: Optional[GoogleAdsClient] = None,
) -> SyncRunResult:
    """Push pending events of every active config (or one brand's) to Google Ads."""
    client = client or GoogleAdsClient()

    query = select(CAPIConfig).where(CAPIConfig.is_active == True)  # noqa: E712
    if brand_id:
        query = query.where(CAPIConfig.brand_id == brand_id)
    configs = session.exec(query).all()

    if not configs:
        return SyncRunResult(message="No active CAPI configurations found")

    results: List[BrandSyncResult] = []
    for config in configs:
        try:
            results.append(await _sync_config(session, client, config))
        except Exception as e:
            session.rollback()
            logger.error(
                f"Conversion sync failed: {e}",
                exc_info=True,
                extra={"brand_id": str(config.brand_id)},
            )
            results.append(_fail_queued(session, config, str(e)))

    summary = SyncSummary(
        total_processed=sum(r.events_processed for r in results),
        total_success=sum(r.success_count for r in results),
        total_failure=sum(r.failure_count for r in results),
    )
    logger.info(
        f"Sync complete: {summary.total_success}/{summary.total_processed} events sent"
    )
    return SyncRunResult(
        message=f"Sync complete: {summary.total_success}/{summary.total_processed} events sent",
        summary=summary,
        results=results,
    )


def get_sync_status(session: Session) -> List[BrandSyncStatus]:
    """Per-config sync state with the number of events still pending."""
    configs = session.exec(
        select(CAPIConfig).order_by(CAPIConfig.last_sync_at.desc())  # type: ignore
    ).all()
    pending = Counter(
        session.exec(
            select(ConversionEvent.brand_id).where(
                ConversionEvent.sync_status == SyncStatus.PENDING.value
            )
        ).all()
    )
    return [
        BrandSyncStatus(
            brand_id=c.brand_id,
            brand_name=_brand_name(session, c.brand_id),
            is_active=c.is_active,
            last_sync_at=c.last_sync_at,
            last_sync_status=c.last_sync_status,
            last_sync_count=c.last_sync_count,
            pending_events=pending.get(c.brand_id, 0),
        )
        for c in configs
    ]
