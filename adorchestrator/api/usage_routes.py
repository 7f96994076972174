"""AdOrchestrator — Usage & Dashboard Routes."""

from collections import Counter

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select

from adorchestrator.core.auth import require_user
from adorchestrator.database import get_session
from adorchestrator.models.asset_models import Asset
from adorchestrator.models.brand_models import Brand
from adorchestrator.models.campaign_models import Campaign, Prompt
from adorchestrator.models.conversion_models import ConversionEvent, SyncStatus
from adorchestrator.models.usage_models import UsageStats
from adorchestrator.services.usage import get_usage_stats

router = APIRouter(prefix="/api", tags=["Usage"], dependencies=[Depends(require_user)])


@router.get("/usage", response_model=UsageStats)
async def usage(
    days: int = Query(30, ge=1, le=365),
    session: Session = Depends(get_session),
):
    """External API usage and estimated cost over the last ``days`` days."""
    return get_usage_stats(session, days)


@router.get("/dashboard")
async def dashboard(session: Session = Depends(get_session)):
    """Headline counts for the dashboard home page."""
    brands = session.exec(select(Brand).order_by(Brand.created_at.desc())).all()  # type: ignore
    campaigns = session.exec(
        select(Campaign).order_by(Campaign.created_at.desc())  # type: ignore
    ).all()
    campaign_statuses = Counter(c.status for c in campaigns)
    prompt_total = len(session.exec(select(Prompt.id)).all())
    asset_statuses = Counter(session.exec(select(Asset.status)).all())
    sync_statuses = Counter(session.exec(select(ConversionEvent.sync_status)).all())
    stats = get_usage_stats(session, 30)

    return {
        "brands": {
            "total": len(brands),
            "recent": [
                {"id": b.id, "name": b.name, "created_at": b.created_at} for b in brands[:5]
            ],
        },
        "campaigns": {
            "total": len(campaigns),
            "by_status": [
                {"status": status, "count": count}
                for status, count in campaign_statuses.most_common()
            ],
            "recent": [
                {"id": c.id, "name": c.name, "status": c.status, "created_at": c.created_at}
                for c in campaigns[:5]
            ],
        },
        "assets": {
            "total": sum(asset_statuses.values()),
            "by_status": [
                {"status": status, "count": count}
                for status, count in asset_statuses.most_common()
            ],
        },
        "prompts": {"total": prompt_total},
        "conversions": {
            "total": sum(sync_statuses.values()),
            "pending": sync_statuses.get(SyncStatus.PENDING.value, 0),
            "sent": sync_statuses.get(SyncStatus.SENT.value, 0),
            "failed": sync_statuses.get(SyncStatus.FAILED.value, 0),
        },
        "api_usage": {
            "total_requests": stats.total_requests,
            "total_tokens": stats.total_tokens,
            "total_cost_usd": stats.total_cost_usd,
        },
    }
