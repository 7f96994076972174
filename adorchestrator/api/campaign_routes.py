"""AdOrchestrator — Campaign Routes.

Campaigns belong to a product and carry a goal; their prompts are listed
with them but written elsewhere.
"""

from collections import Counter
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlmodel import Session, select

from adorchestrator.core.auth import require_user
from adorchestrator.core.logging import get_logger
from adorchestrator.core.validation import parse_uuid
from adorchestrator.database import get_session
from adorchestrator.models.asset_models import Asset
from adorchestrator.models.brand_models import Product
from adorchestrator.models.campaign_models import (
    VALID_CAMPAIGN_STATUSES,
    VALID_GOALS,
    Campaign,
    CampaignWithCount,
    CampaignWithPrompts,
    Prompt,
)

logger = get_logger("api.campaigns")

router = APIRouter(
    prefix="/api/campaigns",
    tags=["Campaigns"],
    dependencies=[Depends(require_user)],
)

INVALID_GOAL_MESSAGE = f"Invalid goal. Must be one of: {', '.join(VALID_GOALS)}"
INVALID_STATUS_MESSAGE = f"Invalid status. Must be one of: {', '.join(VALID_CAMPAIGN_STATUSES)}"


class CampaignCreate(BaseModel):
    name: Optional[str] = None
    product_id: Optional[str] = None
    goal: Optional[str] = None


class CampaignUpdate(BaseModel):
    name: Optional[str] = None
    goal: Optional[str] = None
    status: Optional[str] = None

    model_config = {"extra": "ignore"}


# ── Helpers ──


def _with_prompts(session: Session, campaign: Campaign) -> CampaignWithPrompts:
    prompts = session.exec(
        select(Prompt)
        .where(Prompt.campaign_id == campaign.id)
        .order_by(Prompt.created_at.asc())  # type: ignore
    ).all()
    return CampaignWithPrompts(**campaign.model_dump(), prompts=prompts)


def _get_campaign_or_404(session: Session, campaign_id: str) -> Campaign:
    campaign = session.get(Campaign, parse_uuid(campaign_id, "campaign ID"))
    if not campaign:
        raise HTTPException(status_code=404, detail="Campaign not found")
    return campaign


def delete_campaign_rows(session: Session, campaign: Campaign) -> None:
    """Delete a campaign with its prompts and assets. Caller commits."""
    for model in (Asset, Prompt):
        for row in session.exec(select(model).where(model.campaign_id == campaign.id)).all():
            session.delete(row)
    session.flush()
    session.delete(campaign)


# ── Endpoints ──


@router.get("", response_model=List[CampaignWithCount])
async def list_campaigns(
    product_id: Optional[str] = Query(None),
    session: Session = Depends(get_session),
):
    query = select(Campaign).order_by(Campaign.created_at.desc())  # type: ignore
    if product_id:
        query = query.where(Campaign.product_id == parse_uuid(product_id, "product_id"))
    campaigns = session.exec(query).all()
    if not campaigns:
        return []

    counts = Counter(
        session.exec(
            select(Prompt.campaign_id).where(
                Prompt.campaign_id.in_([c.id for c in campaigns])  # type: ignore
            )
        ).all()
    )
    return [
        CampaignWithCount(**c.model_dump(), prompt_count=counts.get(c.id, 0))
        for c in campaigns
    ]


@router.post("", status_code=201, response_model=CampaignWithCount)
async def create_campaign(body: CampaignCreate, session: Session = Depends(get_session)):
    if not body.name:
        raise HTTPException(status_code=400, detail="Name is required")
    if not body.product_id:
        raise HTTPException(status_code=400, detail="product_id is required")
    product_id = parse_uuid(body.product_id, "product_id")
    if not body.goal:
        raise HTTPException(status_code=400, detail="Goal is required")
    if body.goal not in VALID_GOALS:
        raise HTTPException(status_code=400, detail=INVALID_GOAL_MESSAGE)

    if not session.get(Product, product_id):
        raise HTTPException(status_code=404, detail="Product not found")

    campaign = Campaign(name=body.name, product_id=product_id, goal=body.goal)
    session.add(campaign)
    session.commit()
    session.refresh(campaign)
    logger.info(f"Campaign created: {campaign.name}", extra={"entity_id": str(campaign.id)})
    return CampaignWithCount(**campaign.model_dump(), prompt_count=0)


@router.get("/{campaign_id}", response_model=CampaignWithPrompts)
async def get_campaign(campaign_id: str, session: Session = Depends(get_session)):
    return _with_prompts(session, _get_campaign_or_404(session, campaign_id))


@router.patch("/{campaign_id}", response_model=CampaignWithPrompts)
async def update_campaign(
    campaign_id: str,
    body: CampaignUpdate,
    session: Session = Depends(get_session),
):
    campaign = _get_campaign_or_404(session, campaign_id)
    updates = body.model_dump(exclude_unset=True)

    if "name" in updates and not updates["name"]:
        raise HTTPException(status_code=400, detail="Name is required")
    if "goal" in updates and updates["goal"] not in VALID_GOALS:
        raise HTTPException(status_code=400, detail=INVALID_GOAL_MESSAGE)
    if "status" in updates and updates["status"] not in VALID_CAMPAIGN_STATUSES:
        raise HTTPException(status_code=400, detail=INVALID_STATUS_MESSAGE)

    for field, value in updates.items():
        setattr(campaign, field, value)
    campaign.updated_at = datetime.now(timezone.utc)

    session.add(campaign)
    session.commit()
    session.refresh(campaign)
    return _with_prompts(session, campaign)


@router.delete("/{campaign_id}")
async def delete_campaign(campaign_id: str, session: Session = Depends(get_session)):
    campaign = _get_campaign_or_404(session, campaign_id)
    delete_campaign_rows(session, campaign)
    session.commit()
    return {"success": True, "deleted_id": campaign_id}
