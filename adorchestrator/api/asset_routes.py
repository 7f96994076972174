"""AdOrchestrator — Creative Asset Routes."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select

from adorchestrator.core.auth import require_user
from adorchestrator.core.logging import get_logger
from adorchestrator.core.validation import parse_uuid
from adorchestrator.database import get_session
from adorchestrator.models.asset_models import VALID_PLATFORMS, Asset

logger = get_logger("api.assets")

router = APIRouter(
    prefix="/api/assets",
    tags=["Assets"],
    dependencies=[Depends(require_user)],
)


@router.get("")
async def list_assets(
    campaign_id: Optional[str] = Query(None),
    prompt_id: Optional[str] = Query(None),
    platform: Optional[str] = Query(None),
    session: Session = Depends(get_session),
):
    """List assets, newest first, optionally filtered by campaign, prompt or platform."""
    query = select(Asset).order_by(Asset.created_at.desc())  # type: ignore

    if campaign_id:
        query = query.where(Asset.campaign_id == parse_uuid(campaign_id, "campaign_id"))
    if prompt_id:
        query = query.where(Asset.prompt_id == parse_uuid(prompt_id, "prompt_id"))
    if platform:
        if platform not in VALID_PLATFORMS:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid platform. Must be one of: {', '.join(VALID_PLATFORMS)}",
            )
        query = query.where(Asset.platform == platform)

    return session.exec(query).all()


@router.get("/{asset_id}")
async def get_asset(asset_id: str, session: Session = Depends(get_session)):
    asset = session.get(Asset, parse_uuid(asset_id, "asset ID"))
    if not asset:
        raise HTTPException(status_code=404, detail="Asset not found")
    return asset


@router.delete("/{asset_id}")
async def delete_asset(asset_id: str, session: Session = Depends(get_session)):
    asset = session.get(Asset, parse_uuid(asset_id, "asset ID"))
    if not asset:
        raise HTTPException(status_code=404, detail="Asset not found")

    session.delete(asset)
    session.commit()
    logger.info("Asset deleted", extra={"entity_id": asset_id})
    return {"success": True, "deleted_id": asset_id}
