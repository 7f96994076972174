"""AdOrchestrator — Conversions API (CAPI) Config Routes.

Tokens are write-only: responses carry ``has_access_token`` /
``has_refresh_token`` flags instead of the values.
"""

import re
from datetime import datetime, timezone
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from adorchestrator.core.auth import require_user
from adorchestrator.core.logging import get_logger
from adorchestrator.core.validation import parse_uuid
from adorchestrator.database import get_session
from adorchestrator.models.brand_models import Brand
from adorchestrator.models.conversion_models import BrandRef, CAPIConfig, CAPIConfigPublic

logger = get_logger("api.capi")

router = APIRouter(
    prefix="/api/capi-configs",
    tags=["CAPI Configs"],
    dependencies=[Depends(require_user)],
)

DUPLICATE_CONFIG_MESSAGE = "CAPI config already exists for this brand. Use PATCH to update."


# ── Request Models ──


class CAPIConfigCreate(BaseModel):
    brand_id: Optional[str] = None
    customer_id: Optional[Union[str, int]] = None
    conversion_action_id: Optional[Union[str, int]] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None


class CAPIConfigUpdate(BaseModel):
    """Fields a caller may change. Any other key is dropped."""

    customer_id: Optional[Union[str, int]] = None
    conversion_action_id: Optional[Union[str, int]] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    is_active: Optional[bool] = None
    batch_size: Optional[int] = Field(None, ge=1, le=2000)
    sync_interval_minutes: Optional[int] = Field(None, ge=1)

    model_config = {"extra": "ignore"}


NON_NULLABLE_FIELDS = (
    "customer_id",
    "conversion_action_id",
    "is_active",
    "batch_size",
    "sync_interval_minutes",
)


# ── Helpers ──


def normalize_customer_id(customer_id: Union[str, int]) -> str:
    """Google Ads customer IDs are shown as 123-456-7890 but sent as digits."""
    return re.sub(r"[\s-]", "", str(customer_id))


def _brand_ref(session: Session, brand_id) -> Optional[BrandRef]:
    brand = session.get(Brand, brand_id)
    return BrandRef(id=brand.id, name=brand.name) if brand else None


def _public(session: Session, config: CAPIConfig) -> CAPIConfigPublic:
    return CAPIConfigPublic.from_config(config, _brand_ref(session, config.brand_id))


def _get_config_or_404(session: Session, config_id: str) -> CAPIConfig:
    config = session.get(CAPIConfig, parse_uuid(config_id, "CAPI config ID"))
    if not config:
        raise HTTPException(status_code=404, detail="CAPI config not found")
    return config


# ── Endpoints ──


@router.get("", response_model=list[CAPIConfigPublic])
async def list_capi_configs(session: Session = Depends(get_session)):
    configs = session.exec(
        select(CAPIConfig).order_by(CAPIConfig.created_at.desc())  # type: ignore
    ).all()
    return [_public(session, c) for c in configs]


@router.post("", status_code=201, response_model=CAPIConfigPublic)
async def create_capi_config(body: CAPIConfigCreate, session: Session = Depends(get_session)):
    """Create the (single) CAPI config of a brand."""
    if not body.brand_id or not body.customer_id or not body.conversion_action_id:
        raise HTTPException(
            status_code=400,
            detail="brand_id, customer_id, and conversion_action_id are required",
        )
    brand_id = parse_uuid(body.brand_id, "brand_id")
    if not session.get(Brand, brand_id):
        raise HTTPException(status_code=404, detail="Brand not found")

    existing = session.exec(
        select(CAPIConfig.id).where(CAPIConfig.brand_id == brand_id)
    ).first()
    if existing:
        raise HTTPException(status_code=409, detail=DUPLICATE_CONFIG_MESSAGE)

    config = CAPIConfig(
        brand_id=brand_id,
        customer_id=normalize_customer_id(body.customer_id),
        conversion_action_id=str(body.conversion_action_id),
        access_token=body.access_token or None,
        refresh_token=body.refresh_token or None,
    )
    session.add(config)
    try:
        session.commit()
    except IntegrityError:
        # The unique constraint on brand_id catches concurrent creations.
        session.rollback()
        raise HTTPException(status_code=409, detail=DUPLICATE_CONFIG_MESSAGE)

    session.refresh(config)
    logger.info("CAPI config created", extra={"brand_id": str(brand_id)})
    return _public(session, config)


@router.get("/{config_id}", response_model=CAPIConfigPublic)
async def get_capi_config(config_id: str, session: Session = Depends(get_session)):
    return _public(session, _get_config_or_404(session, config_id))


@router.patch("/{config_id}", response_model=CAPIConfigPublic)
async def update_capi_config(
    config_id: str,
    body: CAPIConfigUpdate,
    session: Session = Depends(get_session),
):
    config = _get_config_or_404(session, config_id)
    updates = body.model_dump(exclude_unset=True)

    for field in NON_NULLABLE_FIELDS:
        if field in updates and updates[field] is None:
            raise HTTPException(status_code=400, detail=f"{field} cannot be null")

    if "customer_id" in updates:
        updates["customer_id"] = normalize_customer_id(updates["customer_id"])
    if "conversion_action_id" in updates:
        updates["conversion_action_id"] = str(updates["conversion_action_id"])

    for field, value in updates.items():
        setattr(config, field, value)
    config.updated_at = datetime.now(timezone.utc)

    session.add(config)
    session.commit()
    session.refresh(config)
    return _public(session, config)


@router.delete("/{config_id}", status_code=204)
async def delete_capi_config(config_id: str, session: Session = Depends(get_session)):
    config = _get_config_or_404(session, config_id)
    session.delete(config)
    session.commit()
    return Response(status_code=204)
