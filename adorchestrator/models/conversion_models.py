"""AdOrchestrator — Conversion Event & CAPI Config Models."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field, UniqueConstraint


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SyncStatus(str, Enum):
    """Delivery states written by the conversion sync job.

    PATCH callers may write any string; nothing checks transitions.
    """

    PENDING = "pending"
    QUEUED = "queued"
    SENT = "sent"
    FAILED = "failed"


class ConversionEvent(SQLModel, table=True):
    """A user action reported to ad platforms for attribution.

    PII is only ever stored hashed. ``event_id`` is the idempotency key
    shared with the ad platform for deduplication.
    """

    __tablename__ = "conversion_events"
    __table_args__ = (UniqueConstraint("event_id", name="uq_conversion_event_id"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    event_id: str = Field(index=True)
    event_name: str = Field(index=True)
    event_time: datetime = Field(default_factory=_utcnow, index=True)

    user_email_hash: Optional[str] = None
    user_phone_hash: Optional[str] = None
    user_first_name_hash: Optional[str] = None
    user_last_name_hash: Optional[str] = None
    user_ip: Optional[str] = None
    user_agent: Optional[str] = None

    event_value: Optional[float] = None
    currency: str = "USD"
    transaction_id: Optional[str] = None
    custom_params: dict[str, Any] = Field(
        default_factory=dict, sa_column=Column(JSON, nullable=False)
    )
    source: Optional[str] = None
    campaign_id: Optional[uuid.UUID] = Field(default=None, index=True)
    brand_id: Optional[uuid.UUID] = Field(default=None, index=True)

    sync_status: str = Field(default=SyncStatus.PENDING.value, index=True)
    sync_error: Optional[str] = None
    sync_attempts: int = 0
    synced_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class CAPIConfig(SQLModel, table=True):
    """Google Ads Conversions API settings for one brand."""

    __tablename__ = "capi_configs"
    __table_args__ = (UniqueConstraint("brand_id", name="uq_capi_config_brand"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    brand_id: uuid.UUID = Field(foreign_key="brands.id", index=True)
    customer_id: str
    conversion_action_id: str
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    is_active: bool = True
    batch_size: int = 100
    sync_interval_minutes: int = 15

    last_sync_at: Optional[datetime] = None
    last_sync_status: Optional[str] = None
    last_sync_count: Optional[int] = None

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


# ─────────────────────────────────────────────
# PYDANTIC SCHEMAS: API responses
# ─────────────────────────────────────────────


class BrandRef(SQLModel):
    id: uuid.UUID
    name: str


class CAPIConfigPublic(SQLModel):
    """CAPI config as returned over the API. Tokens become presence flags."""

    id: uuid.UUID
    brand_id: uuid.UUID
    customer_id: str
    conversion_action_id: str
    has_access_token: bool
    has_refresh_token: bool
    is_active: bool
    batch_size: int
    sync_interval_minutes: int
    last_sync_at: Optional[datetime] = None
    last_sync_status: Optional[str] = None
    last_sync_count: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    brand: Optional[BrandRef] = None

    @classmethod
    def from_config(
        cls, config: CAPIConfig, brand: Optional[BrandRef] = None
    ) -> "CAPIConfigPublic":
        data = config.model_dump(exclude={"access_token", "refresh_token"})
        return cls(
            **data,
            has_access_token=bool(config.access_token),
            has_refresh_token=bool(config.refresh_token),
            brand=brand,
        )
