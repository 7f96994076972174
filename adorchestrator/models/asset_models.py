"""AdOrchestrator — Creative Asset Models."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlmodel import SQLModel, Field


class AdPlatform(str, Enum):
    """Ad platforms an asset can be sized/exported for."""

    GOOGLE_ADS = "google_ads"
    META = "meta"
    TIKTOK = "tiktok"


VALID_PLATFORMS = [p.value for p in AdPlatform]


class Asset(SQLModel, table=True):
    """Generated creative. ``platform`` is None for the original master asset."""

    __tablename__ = "assets"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    campaign_id: uuid.UUID = Field(foreign_key="campaigns.id", index=True)
    prompt_id: Optional[uuid.UUID] = Field(default=None, index=True)
    platform: Optional[str] = Field(default=None, index=True)
    status: str = "generating"  # generating | complete | failed
    image_url: str = ""
    width: Optional[int] = None
    height: Optional[int] = None
    format: Optional[str] = None
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), index=True
    )
