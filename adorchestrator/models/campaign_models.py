"""AdOrchestrator — Campaign & Prompt Models."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from sqlmodel import SQLModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CampaignGoal(str, Enum):
    AWARENESS = "awareness"
    LEAD_GEN = "lead_gen"
    CONVERSION = "conversion"


class CampaignStatus(str, Enum):
    DRAFT = "draft"
    GENERATING = "generating"
    COMPLETE = "complete"


VALID_GOALS = [g.value for g in CampaignGoal]
VALID_CAMPAIGN_STATUSES = [s.value for s in CampaignStatus]


# ─────────────────────────────────────────────
# DATABASE MODELS
# ─────────────────────────────────────────────


class Campaign(SQLModel, table=True):
    __tablename__ = "campaigns"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    product_id: uuid.UUID = Field(foreign_key="products.id", index=True)
    name: str
    goal: str
    status: str = CampaignStatus.DRAFT.value
    created_at: datetime = Field(default_factory=_utcnow, index=True)
    updated_at: datetime = Field(default_factory=_utcnow)


class Prompt(SQLModel, table=True):
    """Ad copy and image prompt variation written for a campaign."""

    __tablename__ = "prompts"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    campaign_id: uuid.UUID = Field(foreign_key="campaigns.id", index=True)
    prompt_text: str
    headline: Optional[str] = None
    description: Optional[str] = None
    cta: Optional[str] = None
    variation_type: Optional[str] = None
    is_preview: bool = False
    created_at: datetime = Field(default_factory=_utcnow)


# ─────────────────────────────────────────────
# PYDANTIC SCHEMAS
# ─────────────────────────────────────────────


class CampaignWithCount(SQLModel):
    id: uuid.UUID
    product_id: uuid.UUID
    name: str
    goal: str
    status: str
    created_at: datetime
    updated_at: datetime
    prompt_count: int = 0


class CampaignWithPrompts(SQLModel):
    id: uuid.UUID
    product_id: uuid.UUID
    name: str
    goal: str
    status: str
    created_at: datetime
    updated_at: datetime
    prompts: List[Prompt] = []
