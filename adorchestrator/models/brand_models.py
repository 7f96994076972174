"""AdOrchestrator — Brand & Product Models."""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlmodel import SQLModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ─────────────────────────────────────────────
# DATABASE MODELS
# ─────────────────────────────────────────────


class Brand(SQLModel, table=True):
    __tablename__ = "brands"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str
    description: Optional[str] = None
    source_pdf_url: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class BrandColor(SQLModel, table=True):
    __tablename__ = "brand_colors"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    brand_id: uuid.UUID = Field(foreign_key="brands.id", index=True)
    hex_code: str
    name: Optional[str] = None
    usage: Optional[str] = None
    is_primary: bool = False
    created_at: datetime = Field(default_factory=_utcnow)


class BrandFont(SQLModel, table=True):
    __tablename__ = "brand_fonts"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    brand_id: uuid.UUID = Field(foreign_key="brands.id", index=True)
    font_family: str
    font_weight: Optional[str] = None
    usage: Optional[str] = None
    is_primary: bool = False
    created_at: datetime = Field(default_factory=_utcnow)


class BrandTone(SQLModel, table=True):
    __tablename__ = "brand_tone"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    brand_id: uuid.UUID = Field(foreign_key="brands.id", index=True)
    descriptor: str
    example: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)


class Product(SQLModel, table=True):
    __tablename__ = "products"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    brand_id: uuid.UUID = Field(foreign_key="brands.id", index=True)
    name: str
    description: Optional[str] = None
    sku: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


# ─────────────────────────────────────────────
# PYDANTIC SCHEMAS
# ─────────────────────────────────────────────


class BrandWithRelations(SQLModel):
    """A brand with its colors, fonts and tone of voice."""

    id: uuid.UUID
    name: str
    description: Optional[str] = None
    source_pdf_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    colors: List[BrandColor] = []
    fonts: List[BrandFont] = []
    tone: List[BrandTone] = []
