"""AdOrchestrator — External Data Source Models."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DataSourceType(str, Enum):
    WEATHER = "weather"
    CALENDAR = "calendar"
    CUSTOM = "custom"


VALID_DATA_SOURCE_TYPES = [t.value for t in DataSourceType]


class DataSource(SQLModel, table=True):
    """A feed of real-world signals (weather, calendar, custom values).

    ``config`` shape depends on ``type``: weather uses ``location``,
    ``units`` and optionally ``api_key``; calendar uses ``events``;
    custom uses ``data``.
    """

    __tablename__ = "data_sources"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str
    type: str = Field(index=True)
    config: dict[str, Any] = Field(
        default_factory=dict, sa_column=Column(JSON, nullable=False)
    )
    is_active: bool = True
    last_sync_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class DataSourceValue(SQLModel, table=True):
    """Latest synced value for one key of a data source."""

    __tablename__ = "data_source_values"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    data_source_id: uuid.UUID = Field(foreign_key="data_sources.id", index=True)
    key: str
    value: Any = Field(default=None, sa_column=Column(JSON))
    expires_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=_utcnow)
