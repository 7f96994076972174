"""AdOrchestrator — External API Usage Models."""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel
from sqlmodel import SQLModel, Field


class APIUsage(SQLModel, table=True):
    """One call to a paid external API (AI model, weather, ...)."""

    __tablename__ = "api_usage"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    api_provider: str = Field(index=True, description="gemini | claude | sarvam | openweathermap")
    api_endpoint: str = Field(index=True, description="Feature that made the call")
    model: Optional[str] = None
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    estimated_cost_usd: float = 0.0
    duration_ms: Optional[int] = None
    success: bool = True
    error_message: Optional[str] = None
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), index=True
    )


class ProviderUsage(BaseModel):
    provider: str
    requests: int = 0
    tokens: int = 0
    cost: float = 0.0


class EndpointUsage(BaseModel):
    endpoint: str
    requests: int = 0
    tokens: int = 0


class DailyUsage(BaseModel):
    date: str
    requests: int = 0
    tokens: int = 0


class UsageStats(BaseModel):
    """Aggregated usage over a trailing window of days."""

    total_requests: int = 0
    total_tokens: int = 0
    total_cost_usd: float = 0.0
    by_provider: List[ProviderUsage] = []
    by_endpoint: List[EndpointUsage] = []
    by_day: List[DailyUsage] = []
