"""AdOrchestrator — External API Usage Tracking.

Every AI call is recorded with its token counts and an estimated cost so
the dashboard can show spend per provider, feature and day.
"""

import time
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from sqlmodel import Session, select

from adorchestrator.models.usage_models import (
    APIUsage,
    DailyUsage,
    EndpointUsage,
    ProviderUsage,
    UsageStats,
)
from adorchestrator.core.logging import get_logger

logger = get_logger("services.usage")

# USD per 1M tokens.
PRICING: Dict[str, Dict[str, float]] = {
    "gemini-2.0-flash": {"input": 0.075, "output": 0.30},
    "gemini-1.5-flash": {"input": 0.075, "output": 0.30},
    "gemini-1.5-pro": {"input": 1.25, "output": 5.00},
    "claude-sonnet-4-20250514": {"input": 3.00, "output": 15.00},
    "default": {"input": 0.10, "output": 0.40},
}


def calculate_cost(model: str, input_tokens: int, output_tokens: int) -> float:
    pricing = PRICING.get(model, PRICING["default"])
    input_cost = (input_tokens / 1_000_000) * pricing["input"]
    output_cost = (output_tokens / 1_000_000) * pricing["output"]
    return input_cost + output_cost


def create_timer() -> Callable[[], int]:
    """Start a timer; calling the result returns elapsed milliseconds."""
    start = time.perf_counter()
    return lambda: int(round((time.perf_counter() - start) * 1000))


def track_api_usage(
    session: Session,
    *,
    api_provider: str,
    api_endpoint: str,
    model: Optional[str] = None,
    input_tokens: int = 0,
    output_tokens: int = 0,
    duration_ms: Optional[int] = None,
    success: bool = True,
    error_message: Optional[str] = None,
) -> None:
    """Record one call. Tracking failures are logged and never raised."""
    try:
        cost = (
            calculate_cost(model, input_tokens, output_tokens)
            if model and (input_tokens or output_tokens)
            else 0.0
        )
        session.add(
            APIUsage(
                api_provider=api_provider,
                api_endpoint=api_endpoint,
                model=model,
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                total_tokens=input_tokens + output_tokens,
                estimated_cost_usd=cost,
                duration_ms=duration_ms,
                success=success,
                error_message=error_message,
            )
        )
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(f"Failed to track API usage: {e}", extra={"provider": api_provider})


def get_usage_stats(session: Session, days: int = 30) -> UsageStats:
    """Aggregate usage recorded in the last ``days`` days."""
    since = datetime.now(timezone.utc) - timedelta(days=days)
    rows = session.exec(
        select(APIUsage)
        .where(APIUsage.created_at >= since)
        .order_by(APIUsage.created_at.desc())  # type: ignore
    ).all()

    by_provider: Dict[str, ProviderUsage] = {}
    by_endpoint: Dict[str, EndpointUsage] = {}
    by_day: Dict[str, DailyUsage] = defaultdict(lambda: DailyUsage(date=""))

    for u in rows:
        p = by_provider.setdefault(u.api_provider, ProviderUsage(provider=u.api_provider))
        p.requests += 1
        p.tokens += u.total_tokens or 0
        p.cost += u.estimated_cost_usd or 0.0

        e = by_endpoint.setdefault(u.api_endpoint, EndpointUsage(endpoint=u.api_endpoint))
        e.requests += 1
        e.tokens += u.total_tokens or 0

        day = u.created_at.strftime("%Y-%m-%d")
        d = by_day[day]
        d.date = day
        d.requests += 1
        d.tokens += u.total_tokens or 0

    return UsageStats(
        total_requests=len(rows),
        total_tokens=sum(u.total_tokens or 0 for u in rows),
        total_cost_usd=sum(u.estimated_cost_usd or 0.0 for u in rows),
        by_provider=list(by_provider.values()),
        by_endpoint=list(by_endpoint.values()),
        by_day=sorted(by_day.values(), key=lambda d: d.date),
    )
