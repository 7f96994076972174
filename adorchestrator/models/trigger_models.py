"""AdOrchestrator — Trigger Rule Models.

A trigger rule watches one key of a data source's synced values and, when
its condition holds, recommends campaigns with a given goal.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

from sqlmodel import SQLModel, Field

from adorchestrator.models.campaign_models import Campaign
from adorchestrator.models.data_source_models import DataSource


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConditionOperator(str, Enum):
    EQ = "eq"
    NEQ = "neq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"


class TriggerActionType(str, Enum):
    RECOMMEND_GOAL = "recommend_goal"
    RECOMMEND_TAG = "recommend_tag"
    SHOW_MESSAGE = "show_message"


VALID_OPERATORS = [o.value for o in ConditionOperator]
VALID_ACTION_TYPES = [a.value for a in TriggerActionType]


class TriggerRule(SQLModel, table=True):
    __tablename__ = "trigger_rules"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str
    data_source_id: uuid.UUID = Field(foreign_key="data_sources.id", index=True)
    condition_key: str
    condition_operator: str
    condition_value: str  # compared as text or number depending on operator
    action_type: str = TriggerActionType.RECOMMEND_GOAL.value
    action_value: str
    is_active: bool = True
    priority: int = 0
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


# ─────────────────────────────────────────────
# PYDANTIC SCHEMAS
# ─────────────────────────────────────────────


class TriggerRuleWithSource(SQLModel):
    id: uuid.UUID
    name: str
    data_source_id: uuid.UUID
    condition_key: str
    condition_operator: str
    condition_value: str
    action_type: str
    action_value: str
    is_active: bool
    priority: int
    created_at: datetime
    updated_at: datetime
    data_source: Optional[DataSource] = None


class TriggerEvaluation(SQLModel):
    rule: TriggerRule
    triggered: bool = False
    current_value: Any = None
    recommended_campaigns: List[Campaign] = []
