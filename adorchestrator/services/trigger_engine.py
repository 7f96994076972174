"""AdOrchestrator — Trigger Rule Evaluation.

Rules compare one synced data-source value against a target:
  eq / neq / contains / not_contains  → case-insensitive text
  gt / gte / lt / lte                 → leading numeric prefix of both sides
A missing value never triggers.
"""

import re
import uuid
from collections import defaultdict
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlmodel import Session, select

from adorchestrator.core.logging import get_logger
from adorchestrator.models.campaign_models import Campaign, CampaignStatus
from adorchestrator.models.data_source_models import DataSourceValue
from adorchestrator.models.trigger_models import (
    ConditionOperator,
    TriggerActionType,
    TriggerEvaluation,
    TriggerRule,
)

logger = get_logger("services.trigger_engine")

_NUMBER_PREFIX = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")

_MISSING = object()


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _as_number(text: str) -> Optional[float]:
    """Leading numeric prefix of ``text`` ("21.5°C" → 21.5), or None."""
    match = _NUMBER_PREFIX.match(text)
    return float(match.group(0)) if match else None


def evaluate_condition(operator: str, current_value: Any, target_value: str) -> bool:
    if current_value is None:
        return False

    current = _as_text(current_value)
    target = str(target_value)

    if operator == ConditionOperator.EQ.value:
        return current.lower() == target.lower()
    if operator == ConditionOperator.NEQ.value:
        return current.lower() != target.lower()
    if operator == ConditionOperator.CONTAINS.value:
        return target.lower() in current.lower()
    if operator == ConditionOperator.NOT_CONTAINS.value:
        return target.lower() not in current.lower()

    left, right = _as_number(current), _as_number(target)
    if left is None or right is None:
        return False
    if operator == ConditionOperator.GT.value:
        return left > right
    if operator == ConditionOperator.GTE.value:
        return left >= right
    if operator == ConditionOperator.LT.value:
        return left < right
    if operator == ConditionOperator.LTE.value:
        return left <= right
    return False


def evaluate_rule(
    rule: TriggerRule, values: Sequence[DataSourceValue]
) -> Tuple[bool, Any]:
    """Return (triggered, current_value) for ``rule`` against stored values.

    Weather sources keep their reading under the ``current`` key, so that
    object is searched first, then a value stored directly under
    ``condition_key``.
    """
    by_key = {v.key: v.value for v in values}

    current_value: Any = _MISSING
    snapshot = by_key.get("current")
    if isinstance(snapshot, dict) and rule.condition_key in snapshot:
        current_value = snapshot[rule.condition_key]
    if current_value is _MISSING and rule.condition_key in by_key:
        current_value = by_key[rule.condition_key]

    if current_value is _MISSING:
        return False, None

    triggered = evaluate_condition(
        rule.condition_operator, current_value, rule.condition_value
    )
    return triggered, current_value


def _values_for(session: Session, data_source_id: uuid.UUID) -> List[DataSourceValue]:
    return list(
        session.exec(
            select(DataSourceValue).where(DataSourceValue.data_source_id == data_source_id)
        ).all()
    )


def recommended_campaigns(
    session: Session, triggered_rules: Sequence[TriggerRule]
) -> List[Campaign]:
    """Completed campaigns whose goal is recommended by a triggered rule."""
    goals = [
        r.action_value
        for r in triggered_rules
        if r.action_type == TriggerActionType.RECOMMEND_GOAL.value
    ]
    if not goals:
        return []
    return list(
        session.exec(
            select(Campaign).where(
                Campaign.goal.in_(goals),  # type: ignore
                Campaign.status == CampaignStatus.COMPLETE.value,
            )
        ).all()
    )


def evaluate_single_rule(session: Session, rule: TriggerRule) -> TriggerEvaluation:
    triggered, current_value = evaluate_rule(rule, _values_for(session, rule.data_source_id))
    campaigns = recommended_campaigns(session, [rule]) if triggered else []
    return TriggerEvaluation(
        rule=rule,
        triggered=triggered,
        current_value=current_value,
        recommended_campaigns=campaigns,
    )


def evaluate_all_rules(session: Session) -> List[TriggerEvaluation]:
    """Evaluate every active rule; values are read once per data source."""
    rules = session.exec(
        select(TriggerRule)
        .where(TriggerRule.is_active == True)  # noqa: E712
        .order_by(TriggerRule.priority.desc())  # type: ignore
    ).all()

    by_source: Dict[uuid.UUID, List[TriggerRule]] = defaultdict(list)
    for rule in rules:
        by_source[rule.data_source_id].append(rule)

    evaluations: List[TriggerEvaluation] = []
    for data_source_id, source_rules in by_source.items():
        values = _values_for(session, data_source_id)
        for rule in source_rules:
            triggered, current_value = evaluate_rule(rule, values)
            evaluations.append(
                TriggerEvaluation(rule=rule, triggered=triggered, current_value=current_value)
            )

    logger.info(
        f"Evaluated {len(evaluations)} trigger rules, "
        f"{sum(e.triggered for e in evaluations)} triggered"
    )
    return evaluations
