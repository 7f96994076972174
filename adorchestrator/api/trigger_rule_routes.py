"""AdOrchestrator — Trigger Rule Routes."""

from datetime import datetime, timezone
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlmodel import Session, select

from adorchestrator.core.auth import require_user
from adorchestrator.core.logging import get_logger
from adorchestrator.core.validation import parse_uuid
from adorchestrator.database import get_session
from adorchestrator.models.data_source_models import DataSource
from adorchestrator.models.trigger_models import (
    VALID_ACTION_TYPES,
    VALID_OPERATORS,
    TriggerActionType,
    TriggerRule,
    TriggerRuleWithSource,
)
from adorchestrator.services.trigger_engine import (
    evaluate_all_rules,
    evaluate_single_rule,
    recommended_campaigns,
)

logger = get_logger("api.trigger_rules")

router = APIRouter(
    prefix="/api/trigger-rules",
    tags=["Trigger Rules"],
    dependencies=[Depends(require_user)],
)

INVALID_OPERATOR_MESSAGE = (
    f"Invalid condition_operator. Must be one of: {', '.join(VALID_OPERATORS)}"
)
INVALID_ACTION_MESSAGE = f"Invalid action_type. Must be one of: {', '.join(VALID_ACTION_TYPES)}"


class TriggerRuleCreate(BaseModel):
    name: Optional[str] = None
    data_source_id: Optional[str] = None
    condition_key: Optional[str] = None
    condition_operator: Optional[str] = None
    condition_value: Any = None
    action_type: str = TriggerActionType.RECOMMEND_GOAL.value
    action_value: Optional[str] = None
    is_active: bool = True
    priority: int = 0


class TriggerRuleUpdate(BaseModel):
    name: Optional[str] = None
    condition_key: Optional[str] = None
    condition_operator: Optional[str] = None
    condition_value: Any = None
    action_type: Optional[str] = None
    action_value: Optional[str] = None
    is_active: Optional[bool] = None
    priority: Optional[int] = None

    model_config = {"extra": "ignore"}


# ── Helpers ──


def _with_source(session: Session, rule: TriggerRule) -> TriggerRuleWithSource:
    return TriggerRuleWithSource(
        **rule.model_dump(), data_source=session.get(DataSource, rule.data_source_id)
    )


def _get_rule_or_404(session: Session, rule_id: str) -> TriggerRule:
    rule = session.get(TriggerRule, parse_uuid(rule_id, "trigger rule ID"))
    if not rule:
        raise HTTPException(status_code=404, detail="Trigger rule not found")
    return rule


# ── Endpoints ──


@router.get("", response_model=List[TriggerRuleWithSource])
async def list_trigger_rules(
    data_source_id: Optional[str] = Query(None),
    active: Optional[str] = Query(None),
    session: Session = Depends(get_session),
):
    query = select(TriggerRule).order_by(
        TriggerRule.priority.desc(), TriggerRule.created_at.desc()  # type: ignore
    )
    if data_source_id:
        query = query.where(
            TriggerRule.data_source_id == parse_uuid(data_source_id, "data_source_id")
        )
    if active == "true":
        query = query.where(TriggerRule.is_active == True)  # noqa: E712
    elif active == "false":
        query = query.where(TriggerRule.is_active == False)  # noqa: E712

    return [_with_source(session, r) for r in session.exec(query).all()]


@router.post("", status_code=201, response_model=TriggerRuleWithSource)
async def create_trigger_rule(body: TriggerRuleCreate, session: Session = Depends(get_session)):
    if not body.name:
        raise HTTPException(status_code=400, detail="Name is required")
    if not body.data_source_id:
        raise HTTPException(status_code=400, detail="data_source_id is required")
    data_source_id = parse_uuid(body.data_source_id, "data_source_id")
    if not body.condition_key:
        raise HTTPException(status_code=400, detail="condition_key is required")
    if not body.condition_operator:
        raise HTTPException(status_code=400, detail="condition_operator is required")
    if body.condition_operator not in VALID_OPERATORS:
        raise HTTPException(status_code=400, detail=INVALID_OPERATOR_MESSAGE)
    if body.condition_value is None:
        raise HTTPException(status_code=400, detail="condition_value is required")
    if not body.action_value:
        raise HTTPException(status_code=400, detail="action_value is required")
    if body.action_type not in VALID_ACTION_TYPES:
        raise HTTPException(status_code=400, detail=INVALID_ACTION_MESSAGE)

    if not session.get(DataSource, data_source_id):
        raise HTTPException(status_code=404, detail="Data source not found")

    rule = TriggerRule(
        name=body.name,
        data_source_id=data_source_id,
        condition_key=body.condition_key,
        condition_operator=body.condition_operator,
        condition_value=str(body.condition_value),
        action_type=body.action_type,
        action_value=body.action_value,
        is_active=body.is_active,
        priority=body.priority,
    )
    session.add(rule)
    session.commit()
    session.refresh(rule)
    logger.info(f"Trigger rule created: {rule.name}", extra={"entity_id": str(rule.id)})
    return _with_source(session, rule)


@router.get("/evaluate")
async def evaluate_trigger_rules(session: Session = Depends(get_session)):
    """Evaluate all active rules and list the campaigns they recommend."""
    evaluations = evaluate_all_rules(session)
    triggered = [e.rule for e in evaluations if e.triggered]
    return {
        "evaluations": [
            {
                "rule_id": e.rule.id,
                "name": e.rule.name,
                "triggered": e.triggered,
                "current_value": e.current_value,
            }
            for e in evaluations
        ],
        "recommended_campaigns": recommended_campaigns(session, triggered),
    }


@router.get("/{rule_id}")
async def get_trigger_rule(rule_id: str, session: Session = Depends(get_session)):
    """A rule with its data source and current evaluation."""
    rule = _get_rule_or_404(session, rule_id)
    evaluation = evaluate_single_rule(session, rule)
    return {
        **_with_source(session, rule).model_dump(),
        "evaluation": {
            "triggered": evaluation.triggered,
            "current_value": evaluation.current_value,
            "recommended_campaigns": [c.model_dump() for c in evaluation.recommended_campaigns],
        },
    }


@router.patch("/{rule_id}", response_model=TriggerRuleWithSource)
async def update_trigger_rule(
    rule_id: str,
    body: TriggerRuleUpdate,
    session: Session = Depends(get_session),
):
    rule = _get_rule_or_404(session, rule_id)
    updates = body.model_dump(exclude_unset=True)

    if "condition_operator" in updates and updates["condition_operator"] not in VALID_OPERATORS:
        raise HTTPException(status_code=400, detail=INVALID_OPERATOR_MESSAGE)
    if "action_type" in updates and updates["action_type"] not in VALID_ACTION_TYPES:
        raise HTTPException(status_code=400, detail=INVALID_ACTION_MESSAGE)
    for field, value in updates.items():
        if value is None:
            raise HTTPException(status_code=400, detail=f"{field} cannot be null")
        setattr(rule, field, str(value) if field == "condition_value" else value)
    rule.updated_at = datetime.now(timezone.utc)

    session.add(rule)
    session.commit()
    session.refresh(rule)
    return _with_source(session, rule)


@router.delete("/{rule_id}")
async def delete_trigger_rule(rule_id: str, session: Session = Depends(get_session)):
    rule = _get_rule_or_404(session, rule_id)
    session.delete(rule)
    session.commit()
    return {"success": True, "deleted_id": rule_id}
