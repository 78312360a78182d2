"""/v1/bonus-rules - Solicitor commission rules"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from donor_ledger.api.dependencies import get_request_id
from donor_ledger.api.v1.schemas import (
    BonusRuleCreate,
    BonusRuleListResponse,
    BonusRuleResponse,
    BonusRuleSchema,
    BonusRuleUpdate,
)
from donor_ledger.config import settings
from donor_ledger.infrastructure.database.repositories import BonusRuleRepository, SolicitorRepository
from donor_ledger.infrastructure.database.session import get_db

router = APIRouter()


@router.post("/bonus-rules", response_model=BonusRuleResponse, status_code=201)
def create_bonus_rule(
    request_body: BonusRuleCreate,
    request: Request,
    db: Session = Depends(get_db),
):
    """Create a rule. Rules are never auto-expired; set effective_to or is_active explicitly."""
    request_id = get_request_id(request)

    if SolicitorRepository(db).get_solicitor(request_body.solicitor_id) is None:
        raise HTTPException(status_code=404, detail="Solicitor not found")

    try:
        rule = BonusRuleRepository(db).create_rule(**request_body.model_dump())
        db.commit()
    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error creating bonus rule: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    return BonusRuleResponse(bonus_rule=BonusRuleSchema.model_validate(rule))


@router.get("/bonus-rules", response_model=BonusRuleListResponse)
def list_bonus_rules(
    solicitor_id: Optional[int] = Query(None, description="Only rules of this solicitor"),
    db: Session = Depends(get_db),
):
    """
    List rules in the order they are evaluated.

    Returns:
        Rules by priority (highest first), newest first among equal priorities
    """
    rules = BonusRuleRepository(db).list_rules(solicitor_id, limit=settings.rule_listing_limit)
    return BonusRuleListResponse(bonus_rules=[BonusRuleSchema.model_validate(r) for r in rules])


def _range_errors(record, changes: Dict[str, Any]) -> List[Dict[str, str]]:
    """Bounds of the rule as it would read after the update"""
    merged = {
        name: changes.get(name, getattr(record, name))
        for name in ("min_amount", "max_amount", "effective_from", "effective_to")
    }
    low, high = merged["min_amount"], merged["max_amount"]
    errors = []
    if low is not None and high is not None and high < low:
        errors.append({"field": "max_amount", "message": "max_amount must not be lower than min_amount"})
    if merged["effective_to"] is not None and merged["effective_to"] < merged["effective_from"]:
        errors.append({"field": "effective_to", "message": "effective_to must not be before effective_from"})
    return errors


@router.put("/bonus-rules/{rule_id}", response_model=BonusRuleResponse)
def update_bonus_rule(
    rule_id: int,
    request_body: BonusRuleUpdate,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Change some fields of a rule.

    Bonuses already stored on payments keep their values until the payment
    is recalculated.
    """
    request_id = get_request_id(request)
    repo = BonusRuleRepository(db)

    rule = repo.get_rule(rule_id)
    if rule is None:
        raise HTTPException(status_code=404, detail="Bonus rule not found")

    changes = request_body.model_dump(exclude_unset=True)
    errors = _range_errors(rule, changes)
    if errors:
        logging.warning("Bonus rule update rejected", extra={"request_id": request_id, "details": errors})
        raise HTTPException(status_code=400, detail={"error": "Validation failed", "details": errors})

    try:
        rule = repo.update_rule(rule, **changes)
        db.commit()
    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error updating bonus rule {rule_id}: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    logging.info(
        "Bonus rule updated",
        extra={"request_id": request_id, "rule_id": rule_id, "fields": sorted(changes)},
    )
    return BonusRuleResponse(bonus_rule=BonusRuleSchema.model_validate(rule))


@router.delete("/bonus-rules/{rule_id}")
def delete_bonus_rule(
    rule_id: int,
    request: Request,
    db: Session = Depends(get_db),
):
    """Delete a rule. Payments that cite it keep their bonus but lose the rule reference."""
    request_id = get_request_id(request)
    repo = BonusRuleRepository(db)

    rule = repo.get_rule(rule_id)
    if rule is None:
        raise HTTPException(status_code=404, detail="Bonus rule not found")

    try:
        repo.delete_rule(rule)
        db.commit()
    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error deleting bonus rule {rule_id}: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    logging.info("Bonus rule deleted", extra={"request_id": request_id, "rule_id": rule_id})
    return {"message": "Bonus rule deleted successfully"}
