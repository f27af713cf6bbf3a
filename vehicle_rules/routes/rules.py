from typing import List
from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from ..database import get_db
from ..errors import StoreUnavailable
from ..rules import repository
from ..schemas import (
    ConditionCreate, ConditionGroupCreate, ConditionGroupOut, ConditionOut,
    RuleCreate, RuleDetail, RuleOut, RuleUpdate, ValidationQuery, ValidationResponse,
)
from ..services.validation import validation_service
from ..utils.logging import logger


router = APIRouter(prefix="/api", tags=["rules"])

def _rule_or_404(db: Session, rule_id: int, with_conditions: bool = False):
    rule = repository.get_rule(db, rule_id, with_conditions=with_conditions)
    if rule is None:
        raise HTTPException(status_code=404, detail="Rule not found")
    return rule

# ----------------------------
# Validation
# ----------------------------
@router.post("/rules/validate", response_model=ValidationResponse)
def validate_vehicle(payload: ValidationQuery, db: Session = Depends(get_db)):
    try:
        return validation_service(db).validate(payload)
    except StoreUnavailable:
        logger.exception("Error validating vehicle")
        raise HTTPException(status_code=500, detail="Failed to validate vehicle")

# ----------------------------
# Rules
# ----------------------------
@router.get("/rules", response_model=List[RuleOut])
def list_rules(db: Session = Depends(get_db)):
    return repository.list_rules(db)

@router.get("/rules/{rule_id}", response_model=RuleDetail)
def get_rule(rule_id: int, db: Session = Depends(get_db)):
    return _rule_or_404(db, rule_id, with_conditions=True)

@router.post("/rules", response_model=RuleDetail, status_code=201)
def create_rule(payload: RuleCreate, db: Session = Depends(get_db)):
    rule = repository.create_rule(db, payload)
    logger.info("Created rule %s (%s)", rule.rule_id, rule.rule_name)
    return rule

@router.patch("/rules/{rule_id}", response_model=RuleOut)
def update_rule(rule_id: int, payload: RuleUpdate, db: Session = Depends(get_db)):
    rule = repository.update_rule(db, rule_id, payload)
    if rule is None:
        raise HTTPException(status_code=404, detail="Rule not found")
    return rule

@router.delete("/rules/{rule_id}", status_code=204)
def delete_rule(rule_id: int, db: Session = Depends(get_db)):
    if not repository.delete_rule(db, rule_id):
        raise HTTPException(status_code=404, detail="Rule not found")
    logger.info("Deleted rule %s", rule_id)
    return Response(status_code=204)

# ----------------------------
# Condition groups & conditions
# ----------------------------
@router.get("/rules/{rule_id}/condition-groups", response_model=List[ConditionGroupOut])
def list_condition_groups(rule_id: int, db: Session = Depends(get_db)):
    return _rule_or_404(db, rule_id, with_conditions=True).condition_groups

@router.post("/rules/{rule_id}/condition-groups", response_model=ConditionGroupOut, status_code=201)
def create_condition_group(rule_id: int, payload: ConditionGroupCreate, db: Session = Depends(get_db)):
    rule = _rule_or_404(db, rule_id)
    return repository.add_condition_group(db, rule, payload)

@router.get("/condition-groups/{group_id}/conditions", response_model=List[ConditionOut])
def list_conditions(group_id: int, db: Session = Depends(get_db)):
    group = repository.get_condition_group(db, group_id)
    if group is None:
        raise HTTPException(status_code=404, detail="Condition group not found")
    return group.conditions

@router.post("/condition-groups/{group_id}/conditions", response_model=ConditionOut, status_code=201)
def create_condition(group_id: int, payload: ConditionCreate, db: Session = Depends(get_db)):
    group = repository.get_condition_group(db, group_id)
    if group is None:
        raise HTTPException(status_code=404, detail="Condition group not found")
    return repository.add_condition(db, group, payload)
