# vehicle_rules/rules/repository.py
from __future__ import annotations
from datetime import datetime, timezone
from typing import List, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..enums import RuleStatus, RuleType
from ..errors import StoreUnavailable
from ..models import Condition, ConditionGroup, Rule
from ..schemas import ConditionCreate, ConditionGroupCreate, RuleCreate, RuleUpdate


class RuleStore(Protocol):
    def list_active_rules(self, rule_type: RuleType) -> List[Rule]: ...
    def get_condition_groups(self, rule_id: int) -> List[ConditionGroup]: ...
    def get_conditions(self, group_id: int) -> List[Condition]: ...


class SqlRuleStore:
    """Reads rules through one session so a validation sees one snapshot."""

    def __init__(self, db: Session):
        self.db = db

    def list_active_rules(self, rule_type: RuleType) -> List[Rule]:
        stmt = (select(Rule)
                .where(Rule.rule_type == rule_type, Rule.status == RuleStatus.ACTIVE)
                .order_by(Rule.rule_id))
        try:
            return list(self.db.execute(stmt).scalars().all())
        except SQLAlchemyError as e:
            raise StoreUnavailable(str(e)) from e

    def _fetch(self, stmt) -> list:
        # a failed read rolls back to the savepoint, leaving the session usable
        # for later rules and the audit insert
        with self.db.begin_nested():
            return list(self.db.execute(stmt).scalars().all())

    def get_condition_groups(self, rule_id: int) -> List[ConditionGroup]:
        stmt = (select(ConditionGroup)
                .where(ConditionGroup.rule_id == rule_id)
                .order_by(ConditionGroup.condition_group_id))
        return self._fetch(stmt)

    def get_conditions(self, group_id: int) -> List[Condition]:
        stmt = (select(Condition)
                .where(Condition.condition_group_id == group_id)
                .order_by(Condition.condition_id))
        return self._fetch(stmt)

# ----------------------------
# CRUD used by the API and CLI
# ----------------------------
def list_rules(db: Session) -> List[Rule]:
    return list(db.execute(select(Rule).order_by(Rule.rule_id)).scalars().all())

def get_rule(db: Session, rule_id: int, with_conditions: bool = False) -> Optional[Rule]:
    stmt = select(Rule).where(Rule.rule_id == rule_id)
    if with_conditions:
        stmt = stmt.options(selectinload(Rule.condition_groups).selectinload(ConditionGroup.conditions))
    return db.execute(stmt).scalar_one_or_none()

def get_condition_group(db: Session, group_id: int) -> Optional[ConditionGroup]:
    return db.get(ConditionGroup, group_id)

def _build_condition(payload: ConditionCreate) -> Condition:
    return Condition(parameter=payload.parameter, operator=payload.operator,
                     value=payload.value, or_group=payload.or_group)

def _build_group(payload: ConditionGroupCreate) -> ConditionGroup:
    group = ConditionGroup(description=payload.description)
    group.conditions = [_build_condition(c) for c in payload.conditions]
    return group

def create_rule(db: Session, payload: RuleCreate) -> Rule:
    data = payload.model_dump(exclude={"condition_groups"})
    rule = Rule(**data, last_modified_date=datetime.now(timezone.utc))
    rule.condition_groups = [_build_group(g) for g in payload.condition_groups]
    db.add(rule)
    db.commit()
    return get_rule(db, rule.rule_id, with_conditions=True)

def update_rule(db: Session, rule_id: int, payload: RuleUpdate) -> Optional[Rule]:
    rule = get_rule(db, rule_id)
    if rule is None:
        return None
    for key, value in payload.model_dump(exclude_unset=True).items():
        setattr(rule, key, value)
    rule.last_modified_date = datetime.now(timezone.utc)
    db.commit()
    return rule

def delete_rule(db: Session, rule_id: int) -> bool:
    rule = get_rule(db, rule_id, with_conditions=True)
    if rule is None:
        return False
    db.delete(rule)  # cascades to groups and conditions
    db.commit()
    return True

def add_condition_group(db: Session, rule: Rule, payload: ConditionGroupCreate) -> ConditionGroup:
    group = _build_group(payload)
    group.rule_id = rule.rule_id
    db.add(group)
    db.commit()
    return group

def add_condition(db: Session, group: ConditionGroup, payload: ConditionCreate) -> Condition:
    cond = _build_condition(payload)
    cond.condition_group_id = group.condition_group_id
    db.add(cond)
    db.commit()
    return cond
