# vehicle_rules/rules/matcher.py
from __future__ import annotations
from datetime import datetime, timezone
from typing import List, Optional

from vehicle_rules.enums import ANY
from vehicle_rules.errors import DataLoadFailure
from vehicle_rules.models import Condition, ConditionGroup, Rule
from vehicle_rules.rules.conditions import condition_group_matches
from vehicle_rules.rules.repository import RuleStore
from vehicle_rules.schemas import ValidationQuery


def _as_utc(dt: datetime) -> datetime:
    # timestamps without tzinfo are stored as UTC
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt

def _wildcard_eq(rule_value, query_value) -> bool:
    return rule_value == ANY or rule_value == query_value

def basic_filters_match(rule: Rule, query: ValidationQuery) -> bool:
    return (
        _wildcard_eq(rule.country, query.country)
        and _wildcard_eq(rule.customer, query.customer)
        and _wildcard_eq(rule.opportunity_source, query.opportunity_source)
    )

def is_valid_at(rule: Rule, now: datetime) -> bool:
    return rule.valid_until is None or _as_utc(rule.valid_until) > _as_utc(now)

def load_rule_conditions(rule: Rule, store: RuleStore) -> List[tuple[ConditionGroup, List[Condition]]]:
    """Fetch the rule's groups with their conditions, or raise DataLoadFailure."""
    try:
        groups = store.get_condition_groups(rule.rule_id)
        return [(g, store.get_conditions(g.condition_group_id)) for g in groups]
    except DataLoadFailure:
        raise
    except Exception as e:
        raise DataLoadFailure(rule.rule_id, str(e)) from e

def rule_matches(rule: Rule, query: ValidationQuery, store: RuleStore,
                 now: Optional[datetime] = None) -> bool:
    """
    True when the rule's scalar filters accept the query, the rule has not
    expired and every one of its condition groups is satisfied by the vehicle.
    Cheap checks run first; groups are only loaded for rules that pass them.
    """
    now = now or datetime.now(timezone.utc)
    if not basic_filters_match(rule, query):
        return False
    if not is_valid_at(rule, now):
        return False
    if rule.rule_type != query.rule_type:
        return False
    for group, conditions in load_rule_conditions(rule, store):
        if not condition_group_matches(group, conditions, query.vehicle):
            return False
    return True
