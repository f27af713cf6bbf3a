# vehicle_rules/rules/selector.py
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from vehicle_rules.errors import DataLoadFailure
from vehicle_rules.models import Rule
from vehicle_rules.rules.matcher import rule_matches
from vehicle_rules.rules.repository import RuleStore
from vehicle_rules.schemas import ValidationQuery
from vehicle_rules.utils.logging import logger


@dataclass
class SelectionOutcome:
    rule: Optional[Rule] = None
    skipped_rule_ids: List[int] = field(default_factory=list)

    @property
    def is_match(self) -> bool:
        return self.rule is not None


def select_rule(rules: Iterable[Rule], query: ValidationQuery, store: RuleStore,
                now: Optional[datetime] = None) -> SelectionOutcome:
    """First match wins, scanning in ascending rule id."""
    now = now or datetime.now(timezone.utc)
    outcome = SelectionOutcome()
    for rule in sorted(rules, key=lambda r: r.rule_id):
        try:
            if rule_matches(rule, query, store, now):
                outcome.rule = rule
                return outcome
        except DataLoadFailure as e:
            logger.warning("Skipping rule %s, conditions failed to load: %s", rule.rule_id, e)
            outcome.skipped_rule_ids.append(rule.rule_id)
    return outcome
