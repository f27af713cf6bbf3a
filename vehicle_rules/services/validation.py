# vehicle_rules/services/validation.py
from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from ..config import settings
from ..rules.repository import RuleStore, SqlRuleStore
from ..rules.selector import SelectionOutcome, select_rule
from ..schemas import NO_MATCH_MESSAGE, ValidationQuery, ValidationResponse
from ..utils.logging import logger
from .audit import AuditRecorder, AuditStore, CeleryAuditStore, SqlAuditStore


def build_response(outcome: SelectionOutcome) -> ValidationResponse:
    if outcome.rule is None:
        return ValidationResponse(is_match=False, action=None, action_message=NO_MATCH_MESSAGE)
    rule = outcome.rule
    return ValidationResponse(
        is_match=True,
        action=getattr(rule.action, "value", rule.action),
        action_message=rule.action_message,
    )


class ValidationService:
    """Loads applicable rules, picks the winner and records the attempt."""

    def __init__(self, rule_store: RuleStore, audit: AuditRecorder):
        self.rule_store = rule_store
        self.audit = audit

    def validate(self, query: ValidationQuery, now: Optional[datetime] = None) -> ValidationResponse:
        now = now or datetime.now(timezone.utc)
        # StoreUnavailable propagates: without rules there is no verdict to audit
        rules = self.rule_store.list_active_rules(query.rule_type)
        outcome = select_rule(rules, query, self.rule_store, now)
        response = build_response(outcome)

        logger.info("Validation %s: %d candidate rule(s), matched rule %s",
                    query.rule_type.value, len(rules),
                    outcome.rule.rule_id if outcome.rule is not None else None)

        self.audit.record(query, outcome)
        return response


def audit_store_for(db: Session) -> AuditStore:
    if settings.AUDIT_MODE == "celery":
        return CeleryAuditStore()
    return SqlAuditStore(db)

def validation_service(db: Session) -> ValidationService:
    return ValidationService(SqlRuleStore(db), AuditRecorder(audit_store_for(db)))
