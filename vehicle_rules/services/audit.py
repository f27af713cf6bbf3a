# vehicle_rules/services/audit.py
"""
Audit recording.

Every orchestrated validation produces exactly one audit entry, written after
the verdict is known. Writing it must never fail the validation: errors from
the store are logged and dropped.
"""
from __future__ import annotations
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Protocol

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from ..errors import AuditWriteFailure
from ..models import AuditLog, Rule
from ..rules.selector import SelectionOutcome
from ..schemas import AuditEntry, NO_MATCH_MESSAGE, ValidationQuery
from ..utils.logging import logger


class AuditStore(Protocol):
    def append(self, entry: AuditEntry) -> None: ...


class SqlAuditStore:
    def __init__(self, db: Session):
        self.db = db

    def append(self, entry: AuditEntry) -> None:
        try:
            self.db.add(AuditLog(**entry.model_dump()))
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            raise AuditWriteFailure(str(e)) from e


class CeleryAuditStore:
    """Hands the entry to a worker; the insert completes even if the caller is gone."""

    def append(self, entry: AuditEntry) -> None:
        from ..celery_worker import record_audit_entry
        try:
            record_audit_entry.delay(entry.model_dump(mode="json"))
        except Exception as e:
            raise AuditWriteFailure(f"enqueue failed: {e}") from e


def rule_snapshot(rule: Rule) -> Dict[str, Any]:
    return {
        "ruleId": rule.rule_id,
        "ruleName": rule.rule_name,
        "ruleType": _value(rule.rule_type),
        "status": _value(rule.status),
        "validUntil": rule.valid_until.isoformat() if rule.valid_until else None,
        "action": _value(rule.action),
        "actionMessage": rule.action_message,
        "customer": _value(rule.customer),
        "country": _value(rule.country),
        "opportunitySource": _value(rule.opportunity_source),
    }

def _value(v: Any) -> Any:
    return getattr(v, "value", v)

def build_entry(query: ValidationQuery, outcome: SelectionOutcome) -> AuditEntry:
    if outcome.rule is not None:
        response: Dict[str, Any] = rule_snapshot(outcome.rule)
    else:
        response = {"message": NO_MATCH_MESSAGE}
    if outcome.skipped_rule_ids:
        response["skippedRuleIds"] = list(outcome.skipped_rule_ids)
    return AuditEntry(
        timestamp=datetime.now(timezone.utc),
        request=json.dumps(query.to_request_dict(), default=str),
        response=json.dumps(response, default=str),
        rule_id=outcome.rule.rule_id if outcome.rule is not None else None,
        success=outcome.is_match,
    )


class AuditRecorder:
    def __init__(self, store: AuditStore):
        self.store = store

    def record(self, query: ValidationQuery, outcome: SelectionOutcome) -> None:
        try:
            entry = build_entry(query, outcome)
            self.store.append(entry)
        except Exception:
            logger.exception("Audit write failed (rule_id=%s)",
                             outcome.rule.rule_id if outcome.rule is not None else None)


def recent_entries(db: Session, limit: int = 50) -> List[AuditLog]:
    stmt = select(AuditLog).order_by(desc(AuditLog.id)).limit(limit)
    return list(db.execute(stmt).scalars().all())
