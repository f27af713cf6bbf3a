# tests/test_validation.py
import json
from unittest.mock import patch

import pytest

from vehicle_rules.enums import Action, RuleStatus, RuleType
from vehicle_rules.errors import StoreUnavailable
from vehicle_rules.rules.selector import SelectionOutcome
from vehicle_rules.schemas import NO_MATCH_MESSAGE, ValidationQuery
from vehicle_rules.services.audit import AuditRecorder, CeleryAuditStore, build_entry
from vehicle_rules.services.validation import ValidationService
from vehicle_rules.tests.factories import FakeAuditStore, FakeRuleStore, cond, group, make_rule, query


def _service(store, audit_store):
    return ValidationService(store, AuditRecorder(audit_store))

def _catalog():
    rules = [
        make_rule(1, action=Action.INVITE_NO_PROMISE, action_message="Skoda, invite"),
        make_rule(2, action=Action.DO_NOT_INVITE),
        make_rule(3, action=Action.NO_INTEREST, status=RuleStatus.DRAFT),
        make_rule(4, action=Action.NO_INTEREST, rule_type=RuleType.LOCAL),
    ]
    groups = {
        1: [(group(1), [cond("make", "=", "10")])],
        2: [(group(2), [cond("make", "=", "6")])],
    }
    return FakeRuleStore(rules, groups=groups)

def test_match_returns_rule_action_and_message(audit_store):
    result = _service(_catalog(), audit_store).validate(query(make="10"))
    assert result.is_match
    assert result.action == "POZVI - NESLIBUJ"
    assert result.action_message == "Skoda, invite"

def test_no_match_contract(audit_store):
    result = _service(_catalog(), audit_store).validate(query(make="999"))
    assert result.is_match is False
    assert result.action is None
    assert result.action_message == NO_MATCH_MESSAGE == "No matching rules found"

def test_inactive_and_other_type_rules_are_not_candidates(audit_store):
    store = FakeRuleStore([make_rule(3, status=RuleStatus.INACTIVE)])
    assert not _service(store, audit_store).validate(query()).is_match
    assert _service(_catalog(), audit_store).validate(query("Local")).action == "NoInterest"

@pytest.mark.parametrize("make,matched", [("10", True), ("999", False)])
def test_exactly_one_audit_entry_per_validation(audit_store, make, matched):
    result = _service(_catalog(), audit_store).validate(query(make=make))
    assert len(audit_store.entries) == 1
    entry = audit_store.entries[0]
    assert entry.success is result.is_match is matched
    assert entry.rule_id == (1 if matched else None)
    assert json.loads(entry.request)["make"] == make

def test_audit_response_payload(audit_store):
    svc = _service(_catalog(), audit_store)
    svc.validate(query(make="6"))
    svc.validate(query(make="1"))
    hit, miss = (json.loads(e.response) for e in audit_store.entries)
    assert hit["ruleId"] == 2 and hit["action"] == "NEZVI - NECHCEME"
    assert miss == {"message": NO_MATCH_MESSAGE}

def test_audit_failure_does_not_fail_validation():
    result = _service(_catalog(), FakeAuditStore(fail=True)).validate(query(make="10"))
    assert result.is_match

def test_skipped_rules_are_audited(audit_store):
    store = _catalog()
    store.broken = {1}
    result = _service(store, audit_store).validate(query(make="10"))
    assert not result.is_match
    assert json.loads(audit_store.entries[0].response)["skippedRuleIds"] == [1]

def test_oversized_vehicle_number_is_no_match_and_audited(audit_store):
    store = FakeRuleStore([make_rule(1)], groups={1: [(group(1), [cond("price", ">", "100000")])]})
    result = _service(store, audit_store).validate(query(price=10**400))
    assert not result.is_match
    [entry] = audit_store.entries
    assert entry.success is False
    assert json.loads(entry.response) == {"message": NO_MATCH_MESSAGE}

def test_store_unavailable_propagates_without_audit(audit_store):
    store = FakeRuleStore(unavailable=True)
    with pytest.raises(StoreUnavailable):
        _service(store, audit_store).validate(query())
    assert audit_store.entries == []

def test_idempotent_verdicts(audit_store):
    svc = _service(_catalog(), audit_store)
    first = svc.validate(query(make="6"))
    second = svc.validate(query(make="6"))
    assert first == second
    assert len(audit_store.entries) == 2

# -----------------------------
# Query parsing
# -----------------------------
def test_flat_payload_collects_vehicle_fields():
    q = ValidationQuery.model_validate({
        "ruleType": "Global", "country": "CZ", "customer": "Company",
        "opportunitySource": "SMS", "make": "10", "makeYear": 2022,
    })
    assert q.vehicle == {"make": "10", "makeYear": 2022}
    assert q.to_request_dict()["ruleType"] == "Global"
    assert q.to_request_dict()["makeYear"] == 2022

def test_query_rejects_wildcards():
    with pytest.raises(ValueError):
        ValidationQuery.model_validate({"ruleType": "Global", "country": "Any",
                                        "customer": "Private", "opportunitySource": "SMS"})

# -----------------------------
# Celery delivery
# -----------------------------
def test_celery_store_enqueues_entry():
    entry = build_entry(query(make="10"), SelectionOutcome(rule=make_rule(1)))
    with patch("vehicle_rules.celery_worker.record_audit_entry.delay") as delay:
        CeleryAuditStore().append(entry)
    payload = delay.call_args.args[0]
    assert payload["rule_id"] == 1
    assert payload["success"] is True

def test_celery_enqueue_failure_is_swallowed():
    with patch("vehicle_rules.celery_worker.record_audit_entry.delay", side_effect=ConnectionError("no broker")):
        AuditRecorder(CeleryAuditStore()).record(query(), SelectionOutcome())

def test_worker_inserts_audit_row(db, monkeypatch):
    from contextlib import contextmanager
    from vehicle_rules.celery_worker import record_audit_entry
    from vehicle_rules.models import AuditLog

    @contextmanager
    def _scope():
        yield db

    monkeypatch.setattr("vehicle_rules.celery_worker.session_scope", _scope)
    entry = build_entry(query(make="10"), SelectionOutcome())
    result = record_audit_entry.run(entry.model_dump(mode="json"))
    assert result["ok"]
    row = db.query(AuditLog).one()
    assert row.success is False
    assert json.loads(row.response) == {"message": NO_MATCH_MESSAGE}

def test_worker_does_not_retry_malformed_entries():
    from pydantic import ValidationError
    from vehicle_rules.celery_worker import record_audit_entry

    assert ValidationError in record_audit_entry.dont_autoretry_for
    with patch("vehicle_rules.celery_worker.session_scope") as scope:
        with pytest.raises(ValidationError):
            record_audit_entry.run({"request": "{}", "success": "maybe"})
    scope.assert_not_called()
