# tests/test_matcher.py
from datetime import datetime, timedelta, timezone

from vehicle_rules.enums import Action, Country, Customer, OpportunitySource, RuleType
from vehicle_rules.rules.matcher import basic_filters_match, is_valid_at, rule_matches
from vehicle_rules.rules.selector import select_rule
from vehicle_rules.tests.factories import FakeRuleStore, cond, group, make_rule, query

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


def test_wildcard_filters_accept_any_query_value():
    assert basic_filters_match(make_rule(1), query())

def test_specific_filters_must_equal_query():
    assert basic_filters_match(make_rule(1, country=Country.CZ, customer=Customer.PRIVATE,
                                         opportunity_source=OpportunitySource.WEBFORM), query())
    assert not basic_filters_match(make_rule(1, country=Country.SK), query())
    assert not basic_filters_match(make_rule(1, customer=Customer.COMPANY), query())
    assert not basic_filters_match(make_rule(1, opportunity_source=OpportunitySource.SMS), query())

def test_validity_deadline():
    assert is_valid_at(make_rule(1), NOW)
    assert is_valid_at(make_rule(1, valid_until=NOW + timedelta(days=1)), NOW)
    assert not is_valid_at(make_rule(1, valid_until=NOW - timedelta(seconds=1)), NOW)
    assert not is_valid_at(make_rule(1, valid_until=NOW), NOW)
    # naive deadlines are read as UTC
    assert is_valid_at(make_rule(1, valid_until=datetime(2026, 6, 2)), NOW)

def test_rule_without_groups_matches_on_filters():
    store = FakeRuleStore()
    assert rule_matches(make_rule(1), query(make="10"), store, NOW)

def test_every_group_must_match():
    g1, g2 = group(1), group(1)
    store = FakeRuleStore(groups={1: [
        (g1, [cond("make", "=", "10", or_group=1), cond("make", "=", "6", or_group=1)]),
        (g2, [cond("price", "BETWEEN", "100000,500000")]),
    ]})
    rule = make_rule(1)
    assert rule_matches(rule, query(make="6", price="200000"), store, NOW)
    assert not rule_matches(rule, query(make="6", price="50000"), store, NOW)
    assert not rule_matches(rule, query(make="6"), store, NOW)

def test_filters_checked_before_groups_are_loaded():
    store = FakeRuleStore(groups={1: [(group(1), [cond("make", "=", "10")])]})
    assert not rule_matches(make_rule(1, country=Country.PL), query(make="10"), store, NOW)
    assert not rule_matches(make_rule(1, valid_until=NOW - timedelta(days=1)), query(make="10"), store, NOW)
    assert not rule_matches(make_rule(1, rule_type=RuleType.LOCAL), query(make="10"), store, NOW)
    assert store.group_loads == []

# -----------------------------
# Candidate selection
# -----------------------------
def test_first_match_wins_in_rule_id_order():
    rules = [make_rule(5, action=Action.DO_NOT_INVITE), make_rule(2, action=Action.NO_INTEREST)]
    store = FakeRuleStore(rules)
    for _ in range(3):
        outcome = select_rule(rules, query(make="10"), store, NOW)
        assert outcome.rule.rule_id == 2

def test_scan_stops_after_first_hit():
    rules = [make_rule(1), make_rule(2), make_rule(3)]
    store = FakeRuleStore(rules)
    select_rule(rules, query(), store, NOW)
    assert store.group_loads == [1]

def test_no_match_returns_empty_outcome():
    rules = [make_rule(1)]
    store = FakeRuleStore(rules, groups={1: [(group(1), [cond("make", "=", "10")])]})
    outcome = select_rule(rules, query(make="999"), store, NOW)
    assert outcome.rule is None
    assert not outcome.is_match

def test_rule_with_load_failure_is_skipped():
    rules = [make_rule(1), make_rule(2, action=Action.NO_INTEREST)]
    store = FakeRuleStore(rules, broken=(1,))
    outcome = select_rule(rules, query(), store, NOW)
    assert outcome.rule.rule_id == 2
    assert outcome.skipped_rule_ids == [1]
