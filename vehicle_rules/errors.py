"""Rule engine error taxonomy.

Only ``StoreUnavailable`` is allowed to reach a caller of the validation
service. The others are contained where they occur: a rule with a
``DataLoadFailure`` is skipped, a ``MalformedCondition`` evaluates to false
and an ``AuditWriteFailure`` is logged.
"""
from __future__ import annotations
from typing import Optional


class RuleEngineError(Exception):
    pass


class StoreUnavailable(RuleEngineError):
    """The rule store could not be read at all."""


class DataLoadFailure(RuleEngineError):
    def __init__(self, rule_id: Optional[int], message: str):
        self.rule_id = rule_id
        super().__init__(f"rule {rule_id}: {message}")


class MalformedCondition(RuleEngineError):
    def __init__(self, operator: str, value: str, message: str):
        self.operator = operator
        self.value = value
        super().__init__(f"{operator} {value!r}: {message}")


class AuditWriteFailure(RuleEngineError):
    pass
