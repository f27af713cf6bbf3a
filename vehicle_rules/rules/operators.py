# vehicle_rules/rules/operators.py
from __future__ import annotations
from typing import Any, Callable, Dict, List, Tuple, Union

from vehicle_rules.enums import Operator
from vehicle_rules.errors import MalformedCondition
from vehicle_rules.utils.logging import logger

# -----------------------------
# Coercion helpers
# -----------------------------
def stringify(value: Any) -> str:
    """Render a candidate value the way rule values are authored.

    JSON numbers arrive as int or float; ``2022.0`` must compare equal to the
    stored ``"2022"``.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)

def to_number(value: Any) -> float:
    if isinstance(value, bool):
        raise MalformedCondition("numeric", str(value), "boolean is not a number")
    try:
        if isinstance(value, (int, float)):
            return float(value)
        return float(str(value).strip())
    except (TypeError, ValueError, OverflowError):
        # OverflowError: ints too large for a float
        raise MalformedCondition("numeric", str(value), "not a number") from None

def split_list(stored: str) -> List[str]:
    return [part.strip() for part in stored.split(",")]

def parse_bounds(stored: str) -> Tuple[float, float]:
    parts = split_list(stored)
    if len(parts) != 2:
        raise MalformedCondition(Operator.BETWEEN.value, stored, "expected exactly two bounds")
    return to_number(parts[0]), to_number(parts[1])

# -----------------------------
# Operators
# -----------------------------
def _eq(stored: str, candidate: Any) -> bool:
    return stringify(candidate) == stored

def _ne(stored: str, candidate: Any) -> bool:
    return stringify(candidate) != stored

def _in(stored: str, candidate: Any) -> bool:
    return stringify(candidate) in split_list(stored)

def _not_in(stored: str, candidate: Any) -> bool:
    return stringify(candidate) not in split_list(stored)

def _gt(stored: str, candidate: Any) -> bool:
    return to_number(candidate) > to_number(stored)

def _lt(stored: str, candidate: Any) -> bool:
    return to_number(candidate) < to_number(stored)

def _gte(stored: str, candidate: Any) -> bool:
    return to_number(candidate) >= to_number(stored)

def _lte(stored: str, candidate: Any) -> bool:
    return to_number(candidate) <= to_number(stored)

def _between(stored: str, candidate: Any) -> bool:
    lo, hi = parse_bounds(stored)
    return lo <= to_number(candidate) <= hi

OPERATORS: Dict[Operator, Callable[[str, Any], bool]] = {
    Operator.EQ: _eq,
    Operator.NE: _ne,
    Operator.IN: _in,
    Operator.NOT_IN: _not_in,
    Operator.GT: _gt,
    Operator.LT: _lt,
    Operator.GTE: _gte,
    Operator.LTE: _lte,
    Operator.BETWEEN: _between,
}

# -----------------------------
# Main entry
# -----------------------------
def evaluate(operator: Union[Operator, str], stored_value: str, candidate: Any) -> bool:
    """
    Compare ``candidate`` (a vehicle field) against a condition's stored value.

    Never raises: an absent candidate, an unknown operator or a value that
    cannot be coerced all evaluate to False.
    """
    if candidate is None:
        return False
    try:
        op = Operator(operator)
    except ValueError:
        logger.warning("Unknown operator %r, condition fails closed", operator)
        return False
    if stored_value is None:
        return False
    try:
        return OPERATORS[op](stored_value, candidate)
    except MalformedCondition as e:
        logger.debug("Malformed condition %s %r vs %r: %s", op.value, stored_value, candidate, e)
        return False
