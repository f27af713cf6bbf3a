# vehicle_rules/rules/conditions.py
"""
Condition group matching.

A group is AND over its units; a unit is OR over its conditions. Conditions
that share an ``or_group`` tag form one unit, an untagged condition is a unit
of its own.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Union

from vehicle_rules.models import Condition, ConditionGroup
from vehicle_rules.rules.operators import evaluate
from vehicle_rules.utils.logging import logger


@dataclass(frozen=True)
class Singleton:
    condition_id: int

@dataclass(frozen=True)
class OrGroup:
    tag: int

UnitKey = Union[Singleton, OrGroup]


def unit_key(condition: Condition) -> UnitKey:
    if condition.or_group is None:
        return Singleton(condition.condition_id)
    return OrGroup(condition.or_group)

def partition_units(conditions: Iterable[Condition]) -> Dict[UnitKey, List[Condition]]:
    """Group conditions by unit key, keeping first-seen order."""
    units: Dict[UnitKey, List[Condition]] = {}
    for cond in conditions:
        units.setdefault(unit_key(cond), []).append(cond)
    return units

def condition_matches(condition: Condition, vehicle: Mapping[str, Any]) -> bool:
    return evaluate(condition.operator, condition.value, vehicle.get(condition.parameter))

def unit_matches(members: List[Condition], vehicle: Mapping[str, Any]) -> bool:
    return any(condition_matches(c, vehicle) for c in members)

def condition_group_matches(group: ConditionGroup, conditions: Iterable[Condition],
                            vehicle: Mapping[str, Any]) -> bool:
    # all() over no units is True: an empty group is satisfied
    ok = all(unit_matches(members, vehicle) for members in partition_units(conditions).values())
    if not ok:
        logger.debug("Condition group %s not satisfied", group.condition_group_id)
    return ok
