from __future__ import annotations
from datetime import datetime
from typing import Optional, List
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String, Integer, Text, DateTime, Boolean, Enum, ForeignKey, func
)
from .database import Base
from .enums import RuleType, RuleStatus, Action, Customer, Country, OpportunitySource, Operator


def _value_enum(enum_cls, name: str) -> Enum:
    # store the enum *values* ("POZVI - NESLIBUJ"), not the member names
    return Enum(enum_cls, name=name, values_callable=lambda e: [m.value for m in e])

# ----------------------------
# Rules
# ----------------------------
class Rule(Base):
    __tablename__ = "rules"

    rule_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    rule_name: Mapped[str] = mapped_column(String(255), nullable=False)
    rule_type: Mapped[RuleType] = mapped_column(_value_enum(RuleType, "rule_type"), nullable=False, index=True)
    valid_until: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))  # null = never expires
    status: Mapped[RuleStatus] = mapped_column(_value_enum(RuleStatus, "rule_status"), nullable=False,
                                               default=RuleStatus.DRAFT, server_default=RuleStatus.DRAFT.value)
    action: Mapped[Action] = mapped_column(_value_enum(Action, "action"), nullable=False)
    action_message: Mapped[Optional[str]] = mapped_column(Text)
    customer: Mapped[Customer] = mapped_column(_value_enum(Customer, "customer"), nullable=False,
                                               default=Customer.ANY, server_default=Customer.ANY.value)
    country: Mapped[Country] = mapped_column(_value_enum(Country, "country"), nullable=False,
                                             default=Country.ANY, server_default=Country.ANY.value)
    opportunity_source: Mapped[OpportunitySource] = mapped_column(
        _value_enum(OpportunitySource, "opportunity_source"), nullable=False,
        default=OpportunitySource.ANY, server_default=OpportunitySource.ANY.value)
    created_by: Mapped[int] = mapped_column(Integer, nullable=False)
    last_modified_by: Mapped[int] = mapped_column(Integer, nullable=False)
    last_modified_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False,
                                                         server_default=func.now())

    condition_groups: Mapped[List[ConditionGroup]] = relationship(
        back_populates="rule", cascade="all, delete-orphan", passive_deletes=True,
        order_by="ConditionGroup.condition_group_id",
    )

# ----------------------------
# Condition groups (AND-units of a rule)
# ----------------------------
class ConditionGroup(Base):
    __tablename__ = "condition_groups"

    condition_group_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    rule_id: Mapped[int] = mapped_column(ForeignKey("rules.rule_id", ondelete="CASCADE"), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text)

    rule: Mapped[Rule] = relationship(back_populates="condition_groups")
    conditions: Mapped[List[Condition]] = relationship(
        back_populates="group", cascade="all, delete-orphan", passive_deletes=True,
        order_by="Condition.condition_id",
    )

# ----------------------------
# Conditions
# ----------------------------
class Condition(Base):
    __tablename__ = "conditions"

    condition_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    condition_group_id: Mapped[int] = mapped_column(
        ForeignKey("condition_groups.condition_group_id", ondelete="CASCADE"), nullable=False, index=True)
    parameter: Mapped[str] = mapped_column(String(64), nullable=False)
    operator: Mapped[Operator] = mapped_column(_value_enum(Operator, "operator"), nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False)  # comma separated for IN / NOT IN / BETWEEN
    or_group: Mapped[Optional[int]] = mapped_column(Integer)  # same tag within a group = OR

    group: Mapped[ConditionGroup] = relationship(back_populates="conditions")

# ----------------------------
# Audit log (one row per validation)
# ----------------------------
class AuditLog(Base):
    __tablename__ = "audit_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    request: Mapped[str] = mapped_column(Text, nullable=False)
    response: Mapped[str] = mapped_column(Text, nullable=False)
    # no FK: audit rows outlive the rules they reference
    rule_id: Mapped[Optional[int]] = mapped_column(Integer, index=True)
    success: Mapped[bool] = mapped_column(Boolean, nullable=False)
