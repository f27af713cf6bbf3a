
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Optional
from datetime import datetime

from .enums import ANY, RuleType, RuleStatus, Action, Customer, Country, OpportunitySource, Operator

NO_MATCH_MESSAGE = "No matching rules found"


class CamelModel(BaseModel):
    # wire format is camelCase (ruleId, validUntil, orGroup...)
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

# ----------------------------
# Validation
# ----------------------------
class ValidationQuery(CamelModel):
    """A vehicle plus the request context it is validated in.

    Posted flat: every key other than the four context fields is treated as a
    vehicle attribute and collected into ``vehicle``.
    """
    rule_type: RuleType
    country: Country
    customer: Customer
    opportunity_source: OpportunitySource
    vehicle: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _collect_vehicle_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "vehicle" in data:
            return data
        context_keys = set()
        for name, field in cls.model_fields.items():
            context_keys.update({name, field.alias})
        context = {k: v for k, v in data.items() if k in context_keys}
        context["vehicle"] = {k: v for k, v in data.items() if k not in context_keys}
        return context

    @field_validator("country", "customer", "opportunity_source")
    @classmethod
    def _no_wildcard(cls, v):
        if v == ANY:
            raise ValueError("'Any' is a rule-side wildcard, a query needs a concrete value")
        return v

    def to_request_dict(self) -> Dict[str, Any]:
        """Flat camelCase view, the shape callers post."""
        out = self.model_dump(mode="json", by_alias=True, exclude={"vehicle"})
        out.update(self.vehicle)
        return out


class ValidationResponse(CamelModel):
    is_match: bool
    action: Optional[str] = None
    action_message: Optional[str] = None

# ----------------------------
# Rules / groups / conditions
# ----------------------------
class ConditionCreate(CamelModel):
    parameter: str = Field(min_length=1, max_length=64)
    operator: Operator
    value: str
    or_group: Optional[int] = None

class ConditionOut(ConditionCreate):
    condition_id: int
    condition_group_id: int

class ConditionGroupCreate(CamelModel):
    description: Optional[str] = None
    conditions: List[ConditionCreate] = Field(default_factory=list)

class ConditionGroupOut(CamelModel):
    condition_group_id: int
    rule_id: int
    description: Optional[str] = None
    conditions: List[ConditionOut] = Field(default_factory=list)

class RuleBase(CamelModel):
    rule_name: str = Field(min_length=1, max_length=255)
    rule_type: RuleType
    valid_until: Optional[datetime] = None
    status: RuleStatus = RuleStatus.DRAFT
    action: Action
    action_message: Optional[str] = None
    customer: Customer = Customer.ANY
    country: Country = Country.ANY
    opportunity_source: OpportunitySource = OpportunitySource.ANY

class RuleCreate(RuleBase):
    created_by: int
    last_modified_by: int
    condition_groups: List[ConditionGroupCreate] = Field(default_factory=list)

class RuleUpdate(CamelModel):
    rule_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    rule_type: Optional[RuleType] = None
    valid_until: Optional[datetime] = None
    status: Optional[RuleStatus] = None
    action: Optional[Action] = None
    action_message: Optional[str] = None
    customer: Optional[Customer] = None
    country: Optional[Country] = None
    opportunity_source: Optional[OpportunitySource] = None
    last_modified_by: Optional[int] = None

class RuleOut(RuleBase):
    rule_id: int
    created_by: int
    last_modified_by: int
    last_modified_date: datetime

class RuleDetail(RuleOut):
    condition_groups: List[ConditionGroupOut] = Field(default_factory=list)

# ----------------------------
# Audit
# ----------------------------
class AuditEntry(CamelModel):
    """Immutable record of one validation attempt."""
    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    request: str
    response: str
    rule_id: Optional[int] = None
    success: bool

class AuditEntryOut(AuditEntry):
    id: int
