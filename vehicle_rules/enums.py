# vehicle_rules/enums.py
import enum

ANY = "Any"

class RuleType(str, enum.Enum):
    GLOBAL = "Global"
    LOCAL = "Local"

class RuleStatus(str, enum.Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    DRAFT = "Draft"

class Action(str, enum.Enum):
    INVITE_NO_PROMISE = "POZVI - NESLIBUJ"
    INVITE_SWAP_NO_PROMISE = "POZVI SWAPEM - NESLIBUJ"
    DO_NOT_INVITE = "NEZVI - NECHCEME"
    NO_INTEREST = "NoInterest"

class Customer(str, enum.Enum):
    PRIVATE = "Private"
    COMPANY = "Company"
    ANY = ANY

class Country(str, enum.Enum):
    CZ = "CZ"
    SK = "SK"
    PL = "PL"
    ANY = ANY

class OpportunitySource(str, enum.Enum):
    TICKING = "Ticking"
    WEBFORM = "Webform"
    SMS = "SMS"
    ANY = ANY

class Operator(str, enum.Enum):
    EQ = "="
    NE = "!="
    IN = "IN"
    NOT_IN = "NOT IN"
    GT = ">"
    LT = "<"
    GTE = ">="
    LTE = "<="
    BETWEEN = "BETWEEN"

# Condition parameters the rule builder offers; the engine itself accepts any key.
VEHICLE_PARAMETERS = ("make", "model", "makeYear", "tachometer", "fuelType", "engineType", "price")
