"""Command line access to the rule catalog.

    vehicle-rules list
    vehicle-rules validate [--payload '{"ruleType": "Global", ...}']
"""
import argparse
import json
import sys

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from vehicle_rules.database import session_scope
from vehicle_rules.errors import StoreUnavailable
from vehicle_rules.rules.repository import list_rules
from vehicle_rules.schemas import ValidationQuery
from vehicle_rules.services.validation import validation_service

SAMPLE_VEHICLE = {
    "ruleType": "Global",
    "country": "CZ",
    "opportunitySource": "Webform",
    "customer": "Private",
    "make": "10",
    "makeYear": 2010,
    "tachometer": 280000,
    "fuelType": "Diesel",
    "price": 450000,
}


def cmd_list(db) -> int:
    rules = list_rules(db)
    print("\nCurrent Vehicle Validation Rules:")
    print("================================")
    if not rules:
        print("\nNo rules found in the database.")
        return 0
    for rule in rules:
        print(f"\nRule ID: {rule.rule_id}")
        print(f"Name: {rule.rule_name}")
        print(f"Type: {rule.rule_type.value}")
        print(f"Status: {rule.status.value}")
        print(f"Action: {rule.action.value}")
        print(f"Country: {rule.country.value}")
        print("--------------------------------")
    return 0

def cmd_validate(db, payload: dict) -> int:
    query = ValidationQuery.model_validate(payload)
    result = validation_service(db).validate(query)
    print("\nValidation Result:")
    print("=================")
    if result.is_match:
        print(f"Action: {result.action}")
        print(f"Message: {result.action_message or 'No message provided'}")
    else:
        print(result.action_message)
    return 0

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vehicle-rules", description="Vehicle Validation Rules CLI")
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("list", help="Show all rules")
    val = sub.add_parser("validate", help="Validate a vehicle (sample vehicle by default)")
    val.add_argument("--payload", help="validation request as JSON")
    return parser

def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 0

    with session_scope() as db:
        try:
            if args.command == "list":
                return cmd_list(db)
            payload = json.loads(args.payload) if args.payload else SAMPLE_VEHICLE
            return cmd_validate(db, payload)
        except (json.JSONDecodeError, ValidationError) as e:
            print(f"Invalid payload: {e}", file=sys.stderr)
            return 2
        except (StoreUnavailable, SQLAlchemyError) as e:
            print(f"Error reading rules: {e}", file=sys.stderr)
            return 1

if __name__ == "__main__":
    sys.exit(main())
