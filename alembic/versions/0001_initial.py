"""rules, condition groups, conditions and audit log

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18 00:00:00
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

ENUMS = {
    "rule_type": ("Global", "Local"),
    "rule_status": ("Active", "Inactive", "Draft"),
    "action": ("POZVI - NESLIBUJ", "POZVI SWAPEM - NESLIBUJ", "NEZVI - NECHCEME", "NoInterest"),
    "customer": ("Private", "Company", "Any"),
    "country": ("CZ", "SK", "PL", "Any"),
    "opportunity_source": ("Ticking", "Webform", "SMS", "Any"),
    "operator": ("=", "!=", "IN", "NOT IN", ">", "<", ">=", "<=", "BETWEEN"),
}

def _enum(name: str):
    # types are created once in upgrade(), columns only reference them
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)

def upgrade():
    bind = op.get_bind()
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    op.create_table(
        "rules",
        sa.Column("rule_id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("rule_name", sa.String(255), nullable=False),
        sa.Column("rule_type", _enum("rule_type"), nullable=False),
        sa.Column("valid_until", sa.DateTime(timezone=True)),
        sa.Column("status", _enum("rule_status"), nullable=False, server_default="Draft"),
        sa.Column("action", _enum("action"), nullable=False),
        sa.Column("action_message", sa.Text),
        sa.Column("customer", _enum("customer"), nullable=False, server_default="Any"),
        sa.Column("country", _enum("country"), nullable=False, server_default="Any"),
        sa.Column("opportunity_source", _enum("opportunity_source"), nullable=False, server_default="Any"),
        sa.Column("created_by", sa.Integer, nullable=False),
        sa.Column("last_modified_by", sa.Integer, nullable=False),
        sa.Column("last_modified_date", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
    )
    op.create_index("ix_rules_rule_type", "rules", ["rule_type"])

    op.create_table(
        "condition_groups",
        sa.Column("condition_group_id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("rule_id", sa.Integer, sa.ForeignKey("rules.rule_id", ondelete="CASCADE"), nullable=False),
        sa.Column("description", sa.Text),
    )
    op.create_index("ix_condition_groups_rule_id", "condition_groups", ["rule_id"])

    op.create_table(
        "conditions",
        sa.Column("condition_id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("condition_group_id", sa.Integer,
                  sa.ForeignKey("condition_groups.condition_group_id", ondelete="CASCADE"), nullable=False),
        sa.Column("parameter", sa.String(64), nullable=False),
        sa.Column("operator", _enum("operator"), nullable=False),
        sa.Column("value", sa.Text, nullable=False),
        sa.Column("or_group", sa.Integer),
    )
    op.create_index("ix_conditions_condition_group_id", "conditions", ["condition_group_id"])

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.Column("request", sa.Text, nullable=False),
        sa.Column("response", sa.Text, nullable=False),
        sa.Column("rule_id", sa.Integer),
        sa.Column("success", sa.Boolean, nullable=False),
    )
    op.create_index("ix_audit_log_rule_id", "audit_log", ["rule_id"])

def downgrade():
    op.drop_index("ix_audit_log_rule_id", table_name="audit_log")
    op.drop_table("audit_log")

    op.drop_index("ix_conditions_condition_group_id", table_name="conditions")
    op.drop_table("conditions")

    op.drop_index("ix_condition_groups_rule_id", table_name="condition_groups")
    op.drop_table("condition_groups")

    op.drop_index("ix_rules_rule_type", table_name="rules")
    op.drop_table("rules")

    bind = op.get_bind()
    for name in reversed(list(ENUMS)):
        postgresql.ENUM(name=name).drop(bind, checkfirst=True)
