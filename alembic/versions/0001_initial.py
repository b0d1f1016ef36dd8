"""Initial schema: users, clients, insurers, status catalog, cases, ledger

Revision ID: 0001_initial
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

NOW = sa.text("CURRENT_TIMESTAMP")

STATUSES = [
    (1, "NEW", "Nowa", "Sprawa została założona", "#3B82F6", 1, False),
    (2, "DOCUMENTS", "Kompletowanie dokumentów", "Zbieranie dokumentacji szkody", "#F59E0B", 2, False),
    (3, "SENT_TO_INSURER", "Wysłano do ubezpieczyciela", "Dokumenty przekazane ubezpieczycielowi", "#8B5CF6", 3, False),
    (4, "POSITIVE_DECISION", "Decyzja pozytywna", "Ubezpieczyciel uznał roszczenie", "#10B981", 4, False),
    (5, "NEGATIVE_DECISION", "Decyzja negatywna", "Ubezpieczyciel odmówił wypłaty", "#EF4444", 5, False),
    (6, "APPEAL", "Odwołanie", "Złożono odwołanie od decyzji", "#F97316", 6, False),
    (7, "LAWSUIT", "Pozew", "Sprawa skierowana do sądu", "#DC2626", 7, False),
    (8, "CLOSED", "Zamknięta", "Sprawa zakończona", "#6B7280", 8, True),
]


def upgrade() -> None:
    # -- users --
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("role", sa.String(32), nullable=False, server_default="AGENT"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
    )

    # -- clients --
    op.create_table(
        "clients",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    )

    # -- insurance_companies --
    op.create_table(
        "insurance_companies",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("short_name", sa.String(64), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )

    # -- case_statuses --
    statuses = op.create_table(
        "case_statuses",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("code", sa.String(64), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("color", sa.String(16), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_final", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index("ix_case_statuses_code", "case_statuses", ["code"], unique=True)

    # -- cases --
    op.create_table(
        "cases",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("case_number", sa.String(32), nullable=False),
        sa.Column("client_id", sa.Uuid(), sa.ForeignKey("clients.id"), nullable=False),
        sa.Column("insurance_company_id", sa.Integer(), sa.ForeignKey("insurance_companies.id"), nullable=True),
        sa.Column("status_id", sa.Integer(), sa.ForeignKey("case_statuses.id"), nullable=False),
        sa.Column("assigned_agent_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("incident_date", sa.Date(), nullable=False),
        sa.Column("incident_description", sa.Text(), nullable=True),
        sa.Column("incident_location", sa.String(512), nullable=True),
        sa.Column("policy_number", sa.String(128), nullable=True),
        sa.Column("claim_number", sa.String(128), nullable=True),
        sa.Column("claim_value", sa.Numeric(12, 2), nullable=True),
        sa.Column("compensation_received", sa.Numeric(12, 2), nullable=True),
        sa.Column("vehicle_brand", sa.String(64), nullable=True),
        sa.Column("vehicle_model", sa.String(64), nullable=True),
        sa.Column("vehicle_registration", sa.String(32), nullable=True),
        sa.Column("vehicle_year", sa.Integer(), nullable=True),
        sa.Column("internal_notes", sa.Text(), nullable=True),
        sa.Column("documents_sent_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("decision_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("appeal_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("lawsuit_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("closed_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column("created_by_user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("updated_by_user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_by_user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
    )
    op.create_index("ix_cases_case_number", "cases", ["case_number"], unique=True)
    op.create_index("ix_cases_client_id", "cases", ["client_id"])
    op.create_index("ix_cases_status_id", "cases", ["status_id"])
    op.create_index("ix_cases_assigned_agent_id", "cases", ["assigned_agent_id"])
    op.create_index("ix_cases_created_at", "cases", ["created_at"])

    # -- case_status_history (append-only) --
    op.create_table(
        "case_status_history",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("case_id", sa.Uuid(), sa.ForeignKey("cases.id"), nullable=False),
        sa.Column("from_status_id", sa.Integer(), sa.ForeignKey("case_statuses.id"), nullable=True),
        sa.Column("to_status_id", sa.Integer(), sa.ForeignKey("case_statuses.id"), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("changed_by_user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("changed_at", sa.DateTime(timezone=True), server_default=NOW, nullable=False),
    )
    op.create_index("ix_case_status_history_case_id", "case_status_history", ["case_id"])

    op.bulk_insert(
        statuses,
        [
            {
                "id": sid,
                "code": code,
                "name": name,
                "description": description,
                "color": color,
                "sort_order": sort_order,
                "is_final": is_final,
                "is_active": True,
            }
            for sid, code, name, description, color, sort_order, is_final in STATUSES
        ],
    )


def downgrade() -> None:
    op.drop_table("case_status_history")
    op.drop_table("cases")
    op.drop_table("case_statuses")
    op.drop_table("insurance_companies")
    op.drop_table("clients")
    op.drop_table("users")
