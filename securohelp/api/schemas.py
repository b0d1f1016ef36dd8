"""Pydantic request / response schemas for the API layer.

Fields are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


# ── Catalog ──────────────────────────────────────────────────────────


class CaseStatusOut(CamelModel):
    id: int
    code: str
    name: str
    description: str | None = None
    color: str | None = None
    sort_order: int
    is_final: bool
    is_active: bool


# ── Summaries ────────────────────────────────────────────────────────


class ClientSummary(CamelModel):
    id: uuid.UUID
    first_name: str
    last_name: str
    email: str | None = None
    phone: str | None = None


class InsuranceCompanySummary(CamelModel):
    id: int
    name: str
    short_name: str | None = None


class UserSummary(CamelModel):
    id: uuid.UUID
    first_name: str
    last_name: str
    email: str


# ── Cases ────────────────────────────────────────────────────────────


class CaseFields(CamelModel):
    """Orthogonal case attributes shared by create and update bodies."""

    insurance_company_id: Optional[int] = None
    assigned_agent_id: Optional[uuid.UUID] = None
    incident_description: Optional[str] = None
    incident_location: Optional[str] = Field(None, max_length=512)
    policy_number: Optional[str] = Field(None, max_length=128)
    claim_number: Optional[str] = Field(None, max_length=128)
    claim_value: Optional[Decimal] = Field(None, ge=0)
    compensation_received: Optional[Decimal] = Field(None, ge=0)
    vehicle_brand: Optional[str] = Field(None, max_length=64)
    vehicle_model: Optional[str] = Field(None, max_length=64)
    vehicle_registration: Optional[str] = Field(None, max_length=32)
    vehicle_year: Optional[int] = Field(None, ge=1900, le=2100)
    internal_notes: Optional[str] = None

    @field_validator("assigned_agent_id", "insurance_company_id", mode="before")
    @classmethod
    def _blank_reference_is_none(cls, value):
        # Form selects post "" for "no agent" and "no insurer".
        if isinstance(value, str) and not value.strip():
            return None
        return value


class CaseCreate(CaseFields):
    client_id: uuid.UUID
    incident_date: date
    status_id: Optional[int] = None

    class Config:
        extra = "forbid"


class CaseUpdate(CaseFields):
    """
    Patch body for ``PUT /cases/{id}``.

    Only fields present in the body are applied. ``statusId`` is handed to
    the transition controller; status, milestones, case number and audit
    columns are not accepted here.
    """

    incident_date: Optional[date] = None
    status_id: Optional[int] = None
    status_comment: Optional[str] = None

    class Config:
        extra = "forbid"

    @field_validator("status_id", mode="before")
    @classmethod
    def _blank_status_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class CaseOut(CamelModel):
    id: uuid.UUID
    case_number: str
    client_id: uuid.UUID
    insurance_company_id: int | None = None
    status_id: int
    assigned_agent_id: uuid.UUID | None = None

    incident_date: date
    incident_description: str | None = None
    incident_location: str | None = None
    policy_number: str | None = None
    claim_number: str | None = None
    claim_value: Decimal | None = None
    compensation_received: Decimal | None = None
    vehicle_brand: str | None = None
    vehicle_model: str | None = None
    vehicle_registration: str | None = None
    vehicle_year: int | None = None
    internal_notes: str | None = None

    documents_sent_date: datetime | None = None
    decision_date: datetime | None = None
    appeal_date: datetime | None = None
    lawsuit_date: datetime | None = None
    closed_date: datetime | None = None

    created_at: datetime
    updated_at: datetime
    created_by_user_id: uuid.UUID | None = None
    updated_by_user_id: uuid.UUID | None = None

    client: ClientSummary | None = None
    status: CaseStatusOut
    insurance_company: InsuranceCompanySummary | None = None
    assigned_agent: UserSummary | None = None


class HistoryEntryOut(CamelModel):
    id: int
    case_id: uuid.UUID
    from_status_id: int | None = None
    to_status_id: int
    comment: str | None = None
    changed_by_user_id: uuid.UUID | None = None
    changed_at: datetime
    from_status: CaseStatusOut | None = None
    to_status: CaseStatusOut
    changed_by: UserSummary | None = None


class CaseDetailOut(CaseOut):
    status_history: list[HistoryEntryOut] = []


class PaginationOut(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class CaseListOut(CamelModel):
    cases: list[CaseOut]
    pagination: PaginationOut


class MessageOut(CamelModel):
    message: str


# ── Ledger ───────────────────────────────────────────────────────────


class LedgerViolationOut(CamelModel):
    kind: str
    entry_id: int | None = None
    message: str


class LedgerReportOut(CamelModel):
    case_id: uuid.UUID
    case_number: str
    ok: bool
    entry_count: int
    violations: list[LedgerViolationOut]


# ── Dashboard ────────────────────────────────────────────────────────


class DashboardStatsOut(CamelModel):
    total_clients: int
    active_cases: int
    new_cases_this_month: int
    completed_cases_this_month: int


class RecentCaseOut(CamelModel):
    id: uuid.UUID
    case_number: str
    client_name: str | None = None
    status_name: str
    status_color: str | None = None
    claim_value: Decimal | None = None
    created_at: datetime
