"""Case model: the claim tracked through its lifecycle."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from securohelp.core.database import Base


class Case(Base):
    """
    Mutable aggregate root of the case lifecycle.

    ``status_id`` is written only by case creation and the transition
    controller; every change is mirrored by a ``CaseStatusHistory`` row in
    the same transaction. Milestone dates are set once and never cleared.
    ``version`` is bumped on every UPDATE so a writer holding a stale copy
    fails at flush instead of overwriting a concurrent transition.
    """

    __tablename__ = "cases"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    case_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)

    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("clients.id"), nullable=False, index=True,
    )
    insurance_company_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("insurance_companies.id"), nullable=True,
    )
    status_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("case_statuses.id"), nullable=False, index=True,
    )
    assigned_agent_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True, index=True,
    )

    # Incident / claim details
    incident_date: Mapped[date] = mapped_column(Date, nullable=False)
    incident_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    incident_location: Mapped[str | None] = mapped_column(String(512), nullable=True)
    policy_number: Mapped[str | None] = mapped_column(String(128), nullable=True)
    claim_number: Mapped[str | None] = mapped_column(String(128), nullable=True)
    claim_value: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    compensation_received: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    vehicle_brand: Mapped[str | None] = mapped_column(String(64), nullable=True)
    vehicle_model: Mapped[str | None] = mapped_column(String(64), nullable=True)
    vehicle_registration: Mapped[str | None] = mapped_column(String(32), nullable=True)
    vehicle_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    internal_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Milestones (first-write-wins)
    documents_sent_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    decision_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    appeal_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    lawsuit_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    closed_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Audit
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    created_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True,
    )
    updated_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True,
    )

    # Soft delete
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    deleted_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True,
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    client = relationship("Client", back_populates="cases", lazy="joined")
    status = relationship("CaseStatus", lazy="joined")
    insurance_company = relationship("InsuranceCompany", lazy="joined")
    assigned_agent = relationship("User", foreign_keys=[assigned_agent_id], lazy="joined")
    status_history = relationship(
        "CaseStatusHistory",
        back_populates="case",
        order_by="CaseStatusHistory.id",
        lazy="select",
        passive_deletes="all",
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self):
        return f"<Case {self.case_number}>"
