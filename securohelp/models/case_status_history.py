"""CaseStatusHistory model: append-only ledger of status transitions."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from securohelp.core.database import Base


class CaseStatusHistory(Base):
    """
    One transition of one case.

    Rows are inserted in the same transaction as the case update they
    describe and are never updated or deleted afterwards. ``from_status_id``
    is NULL only for the entry written when the case is created.
    """

    __tablename__ = "case_status_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    case_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("cases.id"), nullable=False, index=True,
    )
    from_status_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("case_statuses.id"), nullable=True,
    )
    to_status_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("case_statuses.id"), nullable=False,
    )
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    changed_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=True,
    )
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        nullable=False,
    )

    # Relationships
    case = relationship("Case", back_populates="status_history")
    from_status = relationship("CaseStatus", foreign_keys=[from_status_id], lazy="joined")
    to_status = relationship("CaseStatus", foreign_keys=[to_status_id], lazy="joined")
    changed_by = relationship("User", foreign_keys=[changed_by_user_id], lazy="joined")

    def __repr__(self):
        return (
            f"<CaseStatusHistory case={self.case_id} "
            f"{self.from_status_id}->{self.to_status_id}>"
        )
