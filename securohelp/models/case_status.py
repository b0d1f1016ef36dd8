"""CaseStatus model: the fixed vocabulary of case lifecycle states."""

from __future__ import annotations

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from securohelp.core.database import Base


class CaseStatus(Base):
    """
    One named state in the case lifecycle.

    ``sort_order`` only drives display ordering, it does not restrict which
    status may follow which. Reaching an ``is_final`` status closes the case.
    """

    __tablename__ = "case_statuses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    color: Mapped[str | None] = mapped_column(String(16), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_final: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self):
        return f"<CaseStatus {self.id}:{self.code}>"
