"""Read access to the status catalog."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from securohelp.models.case_status import CaseStatus


class CaseStatusRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, status_id: int) -> CaseStatus | None:
        return self.db.get(CaseStatus, status_id)

    def by_code(self, code: str) -> CaseStatus | None:
        return self.db.scalars(
            select(CaseStatus).where(CaseStatus.code == code)
        ).first()

    def active(self) -> list[CaseStatus]:
        return list(
            self.db.scalars(
                select(CaseStatus)
                .where(CaseStatus.is_active.is_(True))
                .order_by(CaseStatus.sort_order, CaseStatus.id)
            )
        )

    def first_active(self) -> CaseStatus | None:
        return self.db.scalars(
            select(CaseStatus)
            .where(CaseStatus.is_active.is_(True))
            .order_by(CaseStatus.sort_order, CaseStatus.id)
            .limit(1)
        ).first()

    def final_ids(self) -> list[int]:
        return list(self.db.scalars(select(CaseStatus.id).where(CaseStatus.is_final.is_(True))))
