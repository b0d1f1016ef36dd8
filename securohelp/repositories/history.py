"""Append-only access to the status-history ledger."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from securohelp.models.case_status_history import CaseStatusHistory


class StatusHistoryRepository:
    """
    The ledger exposes ``append`` and reads only. There is deliberately no
    update or delete; rows are written once, inside the caller's transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    def append(
        self,
        *,
        case_id: uuid.UUID,
        from_status_id: int | None,
        to_status_id: int,
        comment: str | None,
        changed_by_user_id: uuid.UUID | None,
        changed_at: datetime,
    ) -> CaseStatusHistory:
        row = CaseStatusHistory(
            case_id=case_id,
            from_status_id=from_status_id,
            to_status_id=to_status_id,
            comment=comment,
            changed_by_user_id=changed_by_user_id,
            changed_at=changed_at,
        )
        self.db.add(row)
        return row

    def for_case(self, case_id: uuid.UUID, *, newest_first: bool = False) -> list[CaseStatusHistory]:
        q = select(CaseStatusHistory).where(CaseStatusHistory.case_id == case_id)
        if newest_first:
            q = q.order_by(CaseStatusHistory.changed_at.desc(), CaseStatusHistory.id.desc())
        else:
            q = q.order_by(CaseStatusHistory.changed_at, CaseStatusHistory.id)
        return list(self.db.scalars(q))

    def latest(self, case_id: uuid.UUID) -> CaseStatusHistory | None:
        return self.db.scalars(
            select(CaseStatusHistory)
            .where(CaseStatusHistory.case_id == case_id)
            .order_by(CaseStatusHistory.changed_at.desc(), CaseStatusHistory.id.desc())
            .limit(1)
        ).first()

    def count_for_case(self, case_id: uuid.UUID) -> int:
        return self.db.scalar(
            select(func.count()).select_from(CaseStatusHistory)
            .where(CaseStatusHistory.case_id == case_id)
        ) or 0

    def in_insertion_order(self, case_id: uuid.UUID) -> list[CaseStatusHistory]:
        return list(
            self.db.scalars(
                select(CaseStatusHistory)
                .where(CaseStatusHistory.case_id == case_id)
                .order_by(CaseStatusHistory.id)
            )
        )
