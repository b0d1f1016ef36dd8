"""Persistence for the Case aggregate."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, lazyload

from securohelp.models.case import Case
from securohelp.models.case_status import CaseStatus
from securohelp.models.client import Client


@dataclass
class CaseFilters:
    """Query filters for case listings; ``None`` means "don't filter"."""

    search: Optional[str] = None
    status_code: Optional[str] = None
    client_id: Optional[uuid.UUID] = None
    agent_id: Optional[uuid.UUID] = None


class CaseRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, case_id: uuid.UUID, *, include_deleted: bool = False) -> Case | None:
        case = self.db.get(Case, case_id)
        if case is None or (case.deleted_at is not None and not include_deleted):
            return None
        return case

    def get_for_update(self, case_id: uuid.UUID) -> Case | None:
        """
        Re-read a case from the database and lock its row until commit.

        Eager joins are switched off for this read because PostgreSQL
        refuses FOR UPDATE on the nullable side of an outer join.
        """
        stmt = (
            select(Case)
            .where(Case.id == case_id, Case.deleted_at.is_(None))
            .options(lazyload("*"))
            .with_for_update(of=Case)
            .execution_options(populate_existing=True)
        )
        return self.db.scalars(stmt).first()

    def add(self, case: Case) -> Case:
        self.db.add(case)
        return case

    def highest_case_number(self, prefix: str) -> str | None:
        """
        Highest number under ``prefix``, soft-deleted cases included.

        Sequences are zero-padded, so ordering by length then text matches
        numeric order, also once a sequence outgrows its padding.
        """
        return self.db.scalar(
            select(Case.case_number)
            .where(Case.case_number.startswith(prefix))
            .order_by(func.length(Case.case_number).desc(), Case.case_number.desc())
            .limit(1)
        )

    def list(self, filters: CaseFilters, *, offset: int, limit: int) -> tuple[list[Case], int]:
        q = (
            select(Case)
            .outerjoin(Client, Case.client_id == Client.id)
            .join(CaseStatus, Case.status_id == CaseStatus.id)
            .where(Case.deleted_at.is_(None))
        )

        if filters.search:
            pattern = f"%{filters.search.strip()}%"
            q = q.where(
                or_(
                    Case.case_number.ilike(pattern),
                    Case.claim_number.ilike(pattern),
                    Client.first_name.ilike(pattern),
                    Client.last_name.ilike(pattern),
                    Case.incident_description.ilike(pattern),
                    Case.incident_location.ilike(pattern),
                )
            )
        if filters.status_code:
            q = q.where(CaseStatus.code == filters.status_code)
        if filters.client_id is not None:
            q = q.where(Case.client_id == filters.client_id)
        if filters.agent_id is not None:
            q = q.where(Case.assigned_agent_id == filters.agent_id)

        total = self.db.scalar(select(func.count()).select_from(q.subquery())) or 0
        rows = self.db.scalars(
            q.order_by(Case.created_at.desc(), Case.case_number.desc())
            .offset(offset)
            .limit(limit)
        ).unique()
        return list(rows), total

    def recent(self, limit: int) -> list[Case]:
        return list(
            self.db.scalars(
                select(Case)
                .where(Case.deleted_at.is_(None))
                .order_by(Case.created_at.desc())
                .limit(limit)
            ).unique()
        )

    def count_active(self, final_status_ids: list[int]) -> int:
        q = select(func.count()).select_from(Case).where(Case.deleted_at.is_(None))
        if final_status_ids:
            q = q.where(Case.status_id.not_in(final_status_ids))
        return self.db.scalar(q) or 0

    def count_created_between(self, start, end) -> int:
        return self.db.scalar(
            select(func.count()).select_from(Case).where(
                Case.deleted_at.is_(None),
                Case.created_at >= start,
                Case.created_at < end,
            )
        ) or 0

    def count_closed_between(self, start, end) -> int:
        return self.db.scalar(
            select(func.count()).select_from(Case).where(
                Case.deleted_at.is_(None),
                Case.closed_date.is_not(None),
                Case.closed_date >= start,
                Case.closed_date < end,
            )
        ) or 0

    def all_ids(self, *, include_deleted: bool = True) -> list[uuid.UUID]:
        q = select(Case.id).order_by(Case.created_at)
        if not include_deleted:
            q = q.where(Case.deleted_at.is_(None))
        return list(self.db.scalars(q))
