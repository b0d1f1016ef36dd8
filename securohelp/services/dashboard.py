"""Dashboard figures for the staff landing page."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from sqlalchemy.orm import Session

from securohelp.core.database import utcnow
from securohelp.models.case import Case
from securohelp.repositories.cases import CaseRepository
from securohelp.repositories.clients import ClientRepository
from securohelp.repositories.statuses import CaseStatusRepository


@dataclass
class DashboardStats:
    total_clients: int
    active_cases: int
    new_cases_this_month: int
    completed_cases_this_month: int


def month_bounds(now: datetime) -> tuple[datetime, datetime]:
    """[start, end) of the calendar month containing ``now``."""
    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


class DashboardService:
    def __init__(self, db: Session, *, clock: Callable[[], datetime] = utcnow):
        self.db = db
        self.clock = clock
        self.cases = CaseRepository(db)

    def stats(self) -> DashboardStats:
        start, end = month_bounds(self.clock())
        final_ids = CaseStatusRepository(self.db).final_ids()
        return DashboardStats(
            total_clients=ClientRepository(self.db).count_active(),
            active_cases=self.cases.count_active(final_ids),
            new_cases_this_month=self.cases.count_created_between(start, end),
            completed_cases_this_month=self.cases.count_closed_between(start, end),
        )

    def recent_cases(self, limit: int = 10) -> list[Case]:
        return self.cases.recent(limit)
