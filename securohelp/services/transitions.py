"""
Case Status Transition Controller
==================================
The only code path that changes ``Case.status_id`` after creation.

Guarantees:
  - The case update and its ledger row are written in one transaction;
    a failure of either rolls back both.
  - Requesting the current status is a no-op: no ledger row, no milestones.
  - Milestone dates are first-write-wins; moving back through the lifecycle
    never clears or overwrites them.
  - A concurrent writer is detected through the case version counter (and
    the row lock on PostgreSQL); the transition is re-read and re-applied on
    top of the status that is actually current.

Any active status may follow any other; ``sort_order`` is presentation only.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from securohelp.core.config import settings
from securohelp.core.database import as_utc, run_in_transaction, utcnow
from securohelp.core.errors import NotFound
from securohelp.models.case import Case
from securohelp.models.case_status import CaseStatus
from securohelp.models.case_status_history import CaseStatusHistory
from securohelp.models.user import User
from securohelp.repositories.cases import CaseRepository
from securohelp.repositories.history import StatusHistoryRepository
from securohelp.repositories.users import UserRepository
from securohelp.services import status_catalog as codes
from securohelp.services.status_catalog import StatusCatalog

logger = logging.getLogger(__name__)

MILESTONE_FIELDS: dict[str, str] = {
    codes.SENT_TO_INSURER: "documents_sent_date",
    codes.POSITIVE_DECISION: "decision_date",
    codes.NEGATIVE_DECISION: "decision_date",
    codes.APPEAL: "appeal_date",
    codes.LAWSUIT: "lawsuit_date",
}


def milestone_updates(case: Case, status: CaseStatus, now: datetime) -> dict[str, datetime]:
    """Milestone fields entering ``status`` sets on ``case`` (unset ones only)."""
    updates: dict[str, datetime] = {}
    field = MILESTONE_FIELDS.get(status.code)
    if field is not None and getattr(case, field) is None:
        updates[field] = now
    if status.is_final and case.closed_date is None:
        updates["closed_date"] = now
    return updates


@dataclass
class TransitionResult:
    case: Case
    changed: bool
    previous_status_id: int
    entry: Optional[CaseStatusHistory] = None


class TransitionController:
    """Validates and applies status changes; see module docstring."""

    def __init__(
        self,
        db: Session,
        *,
        clock: Callable[[], datetime] = utcnow,
        max_retries: Optional[int] = None,
    ):
        self.db = db
        self.clock = clock
        self.max_retries = settings.transition_max_retries if max_retries is None else max_retries
        self.cases = CaseRepository(db)
        self.ledger = StatusHistoryRepository(db)
        self.users = UserRepository(db)
        self.catalog = StatusCatalog(db)

    def acting_user(self, user_id: uuid.UUID) -> User:
        user = self.users.get_active(user_id)
        if user is None:
            raise NotFound("Nie znaleziono użytkownika")
        return user

    def apply_transition(
        self,
        case_id: uuid.UUID,
        requested_status_id: int,
        comment: Optional[str],
        acting_user_id: uuid.UUID,
    ) -> Case:
        """Change the status of one case and record it in the ledger."""
        user = self.acting_user(acting_user_id)

        def work() -> TransitionResult:
            case = self.cases.get_for_update(case_id)
            if case is None:
                raise NotFound("Nie znaleziono sprawy")
            return self.stage(case, requested_status_id, comment, user)

        result = run_in_transaction(
            self.db,
            work,
            retries=self.max_retries,
            label=f"status transition case={case_id}",
        )
        self.db.refresh(result.case)
        return result.case

    def stage(
        self,
        case: Case,
        requested_status_id: int,
        comment: Optional[str],
        user: User,
    ) -> TransitionResult:
        """
        Apply a transition to ``case`` inside the caller's transaction.

        ``case`` must have been read with ``CaseRepository.get_for_update``
        in the same transaction. Nothing is committed here.
        """
        previous_status_id = case.status_id
        if requested_status_id == previous_status_id:
            return TransitionResult(case=case, changed=False, previous_status_id=previous_status_id)

        status = self.catalog.get_active(requested_status_id)
        now = self.clock()
        changed_at = self._ledger_timestamp(case.id, now)

        for field, value in milestone_updates(case, status, now).items():
            setattr(case, field, value)
        case.status_id = status.id
        case.updated_by_user_id = user.id

        entry = self.ledger.append(
            case_id=case.id,
            from_status_id=previous_status_id,
            to_status_id=status.id,
            comment=comment or settings.default_status_comment,
            changed_by_user_id=user.id,
            changed_at=changed_at,
        )

        logger.info(
            "Case %s status %s -> %s (%s) by %s",
            case.case_number,
            previous_status_id,
            status.id,
            status.code,
            user.email,
        )
        return TransitionResult(
            case=case,
            changed=True,
            previous_status_id=previous_status_id,
            entry=entry,
        )

    def _ledger_timestamp(self, case_id: uuid.UUID, now: datetime) -> datetime:
        """``now``, clamped so a case's ledger never runs backwards."""
        last = self.ledger.latest(case_id)
        if last is not None:
            last_at = as_utc(last.changed_at)
            if last_at is not None and last_at > now:
                return last_at
        return now
