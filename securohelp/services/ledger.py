"""
Status ledger reads and integrity checks.

A healthy ledger for one case is a chain: the first row has no
``from_status_id``, each following row starts where the previous one
ended, timestamps never go backwards, and the last row ends at the
case's current status.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.orm import Session

from securohelp.core.database import as_utc
from securohelp.core.errors import NotFound
from securohelp.models.case_status_history import CaseStatusHistory
from securohelp.repositories.cases import CaseRepository
from securohelp.repositories.history import StatusHistoryRepository

logger = logging.getLogger(__name__)

EMPTY_LEDGER = "empty_ledger"
INITIAL_FROM_NOT_NULL = "initial_from_not_null"
CHAIN_BREAK = "chain_break"
HEAD_MISMATCH = "head_mismatch"
TIMESTAMP_REGRESSION = "timestamp_regression"


@dataclass
class LedgerViolation:
    kind: str
    entry_id: Optional[int]
    message: str


@dataclass
class LedgerReport:
    case_id: uuid.UUID
    case_number: str
    entry_count: int
    violations: list[LedgerViolation] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.violations


def history_for_case(
    db: Session, case_id: uuid.UUID, *, newest_first: bool = False,
) -> list[CaseStatusHistory]:
    """Ledger rows of a live case. Soft-deleted cases are not found."""
    if CaseRepository(db).get(case_id) is None:
        raise NotFound("Nie znaleziono sprawy")
    return StatusHistoryRepository(db).for_case(case_id, newest_first=newest_first)


def verify_case_ledger(db: Session, case_id: uuid.UUID) -> LedgerReport:
    case = CaseRepository(db).get(case_id, include_deleted=True)
    if case is None:
        raise NotFound("Nie znaleziono sprawy")

    # Insertion order, so a rewritten timestamp shows up as a regression.
    rows = StatusHistoryRepository(db).in_insertion_order(case_id)
    report = LedgerReport(case_id=case.id, case_number=case.case_number, entry_count=len(rows))

    if not rows:
        report.violations.append(
            LedgerViolation(EMPTY_LEDGER, None, "Sprawa nie ma żadnego wpisu historii"),
        )
        return report

    first = rows[0]
    if first.from_status_id is not None:
        report.violations.append(
            LedgerViolation(
                INITIAL_FROM_NOT_NULL,
                first.id,
                f"Pierwszy wpis ma status początkowy {first.from_status_id}",
            ),
        )

    for prev, row in zip(rows, rows[1:]):
        if row.from_status_id != prev.to_status_id:
            report.violations.append(
                LedgerViolation(
                    CHAIN_BREAK,
                    row.id,
                    f"Wpis zaczyna się od {row.from_status_id}, "
                    f"poprzedni kończy się na {prev.to_status_id}",
                ),
            )
        if as_utc(row.changed_at) < as_utc(prev.changed_at):
            report.violations.append(
                LedgerViolation(TIMESTAMP_REGRESSION, row.id, "Znacznik czasu cofa się"),
            )

    last = rows[-1]
    if last.to_status_id != case.status_id:
        report.violations.append(
            LedgerViolation(
                HEAD_MISMATCH,
                last.id,
                f"Ostatni wpis kończy się na {last.to_status_id}, "
                f"sprawa ma status {case.status_id}",
            ),
        )

    if not report.ok:
        logger.warning(
            "Ledger of case %s has %d violation(s): %s",
            case.case_number,
            len(report.violations),
            ", ".join(v.kind for v in report.violations),
        )
    return report


def verify_all(db: Session) -> list[LedgerReport]:
    """Check every case, soft-deleted ones included."""
    return [verify_case_ledger(db, case_id) for case_id in CaseRepository(db).all_ids()]
