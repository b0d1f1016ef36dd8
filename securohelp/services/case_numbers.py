"""Case number allocation: ``SH/{YYYY}/{MM}/{00001}``."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from securohelp.core.config import settings
from securohelp.repositories.cases import CaseRepository


def case_number_prefix(when: datetime) -> str:
    return f"{settings.case_number_prefix}/{when.year:04d}/{when.month:02d}/"


def parse_sequence(case_number: str, prefix: str) -> int | None:
    """Sequence part of ``case_number`` or None when it isn't one of ours."""
    if not case_number.startswith(prefix):
        return None
    tail = case_number[len(prefix):]
    if not tail.isdigit():
        return None
    return int(tail)


def format_case_number(prefix: str, sequence: int) -> str:
    return f"{prefix}{sequence:0{settings.case_number_padding}d}"


def next_case_number(db: Session, when: datetime) -> str:
    """
    Allocate ``1 + max(sequence)`` for the month of ``when``.

    Read-max-then-increment is not atomic on its own: two writers may
    compute the same number. The unique constraint on ``cases.case_number``
    rejects the loser, which re-allocates (see ``CaseService.create``).
    """
    prefix = case_number_prefix(when)
    highest = CaseRepository(db).highest_case_number(prefix)
    sequence = parse_sequence(highest, prefix) if highest is not None else None
    return format_case_number(prefix, (sequence or 0) + 1)


def is_case_number_conflict(error: Exception) -> bool:
    """True when ``error`` is the unique constraint on ``cases.case_number``."""
    if not isinstance(error, IntegrityError):
        return False
    constraint_name = getattr(getattr(error.orig, "diag", None), "constraint_name", None)
    if constraint_name == "ix_cases_case_number":
        return True
    message = str(error.orig) if error.orig is not None else str(error)
    return "ix_cases_case_number" in message or "cases.case_number" in message
