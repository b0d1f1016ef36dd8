"""Status catalog: the fixed vocabulary of case lifecycle states."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from securohelp.core.errors import InvalidStatus, NotFound
from securohelp.models.case_status import CaseStatus
from securohelp.repositories.statuses import CaseStatusRepository

logger = logging.getLogger(__name__)

# Codes the transition controller reacts to.
SENT_TO_INSURER = "SENT_TO_INSURER"
POSITIVE_DECISION = "POSITIVE_DECISION"
NEGATIVE_DECISION = "NEGATIVE_DECISION"
APPEAL = "APPEAL"
LAWSUIT = "LAWSUIT"

DEFAULT_STATUSES: list[dict] = [
    {"id": 1, "code": "NEW", "name": "Nowa",
     "description": "Sprawa została założona", "color": "#3B82F6",
     "sort_order": 1, "is_final": False},
    {"id": 2, "code": "DOCUMENTS", "name": "Kompletowanie dokumentów",
     "description": "Zbieranie dokumentacji szkody", "color": "#F59E0B",
     "sort_order": 2, "is_final": False},
    {"id": 3, "code": SENT_TO_INSURER, "name": "Wysłano do ubezpieczyciela",
     "description": "Dokumenty przekazane ubezpieczycielowi", "color": "#8B5CF6",
     "sort_order": 3, "is_final": False},
    {"id": 4, "code": POSITIVE_DECISION, "name": "Decyzja pozytywna",
     "description": "Ubezpieczyciel uznał roszczenie", "color": "#10B981",
     "sort_order": 4, "is_final": False},
    {"id": 5, "code": NEGATIVE_DECISION, "name": "Decyzja negatywna",
     "description": "Ubezpieczyciel odmówił wypłaty", "color": "#EF4444",
     "sort_order": 5, "is_final": False},
    {"id": 6, "code": APPEAL, "name": "Odwołanie",
     "description": "Złożono odwołanie od decyzji", "color": "#F97316",
     "sort_order": 6, "is_final": False},
    {"id": 7, "code": LAWSUIT, "name": "Pozew",
     "description": "Sprawa skierowana do sądu", "color": "#DC2626",
     "sort_order": 7, "is_final": False},
    {"id": 8, "code": "CLOSED", "name": "Zamknięta",
     "description": "Sprawa zakończona", "color": "#6B7280",
     "sort_order": 8, "is_final": True},
]


class StatusCatalog:
    """Lookups over ``case_statuses``; every call re-queries the table."""

    def __init__(self, db: Session):
        self.repo = CaseStatusRepository(db)

    def list_active(self) -> list[CaseStatus]:
        return self.repo.active()

    def get_by_code(self, code: str) -> CaseStatus:
        status = self.repo.by_code(code)
        if status is None:
            logger.error("Status catalog has no entry for code %s", code)
            raise NotFound(f"Nie znaleziono statusu {code}")
        return status

    def get_active(self, status_id: int) -> CaseStatus:
        status = self.repo.get(status_id)
        if status is None or not status.is_active:
            raise InvalidStatus(details={"statusId": status_id})
        return status

    def default_status(self) -> CaseStatus:
        status = self.repo.first_active()
        if status is None:
            logger.error("Status catalog is empty; run `securohelp seed`")
            raise NotFound("Brak aktywnych statusów spraw")
        return status


def seed_statuses(db: Session) -> int:
    """Insert missing catalog entries (matched by code). Returns rows added."""
    repo = CaseStatusRepository(db)
    added = 0
    for entry in DEFAULT_STATUSES:
        if repo.by_code(entry["code"]) is not None:
            continue
        db.add(CaseStatus(is_active=True, **entry))
        added += 1
    db.flush()
    if added:
        logger.info("Seeded %d case statuses", added)
    return added
