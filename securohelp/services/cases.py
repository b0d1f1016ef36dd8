"""
Case Entity Store
=================
Create, read, list, patch and soft-delete cases.

Status is not a patchable field: new cases get their initial status (and
the first ledger row) here, every later change goes through
``TransitionController``.
"""

from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from securohelp.core.config import settings
from securohelp.core.database import run_in_transaction, utcnow
from securohelp.core.errors import NotFound, ValidationError
from securohelp.models.case import Case
from securohelp.models.insurance_company import InsuranceCompany
from securohelp.models.user import User
from securohelp.repositories.cases import CaseFilters, CaseRepository
from securohelp.repositories.clients import ClientRepository
from securohelp.repositories.history import StatusHistoryRepository
from securohelp.repositories.users import UserRepository
from securohelp.services.case_numbers import is_case_number_conflict, next_case_number
from securohelp.services.status_catalog import StatusCatalog
from securohelp.services.transitions import TransitionController, milestone_updates

logger = logging.getLogger(__name__)

# Orthogonal attributes a patch may touch.
EDITABLE_FIELDS = frozenset({
    "insurance_company_id",
    "assigned_agent_id",
    "incident_date",
    "incident_description",
    "incident_location",
    "policy_number",
    "claim_number",
    "claim_value",
    "compensation_received",
    "vehicle_brand",
    "vehicle_model",
    "vehicle_registration",
    "vehicle_year",
    "internal_notes",
})

CREATE_FIELDS = EDITABLE_FIELDS | {"client_id"}

MAX_PAGE_SIZE = 100


@dataclass
class Page:
    items: list[Case]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


class CaseService:
    def __init__(
        self,
        db: Session,
        *,
        clock: Callable[[], datetime] = utcnow,
        number_allocator: Callable[[Session, datetime], str] = next_case_number,
    ):
        self.db = db
        self.clock = clock
        self.number_allocator = number_allocator
        self.cases = CaseRepository(db)
        self.clients = ClientRepository(db)
        self.ledger = StatusHistoryRepository(db)
        self.users = UserRepository(db)
        self.catalog = StatusCatalog(db)
        self.transitions = TransitionController(db, clock=clock)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, data: dict[str, Any], user: User) -> Case:
        """
        Insert a case with its initial status and the creation ledger row.

        ``data`` uses model attribute names; ``client_id`` and
        ``incident_date`` are required, ``status_id`` is optional.
        """
        missing = [f for f in ("client_id", "incident_date") if data.get(f) in (None, "")]
        if missing:
            raise ValidationError("Brak wymaganych pól", details={"missing": missing})
        unknown = set(data) - CREATE_FIELDS - {"status_id"}
        if unknown:
            raise ValidationError("Nieznane pola sprawy", details={"fields": sorted(unknown)})

        if self.clients.get(data["client_id"]) is None:
            raise NotFound("Nie znaleziono klienta")

        status_id = data.get("status_id")
        status = (
            self.catalog.get_active(status_id)
            if status_id is not None
            else self.catalog.default_status()
        )
        fields = {k: v for k, v in data.items() if k in CREATE_FIELDS}
        if fields.get("assigned_agent_id") is None:
            fields["assigned_agent_id"] = user.id
        self._check_references(fields)

        def work() -> Case:
            now = self.clock()
            case = Case(
                id=uuid.uuid4(),
                case_number=self.number_allocator(self.db, now),
                status_id=status.id,
                created_by_user_id=user.id,
                updated_by_user_id=user.id,
                created_at=now,
                updated_at=now,
                **fields,
            )
            # Entering the initial status stamps its milestones like any transition.
            for field, value in milestone_updates(case, status, now).items():
                setattr(case, field, value)
            self.cases.add(case)
            self.ledger.append(
                case_id=case.id,
                from_status_id=None,
                to_status_id=status.id,
                comment=settings.creation_status_comment,
                changed_by_user_id=user.id,
                changed_at=now,
            )
            return case

        case = run_in_transaction(
            self.db,
            work,
            retries=settings.case_number_max_retries,
            retry_on=(IntegrityError,),
            retry_if=is_case_number_conflict,
            label="case create",
        )
        self.db.refresh(case)
        logger.info("Case created: %s (status %s) by %s", case.case_number, status.code, user.email)
        return case

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get(self, case_id: uuid.UUID) -> Case:
        case = self.cases.get(case_id)
        if case is None:
            raise NotFound("Nie znaleziono sprawy")
        return case

    def list(self, filters: CaseFilters, *, page: int = 1, limit: int = 20) -> Page:
        if page < 1:
            raise ValidationError("Numer strony musi być dodatni")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"Limit musi mieścić się w zakresie 1-{MAX_PAGE_SIZE}")
        items, total = self.cases.list(filters, offset=(page - 1) * limit, limit=limit)
        return Page(items=items, page=page, limit=limit, total=total)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def update(
        self,
        case_id: uuid.UUID,
        patch: dict[str, Any],
        user: User,
        *,
        status_id: Optional[int] = None,
        status_comment: Optional[str] = None,
    ) -> Case:
        """
        Patch orthogonal fields and optionally change status in one commit.

        ``patch`` may not name ``status_id``; pass the requested status
        separately so it is routed through the transition controller.
        """
        rejected = set(patch) - EDITABLE_FIELDS
        if rejected:
            raise ValidationError(
                "Tych pól nie można edytować", details={"fields": sorted(rejected)},
            )
        if "incident_date" in patch and patch["incident_date"] is None:
            raise ValidationError("Data zdarzenia jest wymagana")
        self._check_references(patch)

        def work() -> Case:
            case = self.cases.get_for_update(case_id)
            if case is None:
                raise NotFound("Nie znaleziono sprawy")
            for field, value in patch.items():
                setattr(case, field, value)
            if patch:
                case.updated_by_user_id = user.id
            if status_id is not None:
                self.transitions.stage(case, status_id, status_comment, user)
            return case

        case = run_in_transaction(
            self.db,
            work,
            retries=settings.transition_max_retries,
            label=f"case update case={case_id}",
        )
        self.db.refresh(case)
        if patch:
            logger.info("Case %s updated fields %s by %s", case.case_number, sorted(patch), user.email)
        return case

    def _check_references(self, fields: dict[str, Any]) -> None:
        agent_id = fields.get("assigned_agent_id")
        if agent_id is not None and self.users.get_active(agent_id) is None:
            raise NotFound("Nie znaleziono agenta")
        insurer_id = fields.get("insurance_company_id")
        if insurer_id is not None and self.db.get(InsuranceCompany, insurer_id) is None:
            raise NotFound("Nie znaleziono ubezpieczyciela")

    # ------------------------------------------------------------------
    # Soft delete
    # ------------------------------------------------------------------

    def soft_delete(self, case_id: uuid.UUID, user: User) -> Case:
        def work() -> Case:
            case = self.cases.get_for_update(case_id)
            if case is None:
                raise NotFound("Nie znaleziono sprawy")
            case.deleted_at = self.clock()
            case.deleted_by_user_id = user.id
            return case

        case = run_in_transaction(
            self.db,
            work,
            retries=settings.transition_max_retries,
            label=f"case delete case={case_id}",
        )
        logger.info("Case %s soft-deleted by %s", case.case_number, user.email)
        return case
