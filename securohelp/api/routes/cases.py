"""Cases API: CRUD, status changes and the status-history ledger."""

from __future__ import annotations

import uuid
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from securohelp.api.schemas import (
    CaseCreate,
    CaseDetailOut,
    CaseListOut,
    CaseOut,
    CaseUpdate,
    HistoryEntryOut,
    LedgerReportOut,
    MessageOut,
    PaginationOut,
)
from securohelp.core.database import get_db
from securohelp.core.security import get_current_user
from securohelp.models.case import Case
from securohelp.models.user import User
from securohelp.repositories.cases import CaseFilters
from securohelp.services.cases import CaseService
from securohelp.services.ledger import history_for_case, verify_case_ledger

router = APIRouter(prefix="/cases", tags=["cases"])


def _detail(db: Session, case: Case) -> CaseDetailOut:
    history = history_for_case(db, case.id, newest_first=True)
    return CaseDetailOut(
        **CaseOut.model_validate(case).model_dump(),
        status_history=[HistoryEntryOut.model_validate(row) for row in history],
    )


@router.get("", response_model=CaseListOut)
def list_cases(
    search: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    client_id: Optional[uuid.UUID] = Query(None, alias="clientId"),
    agent_id: Optional[uuid.UUID] = Query(None, alias="agentId"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    filters = CaseFilters(
        search=search or None,
        status_code=status or None,
        client_id=client_id,
        agent_id=agent_id,
    )
    result = CaseService(db).list(filters, page=page, limit=limit)
    return CaseListOut(
        cases=[CaseOut.model_validate(c) for c in result.items],
        pagination=PaginationOut(
            page=result.page,
            limit=result.limit,
            total=result.total,
            total_pages=result.total_pages,
        ),
    )


@router.post("", response_model=CaseOut, status_code=201)
def create_case(
    body: CaseCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return CaseService(db).create(body.model_dump(exclude_unset=True), user)


@router.get("/{case_id}", response_model=CaseDetailOut)
def get_case(
    case_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return _detail(db, CaseService(db).get(case_id))


@router.put("/{case_id}", response_model=CaseOut)
def update_case(
    case_id: uuid.UUID,
    body: CaseUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    patch = body.model_dump(exclude_unset=True, exclude={"status_id", "status_comment"})
    return CaseService(db).update(
        case_id,
        patch,
        user,
        status_id=body.status_id,
        status_comment=body.status_comment,
    )


@router.delete("/{case_id}", response_model=MessageOut)
def delete_case(
    case_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    CaseService(db).soft_delete(case_id, user)
    return MessageOut(message="Sprawa została usunięta")


# ── Status history ledger ────────────────────────────────────────────


@router.get("/{case_id}/status-history", response_model=list[HistoryEntryOut])
def case_status_history(
    case_id: uuid.UUID,
    order: Literal["asc", "desc"] = Query("desc"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return history_for_case(db, case_id, newest_first=(order == "desc"))


@router.get("/{case_id}/status-history/verify", response_model=LedgerReportOut)
def verify_case_status_history(
    case_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return LedgerReportOut.model_validate(verify_case_ledger(db, case_id))
