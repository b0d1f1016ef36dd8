"""Case status catalog endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from securohelp.api.schemas import CaseStatusOut
from securohelp.core.database import get_db
from securohelp.core.security import get_current_user
from securohelp.services.status_catalog import StatusCatalog

router = APIRouter(
    prefix="/case-statuses",
    tags=["case-statuses"],
    dependencies=[Depends(get_current_user)],
)


@router.get("", response_model=list[CaseStatusOut])
def list_case_statuses(db: Session = Depends(get_db)):
    return StatusCatalog(db).list_active()
