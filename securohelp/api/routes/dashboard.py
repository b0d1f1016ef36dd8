"""Dashboard endpoints: headline counters and the latest cases."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from securohelp.api.schemas import DashboardStatsOut, RecentCaseOut
from securohelp.core.database import get_db
from securohelp.core.security import get_current_user
from securohelp.services.dashboard import DashboardService

router = APIRouter(
    prefix="/dashboard",
    tags=["dashboard"],
    dependencies=[Depends(get_current_user)],
)


@router.get("/stats", response_model=DashboardStatsOut)
def dashboard_stats(db: Session = Depends(get_db)):
    return DashboardStatsOut.model_validate(DashboardService(db).stats())


@router.get("/recent-cases", response_model=list[RecentCaseOut])
def recent_cases(
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
):
    return [
        RecentCaseOut(
            id=case.id,
            case_number=case.case_number,
            client_name=case.client.full_name if case.client else None,
            status_name=case.status.name,
            status_color=case.status.color,
            claim_value=case.claim_value,
            created_at=case.created_at,
        )
        for case in DashboardService(db).recent_cases(limit)
    ]
