# helpdesk/api/routes/reports.py

from fastapi import APIRouter, Query, Depends
from typing import Optional
from datetime import datetime
from helpdesk.api.deps import require_role
from helpdesk.models.user import CurrentUser
from helpdesk.services.report_service import report_requests, summary

router = APIRouter()

@router.get("/requests")
async def requests_report(
    status: str = Query("all", description="all | pending | rejected | <status>"),
    request_type: str = Query("all", alias="type"),
    date_from: Optional[datetime] = Query(None, description="Fecha de inicio (ISO)"),
    date_to: Optional[datetime] = Query(None, description="Fecha de fin, inclusiva (ISO)"),
    current: CurrentUser = Depends(require_role(["admin"])),
):
    return await report_requests(current, status=status, request_type=request_type, date_from=date_from, date_to=date_to)

@router.get("/summary")
async def requests_summary(
    period_days: Optional[int] = Query(None, ge=1, le=3660),
    current: CurrentUser = Depends(require_role(["admin"])),
):
    return await summary(current, period_days=period_days)
