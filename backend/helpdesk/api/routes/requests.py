# helpdesk/api/routes/requests.py
from fastapi import APIRouter, Query, Depends, Request as FastAPIRequest, Response
from datetime import datetime
from typing import Optional
from helpdesk.api.deps import get_current_user, require_role
from helpdesk.core.config import settings
from helpdesk.core.rate_limit import limiter, CREATE_LIMIT
from helpdesk.models.request import (
    Request, RequestCreate, PaginatedRequests, AssignPayload, TransitionPayload,
    ReopenPayload, ApprovalPayload, CommentPayload, DeadlinePayload, AttachmentPayload,
)
from helpdesk.models.user import CurrentUser
from helpdesk.services import request_service as svc

router = APIRouter()

@router.post("", response_model=Request, status_code=201)
@limiter.limit(CREATE_LIMIT)
async def create_request(request: FastAPIRequest, payload: RequestCreate, current: CurrentUser = Depends(get_current_user)):
    return await svc.create_request(payload, current)

@router.get("", response_model=PaginatedRequests)
async def get_requests(
    current: CurrentUser = Depends(get_current_user),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=settings.max_page_size),
    view: str = Query("active", pattern="^(active|done|rejected|all)$"),
    status: Optional[str] = None,
    request_type: Optional[str] = Query(None, alias="type"),
    priority: Optional[str] = None,
    assigned_to: Optional[str] = None,
    q: Optional[str] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    sort: str = Query("-created_at"),
):
    return await svc.list_requests(
        current, page=page, page_size=page_size, sort=sort, view=view, status=status,
        request_type=request_type, priority=priority, assigned_to=assigned_to, q=q,
        date_from=date_from, date_to=date_to,
    )

@router.get("/{request_id}", response_model=Request)
async def get_request_detail(request_id: str, current: CurrentUser = Depends(get_current_user)):
    return await svc.get_request(request_id, current)

@router.post("/{request_id}/assign", response_model=Request)
async def assign(request_id: str, payload: AssignPayload, current: CurrentUser = Depends(require_role(["admin"]))):
    return await svc.assign(request_id, payload.assigned_to, current)

@router.post("/{request_id}/transition", response_model=Request)
async def transition(request_id: str, payload: TransitionPayload, current: CurrentUser = Depends(require_role(["admin"]))):
    return await svc.change_status(request_id, payload.to_status, current)

@router.post("/{request_id}/reopen", response_model=Request)
async def reopen(request_id: str, payload: ReopenPayload, current: CurrentUser = Depends(get_current_user)):
    return await svc.reopen(request_id, payload.reason, current)

@router.post("/{request_id}/approval", response_model=Request)
async def approval(request_id: str, payload: ApprovalPayload, current: CurrentUser = Depends(require_role(["admin"]))):
    return await svc.decide_approval(request_id, payload.decision, payload.reason, current)

@router.post("/{request_id}/comments", response_model=Request)
async def add_comment(request_id: str, payload: CommentPayload, current: CurrentUser = Depends(get_current_user)):
    return await svc.add_comment(request_id, payload.text, current)

@router.post("/{request_id}/attachments", response_model=Request)
async def add_attachment(request_id: str, payload: AttachmentPayload, current: CurrentUser = Depends(get_current_user)):
    return await svc.add_attachment(request_id, payload.model_dump(), current)

@router.put("/{request_id}/deadline", response_model=Request)
async def override_deadline(request_id: str, payload: DeadlinePayload, current: CurrentUser = Depends(require_role(["admin"]))):
    return await svc.override_deadline(request_id, payload.deadline_at, current)

@router.delete("/{request_id}", status_code=204)
async def delete_request(request_id: str, current: CurrentUser = Depends(get_current_user)):
    await svc.delete_request(request_id, current)
    return Response(status_code=204)
