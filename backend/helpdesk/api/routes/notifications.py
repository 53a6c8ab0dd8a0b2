# helpdesk/api/routes/notifications.py
from typing import List
from fastapi import APIRouter, Depends, Query
from helpdesk.api.deps import get_current_user
from helpdesk.models.notification import Notification
from helpdesk.models.user import CurrentUser
from helpdesk.services import notifications as svc

router = APIRouter()

@router.get("", response_model=List[Notification])
async def list_notifications(
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
    current: CurrentUser = Depends(get_current_user),
):
    return await svc.list_for_user(current, unread_only=unread_only, limit=limit)

@router.get("/unread-count")
async def unread_count(current: CurrentUser = Depends(get_current_user)):
    return {"count": await svc.unread_count(current)}

@router.post("/read-all")
async def read_all(current: CurrentUser = Depends(get_current_user)):
    return await svc.mark_all_read(current)

@router.post("/{notification_id}/read")
async def read_one(notification_id: str, current: CurrentUser = Depends(get_current_user)):
    return await svc.mark_read(notification_id, current)
