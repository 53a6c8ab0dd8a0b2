# helpdesk/api/routes/holidays.py
from fastapi import APIRouter, Depends
from helpdesk.api.deps import get_current_user, require_role
from helpdesk.models.notification import HolidayCreate
from helpdesk.models.user import CurrentUser
from helpdesk.services import holiday_service as svc

router = APIRouter()

@router.get("")
async def list_holidays(_user: CurrentUser = Depends(get_current_user)):
    return await svc.list_holidays()

@router.post("", status_code=201)
async def add_holiday(payload: HolidayCreate, current: CurrentUser = Depends(require_role(["admin"]))):
    return await svc.add_holiday(payload, current)

@router.delete("/{holiday_id}")
async def delete_holiday(holiday_id: str, current: CurrentUser = Depends(require_role(["admin"]))):
    return await svc.delete_holiday(holiday_id, current)
