# helpdesk/api/routes/users.py
from typing import List
from fastapi import APIRouter, Depends
from helpdesk.api.deps import get_current_user, require_role
from helpdesk.models.user import CurrentUser, UserOut
from helpdesk.repositories import users_repo

router = APIRouter()

@router.get("/me", response_model=CurrentUser)
async def read_users_me(current: CurrentUser = Depends(get_current_user)):
    return current

@router.get("", response_model=List[UserOut])
async def list_users(_admin: CurrentUser = Depends(require_role(["admin"]))):
    # perfiles conocidos, para elegir responsable
    return [
        UserOut(id=u["id"], name=u.get("name", ""), email=u.get("email", ""), role=u.get("role", "requester"))
        for u in await users_repo.list_all()
    ]
