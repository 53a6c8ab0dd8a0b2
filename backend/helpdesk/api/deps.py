# helpdesk/api/deps.py
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from helpdesk.core.security import decode_token
from helpdesk.models.user import CurrentUser
from helpdesk.repositories import users_repo
from typing import List

security = HTTPBearer()

async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)) -> CurrentUser:
    token = credentials.credentials
    try:
        payload = decode_token(token)
        user_id = payload.get("sub")
        if not user_id:
            raise ValueError()
        user = CurrentUser(
            id=user_id, name=payload.get("name") or user_id,
            email=payload.get("email") or "", role=payload.get("role") or "requester",
        )
    except Exception:
        raise HTTPException(status_code=401, detail="Credenciais inválidas")

    # el directorio de perfiles alimenta "todos los admins" y las asignaciones
    await users_repo.remember(user.model_dump())
    return user

def require_role(roles: List[str]):
    async def checker(user: CurrentUser = Depends(get_current_user)):
        if user.role not in roles:
            raise HTTPException(status_code=403, detail="Não autorizado")
        return user
    return checker
