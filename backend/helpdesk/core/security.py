# helpdesk/core/security.py
from datetime import datetime, timedelta, timezone
import jwt
from helpdesk.core.config import settings

# Los tokens los emite el proveedor de autenticación externo; aquí solo se
# verifican. create_access_token queda para herramientas internas y tests.

def create_access_token(user: dict, minutes: int = 30) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    claims = {
        "sub": user["id"], "name": user.get("name", ""), "email": user.get("email", ""),
        "role": user.get("role", "requester"), "exp": expire,
    }
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)

def decode_token(token: str) -> dict:
    return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
