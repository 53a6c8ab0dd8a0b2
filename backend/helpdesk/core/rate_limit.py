# helpdesk/core/rate_limit.py
import jwt
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from starlette.requests import Request

from helpdesk.core.config import settings
from helpdesk.core.security import decode_token


def user_or_ip(request: Request) -> str:
    # con token válido se limita por usuario; si no, por IP
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith("bearer "):
        try:
            return f"user:{decode_token(auth[7:])['sub']}"
        except (jwt.PyJWTError, KeyError):
            return get_remote_address(request)
    return get_remote_address(request)


limiter = Limiter(key_func=user_or_ip, enabled=settings.rate_limit_enabled)
rate_limit_handler = _rate_limit_exceeded_handler
CREATE_LIMIT = settings.create_rate_limit
