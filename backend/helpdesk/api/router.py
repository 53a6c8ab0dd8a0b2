# helpdesk/api/router.py
from fastapi import APIRouter
from helpdesk.api.routes import config, holidays, notifications, reports, requests, users

api_router = APIRouter(prefix="/api")
api_router.include_router(config.router, prefix="/config", tags=["config"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(requests.router, prefix="/requests", tags=["requests"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(holidays.router, prefix="/holidays", tags=["holidays"])
api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
