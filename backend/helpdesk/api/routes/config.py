# helpdesk/api/routes/config.py
from fastapi import APIRouter
from helpdesk.core.config import settings
from helpdesk.models.common import (
    APPROVAL_TYPES, KNOWN_TYPES, PRIORITY_LABELS, STATUS_LABELS, TYPE_LABELS,
)
from helpdesk.services.deadline import DEADLINE_DAYS_BY_TYPE, DEFAULT_DEADLINE_DAYS, PRIORITY_ADJUSTMENT

router = APIRouter()

@router.get("")
async def read_config():
    # lo que el front necesita para pintar formularios y sondear notificaciones
    return {
        "request_types": sorted(KNOWN_TYPES),
        "approval_types": sorted(APPROVAL_TYPES),
        "labels": {"type": TYPE_LABELS, "priority": PRIORITY_LABELS, "status": STATUS_LABELS},
        "deadline_days_by_type": DEADLINE_DAYS_BY_TYPE,
        "default_deadline_days": DEFAULT_DEADLINE_DAYS,
        "priority_adjustment": PRIORITY_ADJUSTMENT,
        "end_of_day_hour": settings.end_of_day_hour,
        "timezone": settings.timezone,
        "notification_poll_seconds": settings.notification_poll_seconds,
    }
