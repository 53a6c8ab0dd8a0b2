# helpdesk/services/scheduler.py
"""
Tareas periódicas del servidor:
- recordatorios de plazo (por vencer en < 24h / vencido), una vez por estado;
- solicitudes de mantenimiento preventivo el 01/03 y el 01/09.
"""
import asyncio
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional

from fastapi import HTTPException

from helpdesk.core.config import settings
from helpdesk.models.common import DONE_STATES
from helpdesk.models.notification import NotificationEvent
from helpdesk.models.request import RequestCreate, normalize
from helpdesk.models.user import CurrentUser
from helpdesk.repositories import requests_repo, users_repo
from helpdesk.services import notifications, request_service

logger = logging.getLogger(__name__)

DUE_SOON_WINDOW = timedelta(hours=24)
PREVENTIVE_MAINTENANCE_DATES = {(3, 1), (9, 1)}

ACTIVE_FILTER = {"status": {"$nin": sorted(DONE_STATES)}, "approval_status": {"$ne": "rejected"}}


def reminder_state_for(doc: Dict, now: datetime) -> Optional[str]:
    if doc["status"] in DONE_STATES or doc.get("approval_status") == "rejected":
        return None
    deadline = doc.get("deadline_at")
    if deadline is None:
        return None
    if deadline.tzinfo is None:
        deadline = deadline.replace(tzinfo=timezone.utc)
    if deadline < now:
        return "overdue"
    if deadline < now + DUE_SOON_WINDOW:
        return "due_soon"
    return None


def reminder_events(doc: Dict, state: str) -> List[NotificationEvent]:
    rid = doc["id"]
    if state == "overdue":
        message = f"O prazo da solicitação {rid} expirou. Por favor, verifique o status."
    else:
        message = f"O prazo da solicitação {rid} vence em menos de 24 horas."
    recipients = [doc["requester_id"]]
    if doc.get("assigned_to") and doc["assigned_to"] not in recipients:
        recipients.append(doc["assigned_to"])
    return [
        NotificationEvent(
            audience="user", recipient_id=uid, title="Lembrete de Solicitação",
            message=message, type="reminder", request_id=rid,
        )
        for uid in recipients
    ]


async def check_deadlines(now: Optional[datetime] = None) -> int:
    now = now or datetime.now(timezone.utc)
    reminded = 0
    for raw in await requests_repo.list_all(ACTIVE_FILTER):
        doc = normalize(raw)
        state = reminder_state_for(doc, now)
        if state is None or doc.get("reminder_state") == state:
            continue
        await requests_repo.set_fields(doc["id"], {"reminder_state": state, "reminded_at": now})
        await notifications.dispatch(reminder_events(doc, state))
        reminded += 1
    if reminded:
        logger.info("check_deadlines: %d recordatorios enviados", reminded)
    return reminded


def is_preventive_maintenance_date(day: date) -> bool:
    return (day.month, day.day) in PREVENTIVE_MAINTENANCE_DATES


async def create_preventive_maintenance_requests(today: date) -> int:
    if not is_preventive_maintenance_date(today):
        return 0
    if not await requests_repo.claim_once(f"preventive:{today.isoformat()}"):
        return 0
    logger.info("Fecha de mantenimiento preventivo (%s): creando solicitudes", today.isoformat())
    created = 0
    for user in await users_repo.list_all():
        actor = CurrentUser(id=user["id"], name=user.get("name", ""), email=user.get("email", ""), role=user.get("role", "requester"))
        payload = RequestCreate(
            title="Manutenção Preventiva Semestral",
            description=f"Manutenção preventiva semestral - Verificação geral de equipamentos e sistemas de {actor.name or actor.id}.",
            type="preventive_maintenance",
            priority="medium",
        )
        try:
            await request_service.create_request(payload, actor)
            created += 1
        except HTTPException:
            logger.exception("Error al crear mantenimiento preventivo para %s", actor.id)
    logger.info("Mantenimiento preventivo: %d solicitudes creadas", created)
    return created


class Scheduler:
    def __init__(self, interval_seconds: Optional[float] = None):
        self.interval_seconds = interval_seconds or settings.deadline_check_minutes * 60
        self._task: Optional[asyncio.Task] = None

    async def run_once(self, now: Optional[datetime] = None):
        now = now or datetime.now(timezone.utc)
        await check_deadlines(now)
        await create_preventive_maintenance_requests(now.astimezone(request_service.local_tz()).date())

    async def _loop(self):
        while True:
            try:
                await self.run_once()
            except Exception:
                logger.exception("Fallo en la tarea periódica; se reintenta en el próximo ciclo")
            await asyncio.sleep(self.interval_seconds)

    def start(self):
        if self._task is None:
            self._task = asyncio.create_task(self._loop())

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
