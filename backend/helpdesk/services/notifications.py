# helpdesk/services/notifications.py
import logging
import uuid
from datetime import datetime, timezone
from typing import Iterable, List

from fastapi import HTTPException

from helpdesk.models.common import normalize_notification_type
from helpdesk.models.notification import NotificationEvent
from helpdesk.models.user import CurrentUser
from helpdesk.repositories import notifications_repo as repo
from helpdesk.repositories import users_repo
from helpdesk.utils.mongo_helpers import strip_mongo_id

logger = logging.getLogger(__name__)


async def _recipients(event: NotificationEvent) -> List[str]:
    if event.audience == "admins":
        admins = await users_repo.list_admins()
        return [a["id"] for a in admins if a["id"] not in event.exclude_ids]
    return [event.recipient_id] if event.recipient_id else []


async def dispatch(events: Iterable[NotificationEvent]) -> int:
    """
    Entrega los eventos ya confirmados. Nunca lanza: cualquier fallo se
    registra y se descarta; la transición principal no depende de esto.
    Devuelve cuántas notificaciones se guardaron.
    """
    sent = 0
    for event in events:
        try:
            recipients = await _recipients(event)
        except Exception:
            logger.exception("No se pudieron resolver destinatarios para %s (%s)", event.type, event.request_id)
            continue
        for user_id in recipients:
            doc = {
                "id": str(uuid.uuid4()), "user_id": user_id, "title": event.title,
                "message": event.message, "type": event.type, "request_id": event.request_id,
                "read": False, "created_at": datetime.now(timezone.utc),
            }
            try:
                await repo.insert(doc)
                sent += 1
            except Exception:
                logger.exception("Fallo al notificar a %s sobre %s", user_id, event.request_id)
    return sent


def _out(doc: dict) -> dict:
    out = strip_mongo_id(doc)
    out["type"] = normalize_notification_type(out.get("type"))
    # datos antiguos usaban isRead
    if "isRead" in out:
        out.setdefault("read", out.pop("isRead"))
    return out


async def list_for_user(user: CurrentUser, unread_only: bool = False, limit: int = 50) -> List[dict]:
    return [_out(d) for d in await repo.list_by_user(user.id, unread_only=unread_only, limit=limit)]


async def unread_count(user: CurrentUser) -> int:
    return await repo.count_unread(user.id)


async def mark_read(notification_id: str, user: CurrentUser):
    if not await repo.mark_read(notification_id, user.id):
        raise HTTPException(status_code=404, detail="Notificação não encontrada")
    return {"ok": True}


async def mark_all_read(user: CurrentUser):
    return {"ok": True, "updated": await repo.mark_all_read(user.id)}
