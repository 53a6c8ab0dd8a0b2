# helpdesk/services/holiday_service.py
import logging
import uuid
from datetime import date, datetime, timezone
from typing import List, Set

from fastapi import HTTPException

from helpdesk.models.notification import HolidayCreate
from helpdesk.models.user import CurrentUser
from helpdesk.repositories import holidays_repo as repo
from helpdesk.services.lifecycle import ensure_admin
from helpdesk.utils.mongo_helpers import strip_mongo_id

logger = logging.getLogger(__name__)


async def list_holidays() -> List[dict]:
    return strip_mongo_id(await repo.list_all())


async def holiday_dates() -> Set[date]:
    out = set()
    for d in await repo.list_all():
        try:
            out.add(date.fromisoformat(str(d["date"])[:10]))
        except (KeyError, ValueError):
            logger.warning("Feriado con fecha inválida ignorado: %s", d.get("id"))
    return out


async def add_holiday(payload: HolidayCreate, actor: CurrentUser) -> dict:
    ensure_admin(actor)
    day = payload.date.isoformat()
    if await repo.find_by_date(day):
        raise HTTPException(status_code=409, detail=f"Já existe um feriado em {day}")
    doc = {
        "id": str(uuid.uuid4()), "date": day, "name": payload.name.strip(),
        "created_by": actor.id, "created_at": datetime.now(timezone.utc),
    }
    await repo.insert(doc)
    logger.info("Feriado %s (%s) registrado por %s", day, doc["name"], actor.id)
    return strip_mongo_id(doc)


async def delete_holiday(holiday_id: str, actor: CurrentUser):
    ensure_admin(actor)
    if not await repo.delete(holiday_id):
        raise HTTPException(status_code=404, detail="Feriado não encontrado")
    return {"ok": True}
