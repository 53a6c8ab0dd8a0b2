# helpdesk/services/request_service.py
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo

from fastapi import HTTPException

from helpdesk.core.config import settings
from helpdesk.models.common import (
    DONE_STATES, normalize_priority, normalize_status, normalize_type, requires_approval,
)
from helpdesk.models.request import RequestCreate, normalize
from helpdesk.models.user import CurrentUser
from helpdesk.repositories import requests_repo as repo
from helpdesk.repositories import users_repo
from helpdesk.services import holiday_service, lifecycle, notifications
from helpdesk.services.deadline import compute_deadline
from helpdesk.services.lifecycle import TransitionPlan
from helpdesk.utils.pagination import meta

logger = logging.getLogger(__name__)

SORT_FIELDS = {"created_at", "deadline_at", "priority", "status", "type", "updated_at"}
VIEWS = {"active", "done", "rejected", "all"}


def local_tz() -> ZoneInfo:
    return ZoneInfo(settings.timezone)


async def load(request_id: str) -> Dict[str, Any]:
    doc = await repo.find_by_id(request_id)
    if not doc:
        raise HTTPException(status_code=404, detail="Solicitação não encontrada")
    return normalize(doc)


async def commit(doc: Dict[str, Any], plan: TransitionPlan) -> Dict[str, Any]:
    """
    Persiste el plan con un solo update por id (condicionado al estado leído)
    y, solo si la escritura se confirmó, entrega las notificaciones.
    """
    if not plan.changed:
        return doc
    ops: Dict[str, Any] = {}
    if plan.updates:
        ops["$set"] = plan.updates
    push: Dict[str, Any] = {}
    if plan.comments:
        push["comments"] = {"$each": plan.comments}
    if plan.attachments:
        push["attachments"] = {"$each": plan.attachments}
    if plan.history:
        push["state_history"] = plan.history
    if push:
        ops["$push"] = push

    if not await repo.update_if_status(doc["id"], plan.expected_status, ops, plan.conditions):
        if await repo.find_by_id(doc["id"]) is None:
            raise HTTPException(status_code=404, detail="Solicitação não encontrada")
        raise HTTPException(status_code=409, detail="A solicitação foi alterada em outra sessão; recarregue e tente novamente")

    # escritura confirmada: se notifica antes de releer, la relectura puede fallar
    await notifications.dispatch(plan.events)
    return await load(doc["id"])


# ---- creación ----

async def next_request_id(local_now: datetime) -> str:
    # formato DDMMAA-000000, secuencia por día local
    day_key = local_now.strftime("%d%m%y")
    seq = await repo.next_sequence(day_key)
    return f"{day_key}-{seq:06d}"


async def create_request(payload: RequestCreate, actor: CurrentUser, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or datetime.now(timezone.utc)
    local_now = now.astimezone(local_tz())
    request_id = await next_request_id(local_now)
    holidays = await holiday_service.holiday_dates()
    deadline = compute_deadline(
        payload.type, payload.priority, local_now, holidays, end_of_day_hour=settings.end_of_day_hour,
    )

    doc = {
        "id": request_id,
        "title": (payload.title or "").strip() or None,
        "description": payload.description,
        "type": payload.type,
        "priority": payload.priority,
        "status": "new",
        "approval_status": "pending" if requires_approval(payload.type) else None,
        "requester_id": actor.id,
        "requester_name": actor.name,
        "requester_email": actor.email,
        "assigned_to": None,
        "assigned_to_name": None,
        "created_at": now,
        "updated_at": now,
        "deadline_at": deadline.astimezone(timezone.utc),
        "comments": [],
        "attachments": [],
        "state_history": [{
            "from_status": None, "to_status": "new", "at": now,
            "by_user_id": actor.id, "by_user_name": actor.name,
        }],
    }
    await repo.insert(doc)
    logger.info("Solicitud %s creada por %s (tipo=%s, prioridad=%s)", request_id, actor.id, payload.type, payload.priority)
    await notifications.dispatch(lifecycle.plan_creation(doc))
    return normalize(doc)


# ---- lectura ----

async def get_request(request_id: str, actor: CurrentUser) -> Dict[str, Any]:
    doc = await load(request_id)
    lifecycle.ensure_can_view(doc, actor)
    return doc


def build_list_filter(
    actor: CurrentUser,
    view: str = "active",
    status: Optional[str] = None,
    request_type: Optional[str] = None,
    priority: Optional[str] = None,
    assigned_to: Optional[str] = None,
    q: Optional[str] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
) -> Dict[str, Any]:
    if view not in VIEWS:
        raise HTTPException(status_code=400, detail=f"Visão inválida: {view}")
    filt: Dict[str, Any] = {}
    if not actor.is_admin:
        filt["requester_id"] = actor.id

    # las rechazadas solo aparecen en la vista "rejected" (o "all")
    if view == "active":
        filt["status"] = {"$nin": sorted(DONE_STATES)}
        filt["approval_status"] = {"$ne": "rejected"}
    elif view == "done":
        filt["status"] = {"$in": sorted(DONE_STATES)}
        filt["approval_status"] = {"$ne": "rejected"}
    elif view == "rejected":
        filt["approval_status"] = "rejected"

    if status:
        filt["status"] = normalize_status(status)
    if request_type:
        filt["type"] = normalize_type(request_type)
    if priority:
        filt["priority"] = normalize_priority(priority)
    if assigned_to:
        filt["assigned_to"] = assigned_to
    if date_from or date_to:
        dr = {}
        if date_from: dr["$gte"] = date_from
        if date_to: dr["$lte"] = date_to
        filt["created_at"] = dr
    if q:
        rx = {"$regex": re.escape(q.strip()), "$options": "i"}
        filt["$or"] = [{"title": rx}, {"description": rx}, {"id": rx}]
    return filt


async def list_requests(
    actor: CurrentUser, page: int = 1, page_size: int = 10, sort: str = "-created_at", **filters,
) -> Dict[str, Any]:
    filt = build_list_filter(actor, **filters)
    sort_field, sort_dir = ("created_at", -1)
    if sort:
        if sort.startswith("-"): sort_field, sort_dir = (sort[1:], -1)
        else: sort_field, sort_dir = (sort, 1)
    if sort_field not in SORT_FIELDS:
        sort_field = "created_at"

    total = await repo.count(filt)
    pm = meta(total, page, page_size)
    items = await repo.list_paginated(filt, sort_field, sort_dir, pm.skip, pm.page_size)
    return {"items": [normalize(d) for d in items], **pm.model_dump()}


# ---- transiciones ----

async def assign(request_id: str, assignee_id: str, actor: CurrentUser) -> Dict[str, Any]:
    lifecycle.ensure_admin(actor)
    doc = await load(request_id)
    target = await users_repo.find_by_id(assignee_id) if assignee_id else None
    if assignee_id and not target:
        raise HTTPException(status_code=400, detail="Usuário destino não encontrado")
    plan = lifecycle.plan_assign(doc, actor, target, datetime.now(timezone.utc))
    return await commit(doc, plan)


async def change_status(request_id: str, to_status: str, actor: CurrentUser) -> Dict[str, Any]:
    doc = await load(request_id)
    plan = lifecycle.plan_status_change(doc, actor, normalize_status(to_status), datetime.now(timezone.utc))
    return await commit(doc, plan)


async def reopen(request_id: str, reason: str, actor: CurrentUser) -> Dict[str, Any]:
    doc = await load(request_id)
    plan = lifecycle.plan_reopen(doc, actor, reason, datetime.now(timezone.utc))
    return await commit(doc, plan)


async def decide_approval(request_id: str, decision: str, reason: Optional[str], actor: CurrentUser) -> Dict[str, Any]:
    doc = await load(request_id)
    plan = lifecycle.plan_approval(doc, actor, decision, reason, datetime.now(timezone.utc))
    return await commit(doc, plan)


async def add_comment(request_id: str, text: str, actor: CurrentUser) -> Dict[str, Any]:
    doc = await load(request_id)
    plan = lifecycle.plan_comment(doc, actor, text, datetime.now(timezone.utc))
    return await commit(doc, plan)


async def override_deadline(request_id: str, deadline_at: datetime, actor: CurrentUser) -> Dict[str, Any]:
    doc = await load(request_id)
    plan = lifecycle.plan_deadline_override(doc, actor, deadline_at, datetime.now(timezone.utc))
    return await commit(doc, plan)


async def add_attachment(request_id: str, attachment: Dict[str, Any], actor: CurrentUser) -> Dict[str, Any]:
    doc = await load(request_id)
    plan = lifecycle.plan_attachment(doc, actor, attachment, datetime.now(timezone.utc))
    return await commit(doc, plan)


async def delete_request(request_id: str, actor: CurrentUser):
    doc = await load(request_id)
    lifecycle.ensure_can_delete(doc, actor)
    if not await repo.delete(request_id):
        raise HTTPException(status_code=404, detail="Solicitação não encontrada")
    logger.info("Solicitud %s eliminada por %s", request_id, actor.id)
