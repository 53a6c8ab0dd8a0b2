# helpdesk/services/report_service.py
from __future__ import annotations
from collections import Counter
from datetime import datetime, time, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from fastapi import HTTPException

from helpdesk.models.common import (
    DONE_STATES, REJECTION_MARKER, VALID_STATUSES, is_known_status, normalize_status, normalize_type,
)
from helpdesk.models.request import normalize
from helpdesk.models.user import CurrentUser
from helpdesk.repositories import requests_repo as repo
from helpdesk.services.lifecycle import ensure_admin

# Los exportadores PDF/planilla consumen esta salida; el formato de archivo queda fuera.


def build_report_filter(
    status: str = "all",
    request_type: str = "all",
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
) -> Dict[str, Any]:
    filt: Dict[str, Any] = {}
    status = (status or "all").strip().lower()
    if status == "pending":
        filt["status"] = {"$nin": sorted(DONE_STATES)}
        filt["approval_status"] = {"$ne": "rejected"}
    elif status == "rejected":
        filt["approval_status"] = "rejected"
    elif status != "all":
        if not is_known_status(status):
            raise HTTPException(status_code=400, detail=f"Status inválido: {status}")
        filt["status"] = normalize_status(status)
        filt["approval_status"] = {"$ne": "rejected"}

    if request_type and request_type != "all":
        filt["type"] = normalize_type(request_type)

    if date_from or date_to:
        dr = {}
        if date_from:
            dr["$gte"] = date_from
        if date_to:
            # fecha final inclusiva hasta el último instante del día
            end = datetime.combine(date_to.date(), time.max)
            dr["$lte"] = end.replace(tzinfo=date_to.tzinfo) if date_to.tzinfo else end
        filt["created_at"] = dr
    return filt


def rejection_reason(doc: Dict[str, Any]) -> Optional[str]:
    """Único origen del motivo de rechazo: el último comentario marcado."""
    reason = None
    for c in doc.get("comments") or []:
        text = (c.get("text") or "").strip()
        if text.startswith(REJECTION_MARKER):
            reason = text[len(REJECTION_MARKER):].strip()
    return reason


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def summarize(docs: Iterable[Dict[str, Any]], now: datetime) -> Dict[str, Any]:
    now = _aware(now)
    total = active = done = rejected = high_active = overdue = 0
    by_type: Counter = Counter()
    by_status: Counter = Counter()
    reasons: List[Dict[str, Any]] = []
    for doc in docs:
        total += 1
        by_type[doc["type"]] += 1
        by_status[doc["status"]] += 1
        if doc.get("approval_status") == "rejected":
            rejected += 1
            reasons.append({"id": doc["id"], "reason": rejection_reason(doc)})
            continue
        if doc["status"] in DONE_STATES:
            done += 1
            continue
        active += 1
        if doc.get("priority") == "high":
            high_active += 1
        if doc.get("deadline_at") and _aware(doc["deadline_at"]) < now:
            overdue += 1
    return {
        "total": total,
        "active": active,
        "done": done,
        "rejected": rejected,
        "high_priority_active": high_active,
        "overdue_active": overdue,
        "by_type": dict(by_type),
        "by_status": {s: by_status.get(s, 0) for s in sorted(VALID_STATUSES)},
        "rejection_reasons": reasons,
    }


async def report_requests(
    actor: CurrentUser,
    status: str = "all",
    request_type: str = "all",
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
) -> Dict[str, Any]:
    ensure_admin(actor)
    filt = build_report_filter(status, request_type, date_from, date_to)
    items = [normalize(d) for d in await repo.list_all(filt)]
    return {
        "filters": {"status": status, "type": request_type, "date_from": date_from, "date_to": date_to},
        "generated_at": datetime.now(timezone.utc),
        "items": items,
        "summary": summarize(items, datetime.now(timezone.utc)),
    }


async def summary(actor: CurrentUser, period_days: Optional[int] = None) -> Dict[str, Any]:
    ensure_admin(actor)
    filt: Dict[str, Any] = {}
    if period_days:
        filt["created_at"] = {"$gte": datetime.now(timezone.utc) - timedelta(days=period_days)}
    items = [normalize(d) for d in await repo.list_all(filt)]
    return summarize(items, datetime.now(timezone.utc))
