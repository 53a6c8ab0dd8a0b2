# helpdesk/services/lifecycle.py
"""
Máquina de estados de una solicitación.

Cada plan_* recibe el documento canónico, el actor y el instante `now`, valida
permisos y transición, y devuelve un TransitionPlan: qué escribir y qué
notificar. Aquí no se escribe nada; request_service persiste el plan y solo
después entrega los eventos.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import uuid

from fastapi import HTTPException
from pydantic import BaseModel, Field

from helpdesk.models.common import (
    ALLOWED_TRANSITIONS, PRIORITY_LABELS, REJECTION_MARKER, REOPEN_MARKER,
    requires_approval,
)
from helpdesk.models.notification import NotificationEvent
from helpdesk.models.user import CurrentUser


class TransitionPlan(BaseModel):
    expected_status: str
    # condiciones extra del update, además del estado
    conditions: Dict[str, Any] = Field(default_factory=dict)
    updates: Dict[str, Any] = Field(default_factory=dict)
    comments: List[Dict[str, Any]] = Field(default_factory=list)
    attachments: List[Dict[str, Any]] = Field(default_factory=list)
    history: Optional[Dict[str, Any]] = None
    events: List[NotificationEvent] = Field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.updates or self.comments or self.attachments)


# ---- validaciones ----

def ensure_transition(old: str, new: str):
    if new not in ALLOWED_TRANSITIONS.get(old, set()):
        raise HTTPException(status_code=400, detail=f"Transição não permitida: {old} → {new}")

def ensure_admin(actor: CurrentUser):
    if not actor.is_admin:
        raise HTTPException(status_code=403, detail="Apenas administradores podem realizar esta ação")

def is_owner(doc: Dict[str, Any], actor: CurrentUser) -> bool:
    return doc.get("requester_id") == actor.id

def ensure_can_view(doc: Dict[str, Any], actor: CurrentUser):
    if not (actor.is_admin or is_owner(doc, actor)):
        raise HTTPException(status_code=403, detail="Sem permissão para acessar esta solicitação")

def ensure_can_delete(doc: Dict[str, Any], actor: CurrentUser):
    if not (actor.is_admin or is_owner(doc, actor)):
        raise HTTPException(status_code=403, detail="Apenas o solicitante ou um administrador pode excluir")

def ensure_approved(doc: Dict[str, Any]):
    """Tipos con aprobación no avanzan de estado sin approval_status == approved."""
    if not requires_approval(doc.get("type")):
        return
    approval = doc.get("approval_status")
    if approval == "rejected":
        raise HTTPException(status_code=409, detail="A solicitação foi rejeitada")
    if approval != "approved":
        raise HTTPException(status_code=409, detail="A solicitação precisa ser aprovada antes de avançar")


# ---- helpers ----

def _as_utc(value: datetime) -> datetime:
    # Mongo devuelve datetimes naive en UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

def _history(doc: Dict[str, Any], to_status: str, actor: CurrentUser, now: datetime) -> Dict[str, Any]:
    return {
        "from_status": doc.get("status"), "to_status": to_status, "at": now,
        "by_user_id": actor.id, "by_user_name": actor.name,
    }

def _comment(actor: CurrentUser, text: str, now: datetime) -> Dict[str, Any]:
    return {"id": str(uuid.uuid4()), "user_id": actor.id, "user_name": actor.name, "text": text, "created_at": now}

def _to_requester(doc: Dict[str, Any], title: str, message: str, ntype: str) -> NotificationEvent:
    return NotificationEvent(
        audience="user", recipient_id=doc["requester_id"], title=title,
        message=message, type=ntype, request_id=doc["id"],
    )

def _to_admins(doc: Dict[str, Any], title: str, message: str, ntype: str, exclude=()) -> NotificationEvent:
    return NotificationEvent(
        audience="admins", exclude_ids=list(exclude), title=title,
        message=message, type=ntype, request_id=doc["id"],
    )


# ---- transiciones ----

def plan_creation(doc: Dict[str, Any]) -> List[NotificationEvent]:
    rid = doc["id"]
    label = PRIORITY_LABELS.get(doc.get("priority"), doc.get("priority"))
    return [
        _to_requester(doc, "Solicitação Enviada", f"Sua solicitação {rid} foi enviada com sucesso", "created"),
        _to_admins(doc, "Nova Solicitação", f"Uma nova solicitação de prioridade {label} {rid} foi enviada", "created"),
    ]

def plan_assign(doc: Dict[str, Any], actor: CurrentUser, assignee: Optional[Dict[str, Any]], now: datetime) -> TransitionPlan:
    ensure_admin(actor)
    if not assignee or not assignee.get("id"):
        raise HTTPException(status_code=422, detail="Selecione o responsável pela solicitação")
    status = doc["status"]
    plan = TransitionPlan(expected_status=status)
    plan.updates = {"assigned_to": assignee["id"], "assigned_to_name": assignee.get("name", ""), "updated_at": now}

    if status in ("assigned", "in_progress"):
        # reasignación: cambia el responsable, no el estado
        ensure_approved(doc)
        return plan

    ensure_transition(status, "assigned")
    ensure_approved(doc)
    plan.updates["status"] = "assigned"
    plan.history = _history(doc, "assigned", actor, now)
    plan.events.append(_to_requester(
        doc, "Solicitação Atribuída", f"Sua solicitação {doc['id']} foi atribuída a um técnico", "assigned",
    ))
    return plan

def plan_status_change(doc: Dict[str, Any], actor: CurrentUser, to_status: str, now: datetime) -> TransitionPlan:
    ensure_admin(actor)
    status = doc["status"]
    if to_status not in ("in_progress", "resolved", "closed"):
        raise HTTPException(status_code=400, detail=f"Transição não permitida: {status} → {to_status}")

    plan = TransitionPlan(expected_status=status)
    if to_status == "resolved" and status == "resolved":
        # regrabar "resolved" no cambia nada ni vuelve a notificar
        return plan

    ensure_transition(status, to_status)
    ensure_approved(doc)
    plan.updates = {"status": to_status, "updated_at": now}
    plan.history = _history(doc, to_status, actor, now)

    if to_status == "resolved":
        plan.updates["resolved_at"] = now
        if not doc.get("resolved_at"):
            plan.updates["resolution"] = f"Resolvida por {actor.name}"
        plan.events.append(_to_requester(
            doc, "Solicitação Resolvida", f"Sua solicitação {doc['id']} foi resolvida", "resolved",
        ))
    elif to_status == "closed":
        plan.updates["closed_at"] = now
    return plan

def plan_reopen(doc: Dict[str, Any], actor: CurrentUser, reason: Optional[str], now: datetime) -> TransitionPlan:
    if not is_owner(doc, actor):
        raise HTTPException(status_code=403, detail="Apenas o solicitante pode reabrir a solicitação")
    reason = (reason or "").strip()
    if not reason:
        raise HTTPException(status_code=422, detail="Informe o motivo da reabertura")
    status = doc["status"]
    ensure_transition(status, "reopened")

    plan = TransitionPlan(expected_status=status)
    plan.updates = {"status": "reopened", "updated_at": now}
    plan.history = _history(doc, "reopened", actor, now)
    plan.comments.append(_comment(actor, f"{REOPEN_MARKER} {reason}", now))

    title, message = "Solicitação Reaberta", f"A solicitação {doc['id']} foi reaberta pelo solicitante"
    if doc.get("assigned_to"):
        plan.events.append(NotificationEvent(
            audience="user", recipient_id=doc["assigned_to"], title=title,
            message=message, type="reopened", request_id=doc["id"],
        ))
    else:
        plan.events.append(_to_admins(doc, title, message, "reopened", exclude=[actor.id]))
    return plan

def plan_approval(doc: Dict[str, Any], actor: CurrentUser, decision: str, reason: Optional[str], now: datetime) -> TransitionPlan:
    ensure_admin(actor)
    if not requires_approval(doc.get("type")):
        raise HTTPException(status_code=400, detail="Este tipo de solicitação não exige aprovação")
    if doc["status"] != "new":
        raise HTTPException(status_code=409, detail="A aprovação só é possível enquanto a solicitação é nova")
    if doc.get("approval_status") != "pending":
        raise HTTPException(status_code=409, detail="A aprovação desta solicitação já foi decidida")
    if decision not in ("approved", "rejected"):
        raise HTTPException(status_code=422, detail="Decisão inválida")

    plan = TransitionPlan(expected_status=doc["status"], conditions={"approval_status": "pending"})
    plan.updates = {
        "approval_status": decision, "approval_by": actor.id,
        "approval_at": now, "updated_at": now,
    }
    # aprobar no cambia el estado: la solicitud sigue en "new" hasta que se atribuye
    if decision == "rejected":
        reason = (reason or "").strip()
        if reason:
            plan.comments.append(_comment(actor, f"{REJECTION_MARKER} {reason}", now))
    return plan

def plan_comment(doc: Dict[str, Any], actor: CurrentUser, text: str, now: datetime) -> TransitionPlan:
    ensure_can_view(doc, actor)
    text = (text or "").strip()
    if not text:
        raise HTTPException(status_code=422, detail="O comentário não pode estar vazio")

    plan = TransitionPlan(expected_status=doc["status"])
    plan.updates = {"updated_at": now}
    plan.comments.append(_comment(actor, text, now))
    rid = doc["id"]
    if is_owner(doc, actor):
        plan.events.append(_to_admins(
            doc, "Novo Comentário", f"Novo comentário do solicitante na solicitação {rid}", "comment",
            exclude=[actor.id],
        ))
    elif actor.is_admin:
        plan.events.append(_to_requester(
            doc, "Novo Comentário", f"Novo comentário da equipe de TI na sua solicitação {rid}", "comment",
        ))
    return plan

def plan_deadline_override(doc: Dict[str, Any], actor: CurrentUser, deadline_at: datetime, now: datetime) -> TransitionPlan:
    ensure_admin(actor)
    plan = TransitionPlan(expected_status=doc["status"])
    new_deadline = _as_utc(deadline_at)
    current = doc.get("deadline_at")
    if current is not None and _as_utc(current) == new_deadline:
        return plan
    # nuevo plazo: los recordatorios vuelven a empezar
    plan.updates = {"deadline_at": new_deadline, "reminder_state": None, "updated_at": now}
    plan.events.append(_to_requester(
        doc, "Prazo Atualizado", f"O prazo para sua solicitação {doc['id']} foi alterado", "deadline_changed",
    ))
    return plan

def plan_attachment(doc: Dict[str, Any], actor: CurrentUser, attachment: Dict[str, Any], now: datetime) -> TransitionPlan:
    ensure_can_view(doc, actor)
    plan = TransitionPlan(expected_status=doc["status"])
    plan.updates = {"updated_at": now}
    plan.attachments.append({"id": str(uuid.uuid4()), "uploaded_at": now, **attachment})
    return plan
