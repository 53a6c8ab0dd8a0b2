# helpdesk/models/request.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Literal
import uuid
from helpdesk.models.common import (
    RequestStatus, ApprovalStatus,
    normalize_type, normalize_priority, normalize_status, normalize_approval, requires_approval,
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Comment(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    user_name: str
    text: str
    created_at: datetime = Field(default_factory=_now)

class Attachment(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    file_name: str
    file_size: int = 0
    file_type: str = "application/octet-stream"
    file_url: str
    uploaded_at: datetime = Field(default_factory=_now)

class StateEvent(BaseModel):
    from_status: Optional[RequestStatus] = None
    to_status: RequestStatus
    at: datetime = Field(default_factory=_now)
    by_user_id: str
    by_user_name: str

class Request(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    title: Optional[str] = None
    description: str
    type: str = "other"
    priority: str = "medium"
    status: RequestStatus = "new"
    approval_status: Optional[ApprovalStatus] = None
    requester_id: str
    requester_name: str
    requester_email: str = ""
    assigned_to: Optional[str] = None
    assigned_to_name: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    deadline_at: datetime
    resolved_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    resolution: Optional[str] = None
    comments: List[Comment] = Field(default_factory=list)
    attachments: List[Attachment] = Field(default_factory=list)
    state_history: List[StateEvent] = Field(default_factory=list)


class RequestCreate(BaseModel):
    title: Optional[str] = None
    description: str
    type: str = "general"
    priority: str = "medium"

    @field_validator("description")
    @classmethod
    def _description_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("A descrição é obrigatória")
        return v

    @field_validator("type", mode="before")
    @classmethod
    def _norm_type(cls, v):
        return normalize_type(v)

    @field_validator("priority", mode="before")
    @classmethod
    def _norm_priority(cls, v):
        return normalize_priority(v)

class AssignPayload(BaseModel):
    assigned_to: str

class TransitionPayload(BaseModel):
    to_status: RequestStatus

    @field_validator("to_status", mode="before")
    @classmethod
    def _norm_status(cls, v):
        return normalize_status(v)

class ReopenPayload(BaseModel):
    reason: str = ""

class ApprovalPayload(BaseModel):
    decision: Literal["approved", "rejected"]
    reason: Optional[str] = None

    @field_validator("decision", mode="before")
    @classmethod
    def _norm_decision(cls, v):
        return normalize_approval(v) or v

class CommentPayload(BaseModel):
    text: str

    @field_validator("text")
    @classmethod
    def _text_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("O comentário não pode estar vazio")
        return v

class DeadlinePayload(BaseModel):
    deadline_at: datetime

class AttachmentPayload(BaseModel):
    file_name: str
    file_size: int = Field(default=0, ge=0)
    file_type: str = "application/octet-stream"
    file_url: str

class PaginatedRequests(BaseModel):
    items: List[Request]
    page: int
    page_size: int
    total: int
    total_pages: int
    has_prev: bool
    has_next: bool


# nombres camelCase de la primera versión -> snake_case
LEGACY_FIELD_NAMES = {
    "requesterId": "requester_id", "requesterName": "requester_name",
    "requesterEmail": "requester_email", "assignedTo": "assigned_to",
    "assignedToName": "assigned_to_name", "createdAt": "created_at",
    "deadlineAt": "deadline_at", "resolvedAt": "resolved_at",
    "closedAt": "closed_at", "approvalStatus": "approval_status",
}


def normalize(doc: Dict[str, Any]) -> Dict[str, Any]:
    """
    Lleva un documento guardado al modelo canónico (vocabularios, campos por
    defecto y nombres camelCase de datos antiguos).
    """
    out = {k: v for k, v in dict(doc).items() if k != "_id"}
    for camel, snake in LEGACY_FIELD_NAMES.items():
        if camel in out:
            out.setdefault(snake, out.pop(camel))
    out["type"] = normalize_type(out.get("type"))
    out["priority"] = normalize_priority(out.get("priority"))
    out["status"] = normalize_status(out.get("status"))
    approval = normalize_approval(out.get("approval_status"))
    if requires_approval(out["type"]):
        out["approval_status"] = approval or "pending"
    else:
        out["approval_status"] = None
    out.setdefault("comments", [])
    out.setdefault("attachments", [])
    out.setdefault("state_history", [])
    return out
