# helpdesk/models/common.py
from typing import Literal, Optional

Role = Literal["admin", "requester"]

RequestStatus = Literal["new", "assigned", "in_progress", "resolved", "closed", "reopened"]
ApprovalStatus = Literal["pending", "approved", "rejected"]
NotificationType = Literal["created", "assigned", "resolved", "reopened", "comment", "deadline_changed", "reminder"]

KNOWN_TYPES = {
    "general", "systems", "stock_adjustment", "equipment_request", "preventive_maintenance",
    "inventory", "system", "emergency", "other", "hardware", "software", "network", "access", "maintenance",
}

# Dos vocabularios en los datos (portugués / inglés): se normaliza una sola vez en cada frontera.
TYPE_SYNONYMS = {
    "geral": "general",
    "sistemas": "systems",
    "ajuste_estoque": "stock_adjustment",
    "solicitacao_equipamento": "equipment_request",
    "solicitação_equipamento": "equipment_request",
    "manutencao_preventiva": "preventive_maintenance",
    "manutenção_preventiva": "preventive_maintenance",
}
PRIORITY_SYNONYMS = {
    "baixa": "low", "media": "medium", "média": "medium", "alta": "high",
    "urgent": "high", "urgente": "high",
}
STATUS_SYNONYMS = {
    "nova": "new", "atribuida": "assigned", "atribuída": "assigned",
    "em_andamento": "in_progress", "resolvida": "resolved", "fechada": "closed",
    "reaberta": "reopened",
}
APPROVAL_SYNONYMS = {
    "pendente": "pending", "aprovada": "approved", "aprovado": "approved",
    "rejeitada": "rejected", "rejeitado": "rejected",
}
NOTIFICATION_TYPE_SYNONYMS = {
    "request_created": "created", "request_assigned": "assigned",
    "request_resolved": "resolved", "request_reminder": "reminder",
}

VALID_PRIORITIES = {"low", "medium", "high"}
VALID_STATUSES = {"new", "assigned", "in_progress", "resolved", "closed", "reopened"}
VALID_APPROVALS = {"pending", "approved", "rejected"}

# Tipos cuya asignación depende de una aprobación previa; aprobar no los asigna
APPROVAL_TYPES = {"equipment_request", "systems"}

DONE_STATES = {"resolved", "closed"}
OPEN_STATES = ["new", "assigned", "in_progress", "reopened"]

ALLOWED_TRANSITIONS = {
    "new": {"assigned", "in_progress", "resolved"},
    "assigned": {"in_progress", "resolved"},
    "in_progress": {"resolved"},
    "reopened": {"assigned", "in_progress", "resolved"},
    "resolved": {"closed", "reopened"},
    "closed": set(),
}

# Marcadores de comentarios con significado propio
REOPEN_MARKER = "[REABERTURA]"
REJECTION_MARKER = "[REJEIÇÃO]"

TYPE_LABELS = {
    "general": "Geral",
    "systems": "Sistemas",
    "stock_adjustment": "Ajuste de Estoque",
    "equipment_request": "Solicitação de Equipamento",
    "preventive_maintenance": "Manutenção Preventiva",
    "inventory": "Inventário",
    "system": "Sistema",
    "emergency": "Emergência",
    "other": "Outro",
    "hardware": "Hardware",
    "software": "Software",
    "network": "Rede",
    "access": "Acesso",
    "maintenance": "Manutenção",
}
PRIORITY_LABELS = {"low": "Baixa", "medium": "Média", "high": "Alta"}
STATUS_LABELS = {
    "new": "Nova", "assigned": "Atribuída", "in_progress": "Em Andamento",
    "resolved": "Resolvida", "closed": "Fechada", "reopened": "Reaberta",
}


def _key(value) -> str:
    return str(value or "").strip().lower().replace("-", "_").replace(" ", "_")


def normalize_type(value) -> str:
    # tipos desconocidos se conservan: el cálculo de plazo usa su valor por defecto
    k = _key(value)
    return TYPE_SYNONYMS.get(k, k) or "other"


def normalize_priority(value) -> str:
    k = _key(value)
    k = PRIORITY_SYNONYMS.get(k, k)
    return k if k in VALID_PRIORITIES else "medium"


def normalize_status(value) -> str:
    k = _key(value)
    k = STATUS_SYNONYMS.get(k, k)
    return k if k in VALID_STATUSES else "new"


def normalize_approval(value) -> Optional[str]:
    if value is None:
        return None
    k = _key(value)
    k = APPROVAL_SYNONYMS.get(k, k)
    return k if k in VALID_APPROVALS else None


def normalize_notification_type(value) -> str:
    k = _key(value)
    return NOTIFICATION_TYPE_SYNONYMS.get(k, k)


def requires_approval(request_type) -> bool:
    return normalize_type(request_type) in APPROVAL_TYPES


def is_known_status(value) -> bool:
    k = _key(value)
    return k in VALID_STATUSES or k in STATUS_SYNONYMS
