from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from helpdesk.core.indexes import migrate_requests_schema
from helpdesk.models import common
from helpdesk.models.request import ApprovalPayload, RequestCreate, TransitionPayload, normalize
from helpdesk.utils.pagination import meta


@pytest.mark.parametrize("raw,expected", [
    ("Geral", "general"), ("sistemas", "systems"), ("Ajuste Estoque", "stock_adjustment"),
    ("solicitação-equipamento", "equipment_request"), ("manutencao_preventiva", "preventive_maintenance"),
    ("hardware", "hardware"), ("", "other"),
])
def test_normalize_type(raw, expected):
    assert common.normalize_type(raw) == expected


def test_normalize_priority_and_status():
    assert common.normalize_priority("URGENTE") == "high"
    assert common.normalize_priority("média") == "medium"
    assert common.normalize_priority("???") == "medium"
    assert common.normalize_status("Em Andamento") == "in_progress"
    assert common.normalize_status("reaberta") == "reopened"
    assert common.is_known_status("fechada")
    assert not common.is_known_status("archived")


def test_request_create_validation():
    payload = RequestCreate(description="  Sem rede  ", type="sistemas", priority="alta")
    assert (payload.description, payload.type, payload.priority) == ("Sem rede", "systems", "high")
    with pytest.raises(ValidationError):
        RequestCreate(description="   ")


def test_payload_vocabulary():
    assert TransitionPayload(to_status="resolvida").to_status == "resolved"
    assert ApprovalPayload(decision="rejeitada").decision == "rejected"
    with pytest.raises(ValidationError):
        ApprovalPayload(decision="talvez")


def test_normalize_legacy_document():
    doc = normalize({
        "_id": "abc", "id": "010124-000001", "description": "x", "type": "solicitacao_equipamento",
        "priority": "urgente", "status": "Nova", "requesterId": "user-1", "requesterName": "Carla",
        "createdAt": datetime(2024, 1, 1, tzinfo=timezone.utc), "approvalStatus": "aprovada",
    })
    assert "_id" not in doc
    assert doc["requester_id"] == "user-1" and "requesterId" not in doc
    assert (doc["type"], doc["priority"], doc["status"]) == ("equipment_request", "high", "new")
    assert doc["approval_status"] == "approved"
    assert doc["comments"] == [] and doc["state_history"] == []


def test_approval_only_for_approval_types():
    assert normalize({"type": "general", "approval_status": "pending"})["approval_status"] is None
    assert normalize({"type": "systems"})["approval_status"] == "pending"


def test_page_meta_clamps_page():
    pm = meta(total=5, page=9, page_size=2)
    assert (pm.page, pm.total_pages, pm.skip, pm.has_next, pm.has_prev) == (3, 3, 4, False, True)
    assert meta(total=0, page=1, page_size=10).total_pages == 1
    assert meta(total=100, page=1, page_size=500).page_size == 50


@pytest.mark.asyncio
async def test_migration_rewrites_legacy_vocabulary(fake_db):
    fake_db.requests.docs.extend([
        {"id": "a", "type": "sistemas", "priority": "urgente", "status": "em_andamento"},
        {"id": "b", "type": "geral", "priority": "baixa"},
    ])
    await migrate_requests_schema(fake_db)
    a, b = fake_db.requests.docs
    assert (a["type"], a["priority"], a["status"], a["approval_status"]) == ("systems", "high", "in_progress", "pending")
    assert (b["type"], b["priority"], b["status"]) == ("general", "low", "new")
    assert "approval_status" not in b


@pytest.mark.asyncio
async def test_migration_renames_camel_case_fields(fake_db, requester):
    from helpdesk.services import request_service

    created = datetime(2024, 3, 1, 12, tzinfo=timezone.utc)
    fake_db.requests.docs.extend([
        {"id": "c", "description": "x", "type": "Geral", "status": "Nova", "priority": "Alta",
         "requesterId": "user-1", "requesterName": "Carla Compras", "createdAt": created},
        {"id": "d", "description": "y", "type": "equipment-request", "requester_id": "user-2",
         "requesterId": "user-9", "approvalStatus": None},
    ])
    await migrate_requests_schema(fake_db)
    c, d = fake_db.requests.docs
    assert (c["requester_id"], c["requester_name"], c["created_at"]) == ("user-1", "Carla Compras", created)
    assert not {"requesterId", "requesterName", "createdAt"} & set(c)
    assert (c["type"], c["status"], c["priority"]) == ("general", "new", "high")
    # el campo snake_case existente no se pisa
    assert d["requester_id"] == "user-2" and "requesterId" not in d
    assert (d["type"], d["approval_status"]) == ("equipment_request", "pending")

    # los filtros por campo canónico ya encuentran el documento migrado
    page = await request_service.list_requests(requester, view="all", status="new")
    assert [r["id"] for r in page["items"]] == ["c"]
