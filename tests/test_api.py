import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from starlette.requests import Request

from helpdesk.core.rate_limit import user_or_ip
from helpdesk.core.security import create_access_token
from helpdesk.main import app


@pytest_asyncio.fixture
async def client(fake_db):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


def auth(user):
    return {"Authorization": f"Bearer {create_access_token(user.model_dump())}"}


@pytest.mark.asyncio
async def test_health(client):
    assert (await client.get("/health")).json() == {"ok": True}


@pytest.mark.asyncio
async def test_requires_valid_token(client):
    assert (await client.get("/api/requests")).status_code in (401, 403)
    bad = await client.get("/api/requests", headers={"Authorization": "Bearer nope"})
    assert bad.status_code == 401


@pytest.mark.asyncio
async def test_request_lifecycle_over_http(client, fake_db, requester, admin):
    created = await client.post(
        "/api/requests", json={"description": "Sem internet", "type": "geral", "priority": "alta"},
        headers=auth(requester),
    )
    assert created.status_code == 201
    body = created.json()
    rid = body["id"]
    assert (body["type"], body["priority"], body["status"]) == ("general", "high", "new")

    denied = await client.post(f"/api/requests/{rid}/transition", json={"to_status": "resolved"}, headers=auth(requester))
    assert denied.status_code == 403

    assigned = await client.post(f"/api/requests/{rid}/assign", json={"assigned_to": "admin-2"}, headers=auth(admin))
    assert assigned.json()["status"] == "assigned"

    resolved = await client.post(f"/api/requests/{rid}/transition", json={"to_status": "resolvida"}, headers=auth(admin))
    assert resolved.status_code == 200
    assert resolved.json()["resolution"] == "Resolvida por Ana Admin"

    empty = await client.post(f"/api/requests/{rid}/reopen", json={"reason": " "}, headers=auth(requester))
    assert empty.status_code == 422

    reopened = await client.post(f"/api/requests/{rid}/reopen", json={"reason": "Caiu de novo"}, headers=auth(requester))
    assert reopened.json()["status"] == "reopened"

    done = await client.get("/api/requests", params={"view": "done"}, headers=auth(admin))
    active = await client.get("/api/requests", params={"view": "active"}, headers=auth(admin))
    assert done.json()["total"] == 0
    assert [r["id"] for r in active.json()["items"]] == [rid]


@pytest.mark.asyncio
async def test_approval_gate_over_http(client, requester, admin):
    rid = (await client.post(
        "/api/requests", json={"description": "Notebook novo", "type": "equipment_request"}, headers=auth(requester),
    )).json()["id"]

    blocked = await client.post(f"/api/requests/{rid}/assign", json={"assigned_to": "admin-2"}, headers=auth(admin))
    assert blocked.status_code == 409

    rejected = await client.post(
        f"/api/requests/{rid}/approval", json={"decision": "rejeitada", "reason": "Sem verba"}, headers=auth(admin),
    )
    assert rejected.json()["approval_status"] == "rejected"

    report = await client.get("/api/reports/requests", params={"status": "rejected"}, headers=auth(admin))
    assert report.json()["summary"]["rejection_reasons"] == [{"id": rid, "reason": "Sem verba"}]

    forbidden = await client.get("/api/reports/summary", headers=auth(requester))
    assert forbidden.status_code == 403


@pytest.mark.asyncio
async def test_notifications_over_http(client, requester):
    await client.post("/api/requests", json={"description": "Mouse"}, headers=auth(requester))

    count = await client.get("/api/notifications/unread-count", headers=auth(requester))
    assert count.json() == {"count": 1}

    items = (await client.get("/api/notifications", params={"unread_only": True}, headers=auth(requester))).json()
    assert items[0]["type"] == "created"

    assert (await client.post(f"/api/notifications/{items[0]['id']}/read", headers=auth(requester))).status_code == 200
    assert (await client.get("/api/notifications/unread-count", headers=auth(requester))).json() == {"count": 0}


@pytest.mark.asyncio
async def test_holidays_admin_only(client, requester, admin):
    denied = await client.post("/api/holidays", json={"date": "2026-11-02", "name": "Finados"}, headers=auth(requester))
    assert denied.status_code == 403

    created = await client.post("/api/holidays", json={"date": "2026-11-02", "name": "Finados"}, headers=auth(admin))
    assert created.status_code == 201
    dup = await client.post("/api/holidays", json={"date": "2026-11-02", "name": "Outro"}, headers=auth(admin))
    assert dup.status_code == 409

    listed = (await client.get("/api/holidays", headers=auth(requester))).json()
    assert [h["date"] for h in listed] == ["2026-11-02"]


@pytest.mark.asyncio
async def test_delete_request(client, requester, other_requester):
    rid = (await client.post("/api/requests", json={"description": "Apagar"}, headers=auth(requester))).json()["id"]
    assert (await client.delete(f"/api/requests/{rid}", headers=auth(other_requester))).status_code == 403
    assert (await client.delete(f"/api/requests/{rid}", headers=auth(requester))).status_code == 204
    assert (await client.get(f"/api/requests/{rid}", headers=auth(requester))).status_code == 404


@pytest.mark.asyncio
async def test_config_and_me(client, fake_db, requester):
    cfg = (await client.get("/api/config")).json()
    assert cfg["deadline_days_by_type"]["systems"] == 10
    assert cfg["notification_poll_seconds"] == 120

    me = (await client.get("/api/users/me", headers=auth(requester))).json()
    assert me["id"] == "user-1"
    assert any(u["id"] == "user-1" and "last_seen_at" in u for u in fake_db.users.docs)


def test_rate_limit_key_prefers_token_subject(requester):
    token = create_access_token(requester.model_dump())
    with_token = Request({"type": "http", "headers": [(b"authorization", f"Bearer {token}".encode())], "client": ("10.0.0.1", 5000)})
    anonymous = Request({"type": "http", "headers": [], "client": ("10.0.0.1", 5000)})
    assert user_or_ip(with_token) == "user:user-1"
    assert user_or_ip(anonymous) == "10.0.0.1"
