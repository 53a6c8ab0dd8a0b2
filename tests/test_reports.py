from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException

from helpdesk.models.common import REJECTION_MARKER
from helpdesk.services import report_service

NOW = datetime(2026, 10, 14, 15, 0, tzinfo=timezone.utc)


def doc(rid, status="new", approval=None, rtype="general", priority="medium", deadline=None, comments=()):
    return {
        "id": rid, "description": "x", "type": rtype, "priority": priority, "status": status,
        "approval_status": approval, "requester_id": "user-1", "requester_name": "Carla",
        "created_at": NOW - timedelta(days=2), "deadline_at": deadline or NOW + timedelta(days=1),
        "comments": list(comments),
    }


def test_pending_excludes_done_and_rejected():
    filt = report_service.build_report_filter("pending")
    assert filt == {"status": {"$nin": ["closed", "resolved"]}, "approval_status": {"$ne": "rejected"}}


def test_concrete_status_accepts_portuguese():
    filt = report_service.build_report_filter("nova", "sistemas")
    assert filt["status"] == "new"
    assert filt["approval_status"] == {"$ne": "rejected"}
    assert filt["type"] == "systems"


def test_unknown_status_is_rejected():
    with pytest.raises(HTTPException) as exc:
        report_service.build_report_filter("archived")
    assert exc.value.status_code == 400


def test_date_to_is_inclusive():
    filt = report_service.build_report_filter(date_to=datetime(2026, 10, 14, tzinfo=timezone.utc))
    end = filt["created_at"]["$lte"]
    assert (end.hour, end.minute, end.second) == (23, 59, 59)
    assert end.tzinfo is timezone.utc


def test_rejection_reason_uses_last_marked_comment():
    d = doc("1", comments=[
        {"text": f"{REJECTION_MARKER} primeiro"},
        {"text": "comentário comum"},
        {"text": f"{REJECTION_MARKER} Sem orçamento"},
    ])
    assert report_service.rejection_reason(d) == "Sem orçamento"
    assert report_service.rejection_reason(doc("2")) is None


def test_summary_counts():
    docs = [
        doc("a", priority="high"),
        doc("b", status="in_progress", deadline=NOW - timedelta(hours=1)),
        doc("c", status="resolved"),
        doc("d", approval="rejected", rtype="systems", comments=[{"text": f"{REJECTION_MARKER} caro"}]),
    ]
    s = report_service.summarize(docs, NOW)
    assert (s["total"], s["active"], s["done"], s["rejected"]) == (4, 2, 1, 1)
    assert s["high_priority_active"] == 1
    assert s["overdue_active"] == 1
    assert s["by_type"] == {"general": 3, "systems": 1}
    assert s["by_status"]["reopened"] == 0
    assert s["rejection_reasons"] == [{"id": "d", "reason": "caro"}]


@pytest.mark.asyncio
async def test_report_requires_admin(fake_db, requester):
    with pytest.raises(HTTPException) as exc:
        await report_service.report_requests(requester)
    assert exc.value.status_code == 403


@pytest.mark.asyncio
async def test_report_over_store(fake_db, admin):
    fake_db.requests.docs.extend([
        doc("a"), doc("b", status="resolved"), doc("c", approval="rejected", rtype="systems"),
    ])
    pending = await report_service.report_requests(admin, status="pending")
    assert [i["id"] for i in pending["items"]] == ["a"]

    rejected = await report_service.report_requests(admin, status="rejected")
    assert rejected["summary"]["rejected"] == 1

    overall = await report_service.summary(admin)
    assert overall["total"] == 3
