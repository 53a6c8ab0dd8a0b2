# helpdesk/repositories/notifications_repo.py
from typing import List
from helpdesk.core.db import get_db, guard

async def insert(doc: dict):
    await guard(get_db().notifications.insert_one(doc))

async def list_by_user(user_id: str, unread_only: bool = False, limit: int = 50) -> List[dict]:
    filt = {"user_id": user_id}
    if unread_only:
        filt["read"] = False
    cur = get_db().notifications.find(filt).sort("created_at", -1).limit(limit)
    return await guard(cur.to_list(length=limit))

async def count_unread(user_id: str) -> int:
    return await guard(get_db().notifications.count_documents({"user_id": user_id, "read": False}))

async def mark_read(notification_id: str, user_id: str) -> bool:
    res = await guard(get_db().notifications.update_one(
        {"id": notification_id, "user_id": user_id}, {"$set": {"read": True}},
    ))
    return res.matched_count > 0

async def mark_all_read(user_id: str) -> int:
    res = await guard(get_db().notifications.update_many(
        {"user_id": user_id, "read": False}, {"$set": {"read": True}},
    ))
    return res.modified_count
