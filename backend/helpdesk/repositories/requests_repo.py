# helpdesk/repositories/requests_repo.py
from typing import Dict, Any, List, Optional
from pymongo import ReturnDocument
from helpdesk.core.db import get_db, guard

async def find_by_id(request_id: str) -> dict | None:
    return await guard(get_db().requests.find_one({"id": request_id}))

async def insert(doc: dict):
    await guard(get_db().requests.insert_one(doc))

async def update_if_status(
    request_id: str, expected_status: str, ops: Dict[str, Any], conditions: Optional[Dict[str, Any]] = None,
) -> bool:
    """Un único update por id; solo aplica si el estado (y `conditions`) siguen como se leyeron."""
    filt = {**(conditions or {}), "id": request_id, "status": expected_status}
    res = await guard(get_db().requests.update_one(filt, ops))
    return res.matched_count > 0

async def set_fields(request_id: str, fields: Dict[str, Any]):
    await guard(get_db().requests.update_one({"id": request_id}, {"$set": fields}))

async def delete(request_id: str) -> bool:
    res = await guard(get_db().requests.delete_one({"id": request_id}))
    return res.deleted_count > 0

async def list_paginated(filt: Dict[str,Any], sort_field: str, sort_dir: int, skip: int, limit: int) -> List[dict]:
    cur = get_db().requests.find(filt).sort(sort_field, sort_dir).skip(skip).limit(limit)
    return await guard(cur.to_list(length=limit))

async def list_all(filt: Dict[str,Any], limit: Optional[int] = None) -> List[dict]:
    cur = get_db().requests.find(filt).sort("created_at", -1)
    return await guard(cur.to_list(length=limit))

async def count(filt: Dict[str,Any]) -> int:
    return await guard(get_db().requests.count_documents(filt))

async def next_sequence(key: str) -> int:
    doc = await guard(get_db().counters.find_one_and_update(
        {"_id": f"requests:{key}"}, {"$inc": {"seq": 1}},
        upsert=True, return_document=ReturnDocument.AFTER,
    ))
    return int(doc["seq"])

async def claim_once(key: str) -> bool:
    """True solo la primera vez que se reclama `key` (guardas de tareas periódicas)."""
    before = await guard(get_db().counters.find_one_and_update(
        {"_id": key}, {"$setOnInsert": {"claimed": True}},
        upsert=True, return_document=ReturnDocument.BEFORE,
    ))
    return before is None
