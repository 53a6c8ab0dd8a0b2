# helpdesk/repositories/users_repo.py
from datetime import datetime, timezone
from typing import List
from helpdesk.core.db import get_db, guard

# Perfiles conocidos: copia de lo que entrega el proveedor de auth en cada llamada.

async def remember(user: dict):
    now = datetime.now(timezone.utc)
    await guard(get_db().users.update_one(
        {"id": user["id"]},
        {"$set": {"name": user["name"], "email": user.get("email", ""), "role": user["role"], "last_seen_at": now},
         "$setOnInsert": {"created_at": now}},
        upsert=True,
    ))

async def find_by_id(user_id: str) -> dict | None:
    return await guard(get_db().users.find_one({"id": user_id}))

async def list_admins() -> List[dict]:
    return await guard(get_db().users.find({"role": "admin"}).to_list(length=None))

async def list_all() -> List[dict]:
    return await guard(get_db().users.find({}).sort("name", 1).to_list(length=None))
