# helpdesk/repositories/holidays_repo.py
from typing import List
from helpdesk.core.db import get_db, guard

# Las fechas se guardan como "YYYY-MM-DD" (Mongo no tiene tipo fecha sin hora)

async def list_all() -> List[dict]:
    return await guard(get_db().holidays.find({}).sort("date", 1).to_list(length=None))

async def find_by_date(day: str) -> dict | None:
    return await guard(get_db().holidays.find_one({"date": day}))

async def insert(doc: dict):
    await guard(get_db().holidays.insert_one(doc))

async def delete(holiday_id: str) -> bool:
    res = await guard(get_db().holidays.delete_one({"id": holiday_id}))
    return res.deleted_count > 0
