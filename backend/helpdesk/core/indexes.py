# helpdesk/core/indexes.py
import logging
from helpdesk.core.db import get_db
from helpdesk.models.common import (
    APPROVAL_TYPES, normalize_approval, normalize_priority, normalize_status, normalize_type,
)
from helpdesk.models.request import LEGACY_FIELD_NAMES

logger = logging.getLogger(__name__)

async def ensure_core_indexes(db):
    # requests
    await db.requests.create_index("id", unique=True)
    await db.requests.create_index([("created_at",-1)])
    await db.requests.create_index([("status",1)])
    await db.requests.create_index([("approval_status",1)])
    await db.requests.create_index([("requester_id",1)])
    await db.requests.create_index([("assigned_to",1)])
    await db.requests.create_index([("type",1)])
    await db.requests.create_index([("deadline_at",1)])

    # notificaciones
    await db.notifications.create_index([("user_id",1),("read",1),("created_at",-1)])
    await db.notifications.create_index("id", unique=True)

    # feriados / usuarios
    await db.holidays.create_index("date", unique=True)
    await db.users.create_index("id", unique=True)
    await db.users.create_index([("role",1)])

async def migrate_requests_schema(db):
    """
    Lleva los documentos antiguos al vocabulario canónico (idempotente).
    Las transiciones comparan el estado guardado, por eso debe correr al arrancar.
    """
    # nombres camelCase -> snake_case; si ambos existen gana el snake_case
    for camel, snake in LEGACY_FIELD_NAMES.items():
        await db.requests.update_many(
            {camel: {"$exists": True}, snake: {"$exists": False}}, {"$rename": {camel: snake}},
        )
        await db.requests.update_many({camel: {"$exists": True}}, {"$unset": {camel: ""}})

    # cada valor distinto pasa por el mismo normalize_* que la lectura
    for field, norm in (("type", normalize_type), ("priority", normalize_priority), ("status", normalize_status)):
        for value in await db.requests.distinct(field):
            canonical = norm(value)
            if canonical != value:
                await db.requests.update_many({field: value}, {"$set": {field: canonical}})
        await db.requests.update_many({field: {"$exists": False}}, {"$set": {field: norm(None)}})
    for value in await db.requests.distinct("approval_status"):
        if value is not None and normalize_approval(value) != value:
            await db.requests.update_many(
                {"approval_status": value}, {"$set": {"approval_status": normalize_approval(value)}},
            )
    # null o ausente cuenta como pendiente en los tipos con aprobación
    await db.requests.update_many(
        {"type": {"$in": sorted(APPROVAL_TYPES)}, "approval_status": None},
        {"$set": {"approval_status": "pending"}},
    )

async def startup_tasks():
    db = get_db()
    await ensure_core_indexes(db)
    await migrate_requests_schema(db)
    logger.info("startup_tasks: índices y migraciones aplicados")
