# helpdesk/core/db.py
import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

import certifi
from fastapi import HTTPException
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from helpdesk.core.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

_client: Optional[AsyncIOMotorClient] = None
_db: Optional[AsyncIOMotorDatabase] = None


def get_client() -> AsyncIOMotorClient:
    """
    Crea un único cliente Motor. Con MONGO_TLS usa el CA bundle de certifi
    (necesario para mongodb+srv / Atlas).
    """
    global _client
    if _client is None:
        kwargs = {"serverSelectionTimeoutMS": int(settings.store_timeout_seconds * 1000)}
        if settings.mongo_tls:
            kwargs.update(tls=True, tlsCAFile=certifi.where())
        _client = AsyncIOMotorClient(settings.mongo_url, **kwargs)
    return _client


def get_db() -> AsyncIOMotorDatabase:
    global _db
    if _db is None:
        _db = get_client()[settings.db_name]
    return _db


async def close_db() -> None:
    """
    Cierra el cliente global. Usado por main.py en shutdown.
    """
    global _client, _db
    if _client:
        _client.close()
    _client = None
    _db = None


async def guard(awaitable: Awaitable[T]) -> T:
    """
    Ejecuta una operación contra la base con timeout explícito.
    Timeout o error del driver -> 503 recuperable (sin reintentos automáticos).
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=settings.store_timeout_seconds)
    except asyncio.TimeoutError:
        logger.warning("Timeout de %ss contra la base de datos", settings.store_timeout_seconds)
        raise HTTPException(status_code=503, detail="Base de dados indisponível (tempo esgotado)")
    except PyMongoError as e:
        logger.warning("Error de la base de datos: %s", e)
        raise HTTPException(status_code=503, detail="Base de dados indisponível")
