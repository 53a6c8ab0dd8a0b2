# helpdesk/client/poller.py
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from helpdesk.client.api_client import HelpdeskClient
from helpdesk.core.config import settings

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]
NotificationHandler = Callable[[List[Dict[str, Any]]], Awaitable[None]]


class NotificationPoller:
    """
    Consulta las notificaciones no leídas cada `interval` segundos (120 por
    defecto). Sin usuario autenticado el ciclo se salta sin avisar; un fallo
    se registra y el ciclo sigue.
    """

    def __init__(
        self,
        client: HelpdeskClient,
        token_provider: TokenProvider,
        on_notifications: NotificationHandler,
        interval: Optional[float] = None,
    ):
        self.client = client
        self.token_provider = token_provider
        self.on_notifications = on_notifications
        self.interval = interval if interval is not None else settings.notification_poll_seconds
        self._task: Optional[asyncio.Task] = None

    async def poll_once(self) -> bool:
        token = self.token_provider()
        if not token:
            return False
        try:
            items = await self.client.list_notifications(token, unread_only=True)
        except Exception:
            logger.exception("No se pudieron consultar las notificaciones")
            return False
        try:
            await self.on_notifications(items)
        except Exception:
            logger.exception("Fallo al procesar %d notificaciones", len(items))
            return False
        return True

    async def _loop(self):
        while True:
            await self.poll_once()
            await asyncio.sleep(self.interval)

    def start(self):
        if self._task is None:
            self._task = asyncio.create_task(self._loop())

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
