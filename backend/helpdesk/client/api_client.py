# helpdesk/client/api_client.py
from typing import Any, Dict, List, Optional

import httpx

from helpdesk.core.config import settings


class HelpdeskClient:
    """
    Cliente HTTP asíncrono de la API. Timeout explícito en todas las
    llamadas; los errores HTTP se propagan como httpx.HTTPStatusError.
    """

    def __init__(self, base_url: str, timeout: Optional[float] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout or settings.store_timeout_seconds,
            transport=transport,
        )

    async def close(self):
        await self._http.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    async def _request(self, method: str, path: str, token: str, **kwargs) -> Any:
        resp = await self._http.request(method, path, headers={"Authorization": f"Bearer {token}"}, **kwargs)
        resp.raise_for_status()
        if resp.status_code == 204:
            return None
        return resp.json()

    async def list_notifications(self, token: str, unread_only: bool = False) -> List[Dict[str, Any]]:
        return await self._request("GET", "/api/notifications", token, params={"unread_only": unread_only})

    async def unread_count(self, token: str) -> int:
        data = await self._request("GET", "/api/notifications/unread-count", token)
        return int(data["count"])

    async def mark_read(self, token: str, notification_id: str):
        return await self._request("POST", f"/api/notifications/{notification_id}/read", token)

    async def create_request(self, token: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/api/requests", token, json=payload)

    async def get_request(self, token: str, request_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/api/requests/{request_id}", token)
