# src/driver_client/api_client.py
"""
HTTP клиент Fleet API для устройства водителя.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from src.common.constants import LocationStatus
from src.config import settings
from src.shared.models.fleet import AuthResponse
from src.shared.models.location import LocationAck


class BaseClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def close(self):
        await self.client.aclose()

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None) -> Any:
        response = await self.client.get(path, params=params, headers=headers)
        response.raise_for_status()
        return response.json()

    async def _post(self, path: str, json: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None) -> Any:
        response = await self.client.post(path, json=json, headers=headers)
        response.raise_for_status()
        return response.json()


class FleetApiClient(BaseClient):
    """Вход водителя, отправка GPS-отчётов, выход."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        base_url = base_url or f"{settings.deployment.FLEET_API_PUBLIC_URL.rstrip('/')}/api"
        super().__init__(base_url, timeout=timeout, transport=transport)
        self.token: str | None = None

    def _auth_headers(self, token: str | None = None) -> Dict[str, str]:
        token = token or self.token
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def login(self, email: str, password: str) -> AuthResponse:
        data = await self._post("/auth/login", json={"email": email, "password": password})
        auth = AuthResponse.model_validate(data)
        self.token = auth.token
        return auth

    async def report_location(
        self,
        lat: float | None,
        lng: float | None,
        speed: float = 0.0,
        status: LocationStatus = LocationStatus.ACTIVE,
        token: str | None = None,
    ) -> LocationAck:
        """
        POST /api/vehicle-locations (автомобиль определяет сервер по водителю).

        token позволяет отправить отчёт с токеном, снятым заранее
        (offline-сигнал после выхода).
        """
        data = await self._post(
            "/vehicle-locations",
            json={"lat": lat, "lng": lng, "speed": speed, "status": status.value},
            headers=self._auth_headers(token),
        )
        return LocationAck.model_validate(data)

    async def logout(self) -> None:
        await self._post("/auth/logout", headers=self._auth_headers())
        self.token = None
