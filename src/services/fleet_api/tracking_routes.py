# src/services/fleet_api/tracking_routes.py
"""
Эндпоинты GPS-трекинга.

REST:
- POST /api/vehicle-locations — отчёт водителя за закреплённый автомобиль
- POST /api/vehicles/{vehicle_id}/location — отчёт по id автомобиля
- GET /api/vehicle-locations — live-список флота

WebSocket:
- /ws/fleet?token=... — push-канал срезов флота
"""

from __future__ import annotations

import asyncio
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status

from src.common.constants import UserRole
from src.config import settings
from src.common.logger import log_debug
from src.core.tracking import FleetFeed, InvalidLocationReport, LiveFleetQuery, LocationIngestService
from src.services.fleet_api.auth import authenticate_token, get_current_user, require_roles
from src.services.fleet_api.connection_manager import ConnectionManager
from src.services.fleet_api.dependencies import (
    get_connection_manager,
    get_fleet_feed,
    get_fleet_query,
    get_ingest_service,
    get_repository,
)
from src.services.fleet_api.repository import FleetRepository
from src.shared.models.fleet import UserDTO
from src.shared.models.location import FleetVehicle, LocationAck, LocationReportRequest

router = APIRouter(tags=["Tracking"])
ws_router = APIRouter(tags=["Tracking"])


async def _ingest_or_400(
    ingest: LocationIngestService,
    vehicle_id: str,
    request: LocationReportRequest,
) -> LocationAck:
    try:
        await ingest.ingest(vehicle_id, request)
    except InvalidLocationReport as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return LocationAck()


@router.post("/vehicle-locations", response_model=LocationAck)
async def report_own_location(
    request: LocationReportRequest,
    user: UserDTO = Depends(require_roles(UserRole.DRIVER)),
    repository: FleetRepository = Depends(get_repository),
    ingest: LocationIngestService = Depends(get_ingest_service),
) -> LocationAck:
    """Отчёт водителя: автомобиль определяется по закреплению за водителем."""
    vehicle_id = await repository.get_vehicle_id_for_user(user.id)
    if vehicle_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="За водителем не закреплён автомобиль",
        )
    return await _ingest_or_400(ingest, vehicle_id, request)


@router.post("/vehicles/{vehicle_id}/location", response_model=LocationAck)
async def report_vehicle_location(
    vehicle_id: str,
    request: LocationReportRequest,
    user: UserDTO = Depends(require_roles(UserRole.DRIVER, UserRole.ADMIN, UserRole.OPERATOR)),
    repository: FleetRepository = Depends(get_repository),
    ingest: LocationIngestService = Depends(get_ingest_service),
) -> LocationAck:
    """Отчёт по id автомобиля. Водитель может отчитываться только за свой автомобиль."""
    if user.role == UserRole.DRIVER:
        own_vehicle_id = await repository.get_vehicle_id_for_user(user.id)
        if own_vehicle_id != vehicle_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Автомобиль не закреплён за водителем",
            )
    return await _ingest_or_400(ingest, vehicle_id, request)


@router.get("/vehicle-locations", response_model=list[FleetVehicle])
async def list_vehicle_locations(
    _: UserDTO = Depends(get_current_user),
    query: LiveFleetQuery = Depends(get_fleet_query),
) -> list[FleetVehicle]:
    """Видимые автомобили с данными водителя и статусом оплаты."""
    return await query.execute()


# === WEBSOCKET ===

@ws_router.websocket("/ws/fleet")
async def fleet_websocket(
    websocket: WebSocket,
    token: str | None = Query(default=None),
) -> None:
    """
    Push-канал live-карты.

    Исходящие сообщения:
    - {"type": "fleet_snapshot", "vehicles": [...], "generatedAt": ...}
    - {"type": "pong"}

    Входящие сообщения:
    - {"action": "ping"}
    - {"action": "refresh"} — немедленно прислать свежий срез
    """
    repository = get_repository()
    user = await authenticate_token(
        token or websocket.cookies.get(settings.auth.AUTH_COOKIE_NAME),
        repository,
    )
    if user is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    manager = get_connection_manager()
    feed = get_fleet_feed()
    session_id = await manager.connect(websocket, user.id, user.role.value)

    sender = asyncio.create_task(_pump_snapshots(manager, feed, session_id))
    receiver = asyncio.create_task(_receive_actions(websocket, manager, feed, session_id))
    try:
        await asyncio.wait({sender, receiver}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (sender, receiver):
            task.cancel()
        await asyncio.gather(sender, receiver, return_exceptions=True)
        await manager.disconnect(session_id)


async def _pump_snapshots(manager: ConnectionManager, feed: FleetFeed, session_id: str) -> None:
    """Пересылает срезы канала в сессию, пока она открыта."""
    async for snapshot in feed.subscribe():
        if not await manager.send_personal(session_id, snapshot.to_message()):
            return


async def _receive_actions(
    websocket: WebSocket,
    manager: ConnectionManager,
    feed: FleetFeed,
    session_id: str,
) -> None:
    """Обрабатывает сообщения клиента до отключения."""
    try:
        while True:
            data: dict[str, Any] = await websocket.receive_json()
            action = data.get("action")

            if action == "ping":
                await manager.send_personal(session_id, {"type": "pong"})
            elif action == "refresh":
                snapshot = await feed.poll()
                await manager.send_personal(session_id, snapshot.to_message())
    except WebSocketDisconnect:
        await log_debug(f"WebSocket закрыт клиентом: session={session_id}")
