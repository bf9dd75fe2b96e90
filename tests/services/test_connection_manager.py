# tests/services/test_connection_manager.py
"""
Тесты менеджера WebSocket соединений live-карты.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from src.services.fleet_api.connection_manager import ConnectionManager


@pytest.fixture
def manager() -> ConnectionManager:
    return ConnectionManager()


@pytest.fixture
def websocket() -> AsyncMock:
    ws = AsyncMock()
    ws.accept = AsyncMock()
    ws.send_json = AsyncMock()
    ws.close = AsyncMock()
    return ws


class TestConnectionManager:

    @pytest.mark.asyncio
    async def test_connect_accepts_and_registers(self, manager: ConnectionManager, websocket: AsyncMock) -> None:
        session_id = await manager.connect(websocket, "user-admin", "admin")

        websocket.accept.assert_awaited_once()
        assert session_id
        assert manager.active_connections == 1

    @pytest.mark.asyncio
    async def test_same_user_multiple_tabs(self, manager: ConnectionManager) -> None:
        """Несколько вкладок одного пользователя не вытесняют друг друга."""
        first = await manager.connect(AsyncMock(), "user-admin", "admin")
        second = await manager.connect(AsyncMock(), "user-admin", "admin")

        assert first != second
        assert manager.active_connections == 2

    @pytest.mark.asyncio
    async def test_send_personal(self, manager: ConnectionManager, websocket: AsyncMock) -> None:
        session_id = await manager.connect(websocket, "user-admin", "admin")

        assert await manager.send_personal(session_id, {"type": "pong"}) is True
        websocket.send_json.assert_awaited_once_with({"type": "pong"})
        assert manager.get_stats()["total_messages_sent"] == 1

    @pytest.mark.asyncio
    async def test_send_to_unknown_session(self, manager: ConnectionManager) -> None:
        assert await manager.send_personal("missing", {"type": "pong"}) is False

    @pytest.mark.asyncio
    async def test_failed_send_disconnects(self, manager: ConnectionManager, websocket: AsyncMock) -> None:
        websocket.send_json.side_effect = RuntimeError("socket closed")
        session_id = await manager.connect(websocket, "user-admin", "admin")

        assert await manager.send_personal(session_id, {"type": "pong"}) is False
        assert manager.active_connections == 0

    @pytest.mark.asyncio
    async def test_disconnect_and_stats(self, manager: ConnectionManager) -> None:
        session_id = await manager.connect(AsyncMock(), "user-admin", "admin")
        await manager.connect(AsyncMock(), "user-operator", "operator")

        await manager.disconnect(session_id)
        await manager.disconnect(session_id)

        stats = manager.get_stats()
        assert stats["active_connections"] == 1
        assert stats["total_connections_ever"] == 2
        assert stats["connections_by_role"] == {"operator": 1}

    @pytest.mark.asyncio
    async def test_close_all(self, manager: ConnectionManager, websocket: AsyncMock) -> None:
        closed = AsyncMock()
        closed.close.side_effect = RuntimeError("already closed")
        await manager.connect(websocket, "user-admin", "admin")
        await manager.connect(closed, "user-operator", "operator")

        await manager.close_all()

        websocket.close.assert_awaited_once()
        assert manager.active_connections == 0
