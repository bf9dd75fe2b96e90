# src/services/fleet_api/connection_manager.py
"""
Менеджер WebSocket соединений зрителей live-карты.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from fastapi import WebSocket

from src.common.logger import log_debug


@dataclass
class ConnectionInfo:
    """Информация о соединении."""
    websocket: WebSocket
    session_id: str
    user_id: str
    role: str
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    messages_sent: int = 0


class ConnectionManager:
    """
    Менеджер WebSocket соединений.

    Один пользователь может держать несколько вкладок с картой,
    поэтому соединения ключуются по session_id. Закрытие сессии
    не требует серверной очистки кроме удаления записи.
    """

    def __init__(self) -> None:
        # session_id -> ConnectionInfo
        self._connections: dict[str, ConnectionInfo] = {}

        # Для статистики
        self._total_connections: int = 0
        self._total_messages_sent: int = 0

    @property
    def active_connections(self) -> int:
        """Количество активных соединений."""
        return len(self._connections)

    async def connect(self, websocket: WebSocket, user_id: str, role: str) -> str:
        """Принять соединение. Возвращает session_id."""
        await websocket.accept()

        session_id = uuid.uuid4().hex
        self._connections[session_id] = ConnectionInfo(
            websocket=websocket,
            session_id=session_id,
            user_id=user_id,
            role=role,
        )
        self._total_connections += 1
        await log_debug(f"Зритель подключён: user={user_id} session={session_id}")
        return session_id

    async def disconnect(self, session_id: str) -> None:
        """Отключить клиента."""
        if self._connections.pop(session_id, None) is not None:
            await log_debug(f"Зритель отключён: session={session_id}")

    async def send_personal(self, session_id: str, message: dict[str, Any]) -> bool:
        """
        Отправить сообщение конкретной сессии.

        Returns:
            True если сообщение отправлено, False если сессия закрыта
        """
        conn = self._connections.get(session_id)
        if conn is None:
            return False

        try:
            await conn.websocket.send_json(message)
        except Exception:
            # Соединение разорвано
            await self.disconnect(session_id)
            return False

        conn.messages_sent += 1
        self._total_messages_sent += 1
        return True

    async def close_all(self) -> None:
        """Закрыть все соединения (остановка сервиса)."""
        for conn in list(self._connections.values()):
            try:
                await conn.websocket.close()
            except RuntimeError:
                # Уже закрыто
                pass
        self._connections.clear()

    def get_stats(self) -> dict[str, Any]:
        """Получить статистику."""
        return {
            "active_connections": len(self._connections),
            "total_connections_ever": self._total_connections,
            "total_messages_sent": self._total_messages_sent,
            "connections_by_role": self._count_by_role(),
        }

    def _count_by_role(self) -> dict[str, int]:
        """Подсчёт соединений по роли."""
        counts: dict[str, int] = {}
        for conn in self._connections.values():
            counts[conn.role] = counts.get(conn.role, 0) + 1
        return counts
