# src/core/tracking/ingest.py
"""
Приём GPS-отчётов от устройств водителей.
"""

from __future__ import annotations

from typing import Any

from src.common.constants import LocationStatus, TypeMsg
from src.common.logger import log_debug, log_info
from src.core.tracking.errors import InvalidLocationReport
from src.core.tracking.staleness import Clock, now_ms
from src.core.tracking.store import LocationStore
from src.shared.models.location import LocationReport, LocationReportRequest


class LocationIngestService:
    """
    Сервис приёма геолокации.

    Ответственности:
    - Валидация отчёта (active требует lat/lng)
    - Серверная отметка времени (часы клиента не используются)
    - Замена записи автомобиля в хранилище
    - Опциональная очистка устаревших записей
    """

    def __init__(
        self,
        store: LocationStore,
        stale_threshold_seconds: float = 30,
        clock: Clock = now_ms,
    ) -> None:
        self._store = store
        self._threshold_ms = int(stale_threshold_seconds * 1000)
        self._clock = clock

        # Статистика
        self._total_updates = 0
        self._offline_updates = 0
        self._rejected_updates = 0
        self._updates_per_vehicle: dict[str, int] = {}
        self._swept_total = 0

    @property
    def store(self) -> LocationStore:
        return self._store

    async def ingest(self, vehicle_id: str, request: LocationReportRequest) -> LocationReport:
        """
        Принимает отчёт автомобиля.

        Offline-отчёт принимается без координат (подставляются 0/0),
        он лишь сигнализирует о прекращении трансляции.

        Raises:
            InvalidLocationReport: нет vehicle_id или нет координат у active
        """
        if not vehicle_id:
            self._rejected_updates += 1
            raise InvalidLocationReport("Не указан автомобиль")

        if request.status == LocationStatus.ACTIVE and (request.lat is None or request.lng is None):
            self._rejected_updates += 1
            raise InvalidLocationReport("Для статуса active обязательны lat и lng")

        report = LocationReport(
            vehicle_id=vehicle_id,
            lat=request.lat if request.lat is not None else 0.0,
            lng=request.lng if request.lng is not None else 0.0,
            speed=request.speed or 0.0,
            status=request.status,
            timestamp=self._clock(),
        )
        await self._store.put(report)

        self._total_updates += 1
        if report.status == LocationStatus.OFFLINE:
            self._offline_updates += 1
            await log_info(f"Автомобиль {vehicle_id} вышел из сети", type_msg=TypeMsg.INFO)
        self._updates_per_vehicle[vehicle_id] = self._updates_per_vehicle.get(vehicle_id, 0) + 1

        return report

    async def sweep(self) -> int:
        """
        Физически удаляет устаревшие записи.

        Только ограничивает память: видимость и так пересчитывается при чтении.
        Хранилище заново проверяет каждую запись при удалении, поэтому
        отчёт, пришедший во время очистки, остаётся.
        """
        removed = await self._store.remove_if_stale(self._clock(), self._threshold_ms)
        if not removed:
            return 0

        self._swept_total += removed
        await log_debug(f"Удалено устаревших записей локации: {removed}")
        return removed

    def get_stats(self) -> dict[str, Any]:
        """Получить статистику."""
        return {
            "total_updates": self._total_updates,
            "offline_updates": self._offline_updates,
            "rejected_updates": self._rejected_updates,
            "unique_vehicles": len(self._updates_per_vehicle),
            "swept_total": self._swept_total,
            "top_vehicles": sorted(
                self._updates_per_vehicle.items(),
                key=lambda x: x[1],
                reverse=True,
            )[:10],
        }
