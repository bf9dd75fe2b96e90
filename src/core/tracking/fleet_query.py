# src/core/tracking/fleet_query.py
"""
Live-запрос флота: свежие отчёты + справочные данные автомобиля.
"""

from __future__ import annotations

from typing import Protocol

from src.common.constants import LocationStatus
from src.common.logger import log_error
from src.core.tracking.errors import LocationStoreUnavailable
from src.core.tracking.staleness import Clock, filter_fresh, now_ms
from src.core.tracking.store import LocationStore
from src.shared.models.location import FleetSnapshot, FleetVehicle, VehicleInfo


class VehicleInfoSource(Protocol):
    """Источник справочных данных (номер, модель, водитель, оплата)."""

    async def get_vehicle_info(self, vehicle_ids: list[str]) -> dict[str, VehicleInfo]:
        ...


class LiveFleetQuery:
    """
    Пересчитывает видимый флот при каждом вызове.

    Автомобиль без отчёта, с устаревшим или offline-отчётом в результат
    не попадает. Недоступность хранилища даёт пустой список,
    недоступность справочника даёт записи без обогащения.
    """

    def __init__(
        self,
        store: LocationStore,
        info_source: VehicleInfoSource | None = None,
        stale_threshold_seconds: float = 30,
        clock: Clock = now_ms,
    ) -> None:
        self._store = store
        self._info_source = info_source
        self._threshold_ms = int(stale_threshold_seconds * 1000)
        self._clock = clock

    async def execute(self) -> list[FleetVehicle]:
        """Список видимых автомобилей, отсортированный по vehicle_id."""
        try:
            reports = await self._store.snapshot()
        except LocationStoreUnavailable as e:
            await log_error(f"Хранилище локаций недоступно: {e}")
            return []

        visible = [
            r for r in filter_fresh(reports, self._clock(), self._threshold_ms)
            if r.status == LocationStatus.ACTIVE
        ]
        if not visible:
            return []

        info = await self._load_info([r.vehicle_id for r in visible])

        vehicles = []
        for report in sorted(visible, key=lambda r: r.vehicle_id):
            extra = info.get(report.vehicle_id)
            vehicles.append(FleetVehicle(
                **report.model_dump(),
                plate=extra.plate if extra else None,
                model=extra.model if extra else None,
                driver_name=extra.driver_name if extra else None,
                is_paid=extra.is_paid if extra else False,
            ))
        return vehicles

    async def snapshot(self) -> FleetSnapshot:
        """Результат execute() с отметкой времени генерации."""
        vehicles = await self.execute()
        return FleetSnapshot(vehicles=vehicles, generated_at=self._clock())

    async def _load_info(self, vehicle_ids: list[str]) -> dict[str, VehicleInfo]:
        if self._info_source is None:
            return {}
        try:
            return await self._info_source.get_vehicle_info(vehicle_ids)
        except Exception as e:
            await log_error(f"Не удалось загрузить данные автомобилей: {e}")
            return {}
