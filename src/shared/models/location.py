# src/shared/models/location.py
"""
Модели GPS-трекинга: входящий отчёт, сохранённый отчёт, позиция на карте.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from src.common.constants import LocationStatus
from src.shared.models.common import CamelModel


class LocationReportRequest(BaseModel):
    """Тело POST-запроса от устройства водителя."""
    lat: float | None = Field(default=None, ge=-90, le=90)
    lng: float | None = Field(default=None, ge=-180, le=180)
    speed: float | None = Field(default=None, ge=0)  # км/ч
    status: LocationStatus = LocationStatus.ACTIVE


class LocationReport(CamelModel):
    """
    Последний отчёт автомобиля в хранилище.

    timestamp — миллисекунды epoch, проставляется сервером при приёме.
    Запись без timestamp считается устаревшей.
    """
    vehicle_id: str
    lat: float = 0.0
    lng: float = 0.0
    speed: float = 0.0
    status: LocationStatus = LocationStatus.ACTIVE
    timestamp: int | None = None


class VehicleInfo(CamelModel):
    """Справочные данные автомобиля для обогащения отчёта."""
    vehicle_id: str
    plate: str | None = None
    model: str | None = None
    driver_name: str | None = None
    is_paid: bool = False


class FleetVehicle(LocationReport):
    """Позиция автомобиля на live-карте (отчёт + справочные данные)."""
    plate: str | None = None
    model: str | None = None
    driver_name: str | None = None
    is_paid: bool = False


class FleetSnapshot(CamelModel):
    """Полный срез видимого флота на момент generated_at (мс)."""
    vehicles: list[FleetVehicle] = Field(default_factory=list)
    generated_at: int

    def to_message(self) -> dict:
        """Сообщение push-канала."""
        return {
            "type": "fleet_snapshot",
            **self.model_dump(mode="json", by_alias=True),
        }


class LocationAck(BaseModel):
    """Ответ на приём отчёта."""
    success: bool = True
