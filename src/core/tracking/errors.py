# src/core/tracking/errors.py
"""
Исключения домена GPS-трекинга.
"""


class TrackingError(Exception):
    """Базовая ошибка трекинга."""


class InvalidLocationReport(TrackingError):
    """Отчёт отклонён при приёме (например, active без координат)."""


class LocationStoreUnavailable(TrackingError):
    """Хранилище последних отчётов недоступно."""
