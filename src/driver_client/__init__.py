# src/driver_client/__init__.py
"""
Клиент водителя: сбор GPS-позиций и отправка отчётов в Fleet API.
"""

from src.driver_client.api_client import FleetApiClient
from src.driver_client.position import Position, PositionSource, ReplayPositionSource
from src.driver_client.reporter import DriverTrackingSession, LocationReporter, OfflineSignalHandler

__all__ = [
    "FleetApiClient",
    "Position",
    "PositionSource",
    "ReplayPositionSource",
    "DriverTrackingSession",
    "LocationReporter",
    "OfflineSignalHandler",
]
