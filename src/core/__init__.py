# src/core/__init__.py
"""
Доменный слой (Core Domain).
Чистая бизнес-логика, независимая от транспорта.
"""

from src.core.tracking import (
    FleetFeed,
    LiveFleetQuery,
    LocationIngestService,
    LocationStore,
)

__all__ = [
    "FleetFeed",
    "LiveFleetQuery",
    "LocationIngestService",
    "LocationStore",
]
