# src/core/tracking/__init__.py
"""
Домен GPS-трекинга.
Приём отчётов, фильтр устаревания, live-запрос флота, каналы рассылки.
"""

from src.core.tracking.errors import (
    TrackingError,
    InvalidLocationReport,
    LocationStoreUnavailable,
)
from src.core.tracking.staleness import Clock, now_ms, is_fresh, filter_fresh
from src.core.tracking.store import LocationStore, InMemoryLocationStore, RedisLocationStore
from src.core.tracking.ingest import LocationIngestService
from src.core.tracking.fleet_query import LiveFleetQuery, VehicleInfoSource
from src.core.tracking.feed import FleetFeed, PollingFleetFeed, PushFleetFeed, create_feed
from src.core.tracking.sweeper import LocationSweeper

__all__ = [
    "TrackingError",
    "InvalidLocationReport",
    "LocationStoreUnavailable",
    "Clock",
    "now_ms",
    "is_fresh",
    "filter_fresh",
    "LocationStore",
    "InMemoryLocationStore",
    "RedisLocationStore",
    "LocationIngestService",
    "LiveFleetQuery",
    "VehicleInfoSource",
    "FleetFeed",
    "PollingFleetFeed",
    "PushFleetFeed",
    "create_feed",
    "LocationSweeper",
]
