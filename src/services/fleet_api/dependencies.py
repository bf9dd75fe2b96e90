# src/services/fleet_api/dependencies.py
"""
Dependency Injection для fleet_api.

Все сервисы создаются в lifespan через init_dependencies(),
эндпоинты получают их через Depends(get_*).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from src.core.tracking import (
    FleetFeed,
    LiveFleetQuery,
    LocationIngestService,
    LocationStore,
    LocationSweeper,
    create_feed,
)
from src.core.tracking.staleness import Clock, now_ms
from src.services.fleet_api.connection_manager import ConnectionManager

if TYPE_CHECKING:
    from src.config.loader import TrackingSettings
    from src.services.fleet_api.repository import FleetRepository


# Синглтоны
_repository: "FleetRepository | None" = None
_store: LocationStore | None = None
_ingest: LocationIngestService | None = None
_query: LiveFleetQuery | None = None
_feed: FleetFeed | None = None
_sweeper: LocationSweeper | None = None
_manager: ConnectionManager | None = None


async def init_dependencies(
    repository: "FleetRepository",
    store: LocationStore,
    tracking: "TrackingSettings",
    clock: Clock = now_ms,
) -> None:
    """Собрать сервисы трекинга и запустить фоновые задачи."""
    global _repository, _store, _ingest, _query, _feed, _sweeper, _manager

    _repository = repository
    _store = store
    _ingest = LocationIngestService(
        store,
        stale_threshold_seconds=tracking.STALE_THRESHOLD_SECONDS,
        clock=clock,
    )
    _query = LiveFleetQuery(
        store,
        info_source=repository,
        stale_threshold_seconds=tracking.STALE_THRESHOLD_SECONDS,
        clock=clock,
    )
    interval = (
        tracking.BROADCAST_INTERVAL_SECONDS
        if tracking.DISTRIBUTION_MODE == "push"
        else tracking.POLL_INTERVAL_SECONDS
    )
    _feed = create_feed(tracking.DISTRIBUTION_MODE, _query, interval)
    _sweeper = LocationSweeper(_ingest, tracking.SWEEP_INTERVAL_SECONDS)
    _manager = ConnectionManager()

    await _feed.start()
    await _sweeper.start()


def get_repository() -> "FleetRepository":
    """Получить репозиторий реестров."""
    if _repository is None:
        raise RuntimeError("FleetRepository не инициализирован. Вызовите init_dependencies()")
    return _repository


def get_location_store() -> LocationStore:
    """Получить хранилище локаций."""
    if _store is None:
        raise RuntimeError("LocationStore не инициализирован. Вызовите init_dependencies()")
    return _store


def get_ingest_service() -> LocationIngestService:
    """Получить сервис приёма локаций."""
    if _ingest is None:
        raise RuntimeError("LocationIngestService не инициализирован. Вызовите init_dependencies()")
    return _ingest


def get_fleet_query() -> LiveFleetQuery:
    """Получить live-запрос флота."""
    if _query is None:
        raise RuntimeError("LiveFleetQuery не инициализирован. Вызовите init_dependencies()")
    return _query


def get_fleet_feed() -> FleetFeed:
    """Получить канал рассылки флота."""
    if _feed is None:
        raise RuntimeError("FleetFeed не инициализирован. Вызовите init_dependencies()")
    return _feed


def get_connection_manager() -> ConnectionManager:
    """Получить менеджер WebSocket соединений."""
    if _manager is None:
        raise RuntimeError("ConnectionManager не инициализирован. Вызовите init_dependencies()")
    return _manager


async def cleanup_dependencies() -> None:
    """Остановить фоновые задачи и сбросить синглтоны."""
    global _repository, _store, _ingest, _query, _feed, _sweeper, _manager

    if _sweeper is not None:
        await _sweeper.stop()
    if _feed is not None:
        await _feed.stop()
    if _manager is not None:
        await _manager.close_all()

    _repository = None
    _store = None
    _ingest = None
    _query = None
    _feed = None
    _sweeper = None
    _manager = None
