# tests/services/test_fleet_api_dependencies.py
"""
Тесты сборки зависимостей fleet_api.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from src.config.loader import TrackingSettings
from src.core.tracking import PollingFleetFeed, PushFleetFeed
from src.services.fleet_api import dependencies


class TestDependencies:

    def test_getters_fail_before_init(self) -> None:
        with pytest.raises(RuntimeError):
            dependencies.get_ingest_service()
        with pytest.raises(RuntimeError):
            dependencies.get_fleet_feed()

    @pytest.mark.asyncio
    async def test_poll_mode(self, memory_store, tracking_settings: TrackingSettings, clock) -> None:
        repository = MagicMock()

        await dependencies.init_dependencies(repository, memory_store, tracking_settings, clock=clock)
        try:
            assert dependencies.get_repository() is repository
            assert dependencies.get_location_store() is memory_store
            assert isinstance(dependencies.get_fleet_feed(), PollingFleetFeed)
            assert dependencies.get_fleet_feed().interval == tracking_settings.POLL_INTERVAL_SECONDS
        finally:
            await dependencies.cleanup_dependencies()

        with pytest.raises(RuntimeError):
            dependencies.get_repository()

    @pytest.mark.asyncio
    async def test_push_mode_starts_background_tasks(self, memory_store, clock) -> None:
        tracking = TrackingSettings(
            DISTRIBUTION_MODE="push",
            BROADCAST_INTERVAL_SECONDS=0.05,
            SWEEP_INTERVAL_SECONDS=0.05,
        )

        await dependencies.init_dependencies(MagicMock(), memory_store, tracking, clock=clock)
        feed = dependencies.get_fleet_feed()
        sweeper = dependencies._sweeper
        try:
            assert isinstance(feed, PushFleetFeed)
            assert sweeper is not None and sweeper.running
        finally:
            await dependencies.cleanup_dependencies()

        assert sweeper.running is False
