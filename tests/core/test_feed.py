# tests/core/test_feed.py
"""
Тесты каналов распространения live-флота.
"""

from __future__ import annotations

import asyncio

import pytest

from src.core.tracking import (
    LiveFleetQuery,
    LocationIngestService,
    PollingFleetFeed,
    PushFleetFeed,
    create_feed,
)
from src.shared.models.location import LocationReportRequest


@pytest.fixture
def ingest(memory_store, clock) -> LocationIngestService:
    return LocationIngestService(memory_store, clock=clock)


@pytest.fixture
def query(memory_store, clock) -> LiveFleetQuery:
    return LiveFleetQuery(memory_store, clock=clock)


class TestCreateFeed:

    def test_push_mode(self, query: LiveFleetQuery) -> None:
        feed = create_feed("push", query, 5)
        assert isinstance(feed, PushFleetFeed)
        assert feed.interval == 5

    def test_poll_mode(self, query: LiveFleetQuery) -> None:
        assert isinstance(create_feed("poll", query, 5), PollingFleetFeed)

    def test_unknown_mode(self, query: LiveFleetQuery) -> None:
        with pytest.raises(ValueError):
            create_feed("carrier-pigeon", query, 5)


class TestPollingFleetFeed:

    @pytest.mark.asyncio
    async def test_poll_returns_current_snapshot(self, ingest, query) -> None:
        feed = PollingFleetFeed(query, interval_seconds=0.01)
        await ingest.ingest("V1", LocationReportRequest(lat=1.0, lng=2.0))

        snapshot = await feed.poll()

        assert [v.vehicle_id for v in snapshot.vehicles] == ["V1"]

    @pytest.mark.asyncio
    async def test_subscribe_reflects_new_reports(self, ingest, query) -> None:
        feed = PollingFleetFeed(query, interval_seconds=0.01)
        stream = feed.subscribe()

        first = await stream.__anext__()
        await ingest.ingest("V1", LocationReportRequest(lat=1.0, lng=2.0))
        second = await stream.__anext__()
        await stream.aclose()

        assert first.vehicles == []
        assert [v.vehicle_id for v in second.vehicles] == ["V1"]

    def test_stats(self, query) -> None:
        assert PollingFleetFeed(query, 3).get_stats() == {"mode": "poll", "interval_seconds": 3}


class TestPushFleetFeed:

    @pytest.mark.asyncio
    async def test_first_message_is_immediate(self, ingest, query) -> None:
        """Новый подписчик сразу получает срез, не дожидаясь таймера."""
        feed = PushFleetFeed(query, interval_seconds=60)
        await ingest.ingest("V1", LocationReportRequest(lat=1.0, lng=2.0))
        stream = feed.subscribe()

        snapshot = await asyncio.wait_for(stream.__anext__(), timeout=1)
        await stream.aclose()

        assert [v.vehicle_id for v in snapshot.vehicles] == ["V1"]

    @pytest.mark.asyncio
    async def test_broadcast_reaches_subscribers(self, ingest, query) -> None:
        feed = PushFleetFeed(query, interval_seconds=60)
        stream = feed.subscribe()
        await stream.__anext__()
        assert feed.subscriber_count == 1

        await ingest.ingest("V2", LocationReportRequest(lat=1.0, lng=2.0))
        await feed.broadcast_once()
        snapshot = await asyncio.wait_for(stream.__anext__(), timeout=1)
        await stream.aclose()

        assert [v.vehicle_id for v in snapshot.vehicles] == ["V2"]
        assert feed.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_slow_subscriber_gets_latest_only(self, ingest, query, clock) -> None:
        feed = PushFleetFeed(query, interval_seconds=60)
        stream = feed.subscribe()
        await stream.__anext__()

        await feed.broadcast_once()
        clock.advance(1)
        await ingest.ingest("V1", LocationReportRequest(lat=1.0, lng=2.0))
        latest = await feed.broadcast_once()
        snapshot = await asyncio.wait_for(stream.__anext__(), timeout=1)
        await stream.aclose()

        assert snapshot.generated_at == latest.generated_at
        assert [v.vehicle_id for v in snapshot.vehicles] == ["V1"]

    @pytest.mark.asyncio
    async def test_start_and_stop(self, query) -> None:
        feed = PushFleetFeed(query, interval_seconds=0.01)

        await feed.start()
        await asyncio.sleep(0.05)
        await feed.stop()

        stats = feed.get_stats()
        assert stats["mode"] == "push"
        assert stats["ticks"] >= 1
        assert feed.latest is not None

    @pytest.mark.asyncio
    async def test_stop_without_start(self, query) -> None:
        await PushFleetFeed(query).stop()


class TestFeedConvergence:

    @pytest.mark.asyncio
    async def test_poll_and_push_see_same_vehicles(self, ingest, query, clock) -> None:
        """Оба режима на одном хранилище и часах дают одинаковый набор."""
        polling = PollingFleetFeed(query, interval_seconds=60)
        push = PushFleetFeed(query, interval_seconds=60)
        await ingest.ingest("V1", LocationReportRequest(lat=1.0, lng=2.0))
        clock.advance(25)
        await ingest.ingest("V2", LocationReportRequest(lat=3.0, lng=4.0))
        await ingest.ingest("V3", LocationReportRequest(status="offline"))
        clock.advance(10)

        polled = await polling.poll()
        stream = push.subscribe()
        await stream.__anext__()
        await push.broadcast_once()
        pushed = await asyncio.wait_for(stream.__anext__(), timeout=1)
        await stream.aclose()

        assert [v.vehicle_id for v in polled.vehicles] == ["V2"]
        assert pushed.vehicles == polled.vehicles
