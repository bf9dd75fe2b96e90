# src/core/tracking/feed.py
"""
Канал распространения live-флота.

Две взаимозаменяемые реализации FleetFeed:
- PollingFleetFeed — срез пересчитывается на каждый запрос
- PushFleetFeed — серверный таймер пересчитывает срез и рассылает подписчикам
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import AsyncIterator

from src.common.constants import TypeMsg
from src.common.logger import log_error, log_info
from src.core.tracking.fleet_query import LiveFleetQuery
from src.shared.models.location import FleetSnapshot


class FleetFeed(ABC):
    """Интерфейс канала: poll() или subscribe()."""

    mode: str = ""

    def __init__(self, query: LiveFleetQuery, interval_seconds: float = 5.0) -> None:
        self._query = query
        self._interval = interval_seconds

    @property
    def interval(self) -> float:
        return self._interval

    async def poll(self) -> FleetSnapshot:
        """Актуальный срез флота."""
        return await self._query.snapshot()

    @abstractmethod
    def subscribe(self) -> AsyncIterator[FleetSnapshot]:
        """Поток срезов с периодом interval."""

    async def start(self) -> None:
        pass

    async def stop(self) -> None:
        pass

    def get_stats(self) -> dict[str, object]:
        return {"mode": self.mode, "interval_seconds": self._interval}


class PollingFleetFeed(FleetFeed):
    """Каждый подписчик сам пересчитывает срез раз в interval."""

    mode = "poll"

    async def subscribe(self) -> AsyncIterator[FleetSnapshot]:
        while True:
            yield await self.poll()
            await asyncio.sleep(self._interval)


class PushFleetFeed(FleetFeed):
    """
    Один таймер на процесс, срез раздаётся всем подписчикам.

    Очередь подписчика хранит только последний срез: медленный
    получатель пропускает промежуточные.
    """

    mode = "push"

    def __init__(self, query: LiveFleetQuery, interval_seconds: float = 5.0) -> None:
        super().__init__(query, interval_seconds)
        self._subscribers: set[asyncio.Queue[FleetSnapshot]] = set()
        self._latest: FleetSnapshot | None = None
        self._task: asyncio.Task | None = None
        self._ticks = 0

    @property
    def latest(self) -> FleetSnapshot | None:
        return self._latest

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._run())
        await log_info(
            f"Push-рассылка флота запущена (каждые {self._interval} с)",
            type_msg=TypeMsg.INFO,
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        await asyncio.gather(self._task, return_exceptions=True)
        self._task = None
        await log_info("Push-рассылка флота остановлена", type_msg=TypeMsg.INFO)

    async def broadcast_once(self) -> FleetSnapshot:
        """Пересчитывает срез и кладёт его в очереди подписчиков."""
        snapshot = await self._query.snapshot()
        self._latest = snapshot
        self._ticks += 1
        for queue in list(self._subscribers):
            self._offer(queue, snapshot)
        return snapshot

    async def subscribe(self) -> AsyncIterator[FleetSnapshot]:
        """Первым приходит последний разосланный срез (или свежий, если рассылки ещё не было)."""
        queue: asyncio.Queue[FleetSnapshot] = asyncio.Queue(maxsize=1)
        queue.put_nowait(self._latest or await self.poll())
        self._subscribers.add(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            self._subscribers.discard(queue)

    def get_stats(self) -> dict[str, object]:
        return {
            **super().get_stats(),
            "subscribers": len(self._subscribers),
            "ticks": self._ticks,
        }

    async def _run(self) -> None:
        while True:
            try:
                await self.broadcast_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                await log_error(f"Ошибка рассылки флота: {e}", exc_info=True)
            await asyncio.sleep(self._interval)

    @staticmethod
    def _offer(queue: asyncio.Queue[FleetSnapshot], snapshot: FleetSnapshot) -> None:
        if queue.full():
            queue.get_nowait()
        queue.put_nowait(snapshot)


def create_feed(mode: str, query: LiveFleetQuery, interval_seconds: float) -> FleetFeed:
    """Фабрика канала по режиму из конфигурации (push | poll)."""
    if mode == "push":
        return PushFleetFeed(query, interval_seconds)
    if mode == "poll":
        return PollingFleetFeed(query, interval_seconds)
    raise ValueError(f"Неизвестный режим рассылки: {mode}")
