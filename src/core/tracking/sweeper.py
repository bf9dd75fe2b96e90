# src/core/tracking/sweeper.py
"""
Периодическая очистка устаревших записей локации.
"""

from __future__ import annotations

import asyncio

from src.common.constants import TypeMsg
from src.common.logger import log_error, log_info
from src.core.tracking.ingest import LocationIngestService


class LocationSweeper:
    """Фоновая задача, вызывающая ingest.sweep() раз в interval секунд."""

    def __init__(self, ingest: LocationIngestService, interval_seconds: float) -> None:
        self._ingest = ingest
        self._interval = interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def enabled(self) -> bool:
        return self._interval > 0

    @property
    def running(self) -> bool:
        return self._task is not None

    async def start(self) -> None:
        if not self.enabled or self._task is not None:
            return
        self._task = asyncio.create_task(self._run())
        await log_info(f"Очистка локаций запущена (каждые {self._interval} с)", type_msg=TypeMsg.INFO)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        await asyncio.gather(self._task, return_exceptions=True)
        self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self._ingest.sweep()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                await log_error(f"Ошибка очистки локаций: {e}")
