# src/driver_client/reporter.py
"""
Отправка GPS-отчётов с устройства водителя.

- LocationReporter: хранит последнюю позицию, раз в check_interval проверяет,
  прошло ли min_send_interval с последней успешной отправки
- OfflineSignalHandler: не более одного offline-сигнала за жизненный цикл,
  доставка «выстрелил и забыл»
- DriverTrackingSession: связывает оба и источник позиций
"""

from __future__ import annotations

import asyncio
import time
from typing import Callable

import httpx

from src.common.constants import LocationStatus, TypeMsg
from src.common.logger import log_debug, log_error, log_info, log_warning
from src.driver_client.api_client import FleetApiClient
from src.driver_client.position import Position, PositionSource


class LocationReporter:
    """Троттлинг отправки: частота GPS не влияет на частоту запросов."""

    def __init__(
        self,
        client: FleetApiClient,
        check_interval_seconds: float = 5.0,
        min_send_interval_seconds: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self._check_interval = check_interval_seconds
        self._min_send_interval = min_send_interval_seconds
        self._clock = clock

        self._latest: Position | None = None
        self._last_sent_at: float | None = None
        self._task: asyncio.Task | None = None
        self.sent_count = 0

    @property
    def latest(self) -> Position | None:
        return self._latest

    def update_position(self, position: Position) -> None:
        """Запоминает последнюю позицию без отправки."""
        self._latest = position

    async def tick(self) -> bool:
        """
        Одна проверка цикла. Возвращает True, если отчёт отправлен.

        Время последней отправки сдвигается только при успехе,
        так что после сетевой ошибки повтор будет на следующей проверке.
        """
        position = self._latest
        if position is None:
            return False

        now = self._clock()
        if self._last_sent_at is not None and now - self._last_sent_at < self._min_send_interval:
            return False

        try:
            await self._client.report_location(
                lat=position.lat,
                lng=position.lng,
                speed=position.speed_kmh,
                status=LocationStatus.ACTIVE,
            )
        except (httpx.HTTPError, ValueError) as e:
            await log_warning(f"Не удалось отправить локацию, повтор позже: {e}")
            return False

        self._last_sent_at = now
        self.sent_count += 1
        await log_debug(f"Локация отправлена: {position.lat:.5f}, {position.lng:.5f}")
        return True

    async def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run())

    def cancel(self) -> asyncio.Task | None:
        """Отменяет цикл без ожидания. Возвращает отменённую задачу."""
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
        return task

    async def stop(self) -> None:
        task = self.cancel()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    async def _run(self) -> None:
        while True:
            try:
                await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                await log_error(f"Ошибка цикла отправки локации: {e}", exc_info=True)
            await asyncio.sleep(self._check_interval)


class OfflineSignalHandler:
    """
    Offline-сигнал при выходе или завершении процесса.

    Не более одного сигнала за жизненный цикл. trigger() только планирует
    отправку и сразу возвращается; ошибка доставки логируется и больше
    ни на что не влияет, запись всё равно устареет на сервере.
    """

    def __init__(self, client: FleetApiClient) -> None:
        self._client = client
        self._sent = False
        self._task: asyncio.Task | None = None

    @property
    def sent(self) -> bool:
        return self._sent

    @property
    def pending(self) -> asyncio.Task | None:
        return self._task

    def reset(self) -> None:
        """Новый жизненный цикл (повторный вход)."""
        self._sent = False
        self._task = None

    def trigger(self, reason: str, after: asyncio.Task | None = None) -> bool:
        """
        Планирует отправку offline-отчёта. Вызывается из работающего event loop.

        Args:
            reason: Причина (для лога)
            after: Задача, завершения которой нужно дождаться перед отправкой
                (отменённый цикл отчётов, чтобы active не пришёл после offline)

        Returns:
            True если сигнал запланирован, False если уже был отправлен
        """
        if self._sent:
            return False
        self._sent = True

        # Токен снимается сейчас: выход обнуляет его раньше, чем уйдёт запрос
        token = self._client.token
        self._task = asyncio.get_running_loop().create_task(self._deliver(reason, token, after))
        return True

    async def wait(self, timeout: float = 2.0) -> None:
        """Даёт отправке шанс завершиться перед остановкой процесса."""
        if self._task is None or self._task.done():
            return
        await asyncio.wait({self._task}, timeout=timeout)

    async def _deliver(
        self,
        reason: str,
        token: str | None,
        after: asyncio.Task | None = None,
    ) -> None:
        if after is not None:
            await asyncio.gather(after, return_exceptions=True)
        try:
            await self._client.report_location(
                lat=None,
                lng=None,
                status=LocationStatus.OFFLINE,
                token=token,
            )
            await log_info(f"Offline-сигнал отправлен ({reason})", type_msg=TypeMsg.INFO)
        except (httpx.HTTPError, ValueError) as e:
            await log_debug(f"Offline-сигнал не доставлен ({reason}): {e}")


class DriverTrackingSession:
    """Жизненный цикл трекинга: вход -> отчёты -> выход / завершение."""

    def __init__(
        self,
        client: FleetApiClient,
        source: PositionSource,
        check_interval_seconds: float = 5.0,
        min_send_interval_seconds: float = 10.0,
    ) -> None:
        self.client = client
        self.reporter = LocationReporter(client, check_interval_seconds, min_send_interval_seconds)
        self.offline = OfflineSignalHandler(client)
        self._source = source
        self._watch_task: asyncio.Task | None = None

    async def start(self, email: str, password: str) -> None:
        auth = await self.client.login(email, password)
        await log_info(f"Водитель {auth.user.email} вошёл, трекинг запущен", type_msg=TypeMsg.INFO)
        self.offline.reset()
        self._watch_task = asyncio.create_task(self._watch())
        await self.reporter.start()

    async def logout(self) -> None:
        """Выход: offline-сигнал, затем завершение сессии на сервере."""
        await self._stop_tracking()
        self.offline.trigger("logout")
        try:
            await self.client.logout()
        except httpx.HTTPError as e:
            await log_warning(f"Ошибка выхода: {e}")

    def on_unload(self) -> None:
        """
        Завершение процесса (SIGINT/SIGTERM). Ничего не ждёт: цикл отчётов
        отменяется сразу, offline-сигнал уходит после его завершения.
        """
        self.offline.trigger("unload", after=self.reporter.cancel())

    async def close(self, grace_seconds: float = 2.0) -> None:
        await self._stop_tracking()
        await self.offline.wait(grace_seconds)
        await self.client.close()

    async def _stop_tracking(self) -> None:
        await self.reporter.stop()
        if self._watch_task is not None:
            self._watch_task.cancel()
            await asyncio.gather(self._watch_task, return_exceptions=True)
            self._watch_task = None

    async def _watch(self) -> None:
        try:
            async for position in self._source.watch():
                self.reporter.update_position(position)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # Потеря доступа к GPS не является offline-сигналом
            await log_error(f"Источник GPS остановился: {e}")
