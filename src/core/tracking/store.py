# src/core/tracking/store.py
"""
Хранилище последних GPS-отчётов: vehicle_id -> последний отчёт.

Last-write-wins, история не хранится. Две реализации:
- InMemoryLocationStore — словарь в памяти процесса
- RedisLocationStore — hash в Redis, общий для нескольких процессов
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod

from pydantic import ValidationError
from redis.exceptions import RedisError

from src.common.constants import VEHICLE_LOCATIONS_KEY
from src.common.logger import log_warning
from src.core.tracking.errors import LocationStoreUnavailable
from src.core.tracking.staleness import is_fresh
from src.infra.redis_client import RedisClient
from src.shared.models.location import LocationReport

# KEYS[1] — hash локаций, ARGV[1] — now (мс), ARGV[2] — порог (мс).
# Запись без timestamp или нечитаемая считается устаревшей.
_REMOVE_STALE_SCRIPT = """
local now = tonumber(ARGV[1])
local threshold = tonumber(ARGV[2])
local entries = redis.call('HGETALL', KEYS[1])
local removed = 0
for i = 1, #entries, 2 do
    local ok, report = pcall(cjson.decode, entries[i + 1])
    local ts = nil
    if ok and type(report) == 'table' then
        ts = tonumber(report['timestamp'])
    end
    if ts == nil or now - ts > threshold then
        removed = removed + redis.call('HDEL', KEYS[1], entries[i])
    end
end
return removed
"""


class LocationStore(ABC):
    """Интерфейс хранилища последних отчётов."""

    name: str = "location_store"

    @abstractmethod
    async def put(self, report: LocationReport) -> None:
        """Заменяет запись автомобиля report.vehicle_id."""

    @abstractmethod
    async def snapshot(self) -> list[LocationReport]:
        """Полный срез хранилища (копия)."""

    @abstractmethod
    async def remove_if_stale(self, now: int, threshold_ms: int) -> int:
        """
        Физически удаляет записи, устаревшие на момент now.

        Проверка и удаление выполняются атомарно: запись, обновлённая
        после начала очистки, не удаляется. Возвращает число удалённых.
        """

    async def health_check(self) -> bool:
        return True


class InMemoryLocationStore(LocationStore):
    """
    Хранилище в памяти процесса.

    Запись по одному ключу, чтение копирует словарь под тем же локом,
    так что читатель держит лок только на время копирования.
    """

    name = "memory"

    def __init__(self) -> None:
        self._reports: dict[str, LocationReport] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._reports)

    async def put(self, report: LocationReport) -> None:
        with self._lock:
            self._reports[report.vehicle_id] = report

    async def snapshot(self) -> list[LocationReport]:
        with self._lock:
            return list(self._reports.values())

    async def remove_if_stale(self, now: int, threshold_ms: int) -> int:
        with self._lock:
            stale_ids = [
                vehicle_id
                for vehicle_id, report in self._reports.items()
                if not is_fresh(report, now, threshold_ms)
            ]
            for vehicle_id in stale_ids:
                del self._reports[vehicle_id]
        return len(stale_ids)


class RedisLocationStore(LocationStore):
    """
    Хранилище в Redis hash (поле = vehicle_id, значение = JSON отчёта).

    HSET одного поля атомарен, поэтому писатели разных автомобилей
    не конфликтуют. Повреждённые записи пропускаются при чтении.
    """

    name = "redis"

    def __init__(self, redis: RedisClient, key: str = VEHICLE_LOCATIONS_KEY) -> None:
        self._redis = redis
        self._key = key

    async def put(self, report: LocationReport) -> None:
        try:
            await self._redis.hset(self._key, report.vehicle_id, report.model_dump_json())
        except (RedisError, RuntimeError) as e:
            raise LocationStoreUnavailable(str(e)) from e

    async def snapshot(self) -> list[LocationReport]:
        try:
            raw = await self._redis.hgetall(self._key)
        except (RedisError, RuntimeError) as e:
            raise LocationStoreUnavailable(str(e)) from e

        reports: list[LocationReport] = []
        for vehicle_id, payload in raw.items():
            try:
                reports.append(LocationReport.model_validate_json(payload))
            except ValidationError:
                await log_warning(
                    f"Пропущена повреждённая запись локации: {vehicle_id}",
                    extra={"vehicle_id": vehicle_id},
                )
        return reports

    async def remove_if_stale(self, now: int, threshold_ms: int) -> int:
        """Проверка timestamp и HDEL в одном Lua-скрипте на стороне Redis."""
        try:
            removed = await self._redis.eval(
                _REMOVE_STALE_SCRIPT, [self._key], [now, threshold_ms],
            )
        except (RedisError, RuntimeError) as e:
            raise LocationStoreUnavailable(str(e)) from e
        return int(removed or 0)

    async def health_check(self) -> bool:
        return await self._redis.health_check()
