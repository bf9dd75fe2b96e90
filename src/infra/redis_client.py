# src/infra/redis_client.py
"""
Клиент Redis.
Используется как общее (межпроцессное) хранилище последних GPS-отчётов.
"""

from __future__ import annotations

from typing import Any

import redis.asyncio as redis

from src.common.logger import log_error, log_info
from src.common.constants import TypeMsg


class RedisClient:
    """
    Асинхронный клиент Redis с namespace для ключей.

    Только hash-операции: по одному полю на автомобиль.
    """

    def __init__(self, namespace: str = "taxinort") -> None:
        self._client: redis.Redis | None = None
        self._namespace = namespace

    @property
    def client(self) -> redis.Redis:
        """Возвращает клиент Redis."""
        if self._client is None:
            raise RuntimeError("Redis клиент не инициализирован. Вызовите connect() сначала.")
        return self._client

    def _make_key(self, key: str) -> str:
        """Добавляет namespace к ключу."""
        return f"{self._namespace}:{key}"

    async def connect(
        self,
        url: str | None = None,
        max_connections: int = 50,
    ) -> None:
        """
        Подключается к Redis.

        Args:
            url: URL Redis (если None, берётся из конфига)
            max_connections: Максимальное количество соединений
        """
        if self._client is not None:
            return

        if url is None:
            from src.config import settings
            url = settings.redis.url
            max_connections = settings.redis.REDIS_MAX_CONNECTIONS
            self._namespace = settings.redis.REDIS_NAMESPACE

        await log_info("Подключение к Redis...", type_msg=TypeMsg.INFO)

        self._client = redis.from_url(
            url,
            max_connections=max_connections,
            decode_responses=True,
        )

        await self._client.ping()

        await log_info("Подключение к Redis установлено", type_msg=TypeMsg.INFO)

    async def disconnect(self) -> None:
        """Закрывает соединение с Redis."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            await log_info("Соединение с Redis закрыто", type_msg=TypeMsg.INFO)

    # =========================================================================
    # HASH ОПЕРАЦИИ
    # =========================================================================

    async def hset(self, name: str, key: str, value: str) -> int:
        """Устанавливает одно поле хеша (атомарно на уровне поля)."""
        return await self.client.hset(self._make_key(name), key, value)

    async def hgetall(self, name: str) -> dict[str, str]:
        """Получает все поля хеша."""
        return await self.client.hgetall(self._make_key(name))

    # =========================================================================
    # СКРИПТЫ
    # =========================================================================

    async def eval(self, script: str, keys: list[str], args: list) -> Any:
        """Выполняет Lua-скрипт атомарно. Ключи получают namespace."""
        full_keys = [self._make_key(k) for k in keys]
        return await self.client.eval(script, len(full_keys), *full_keys, *args)

    # =========================================================================
    # HEALTH CHECK
    # =========================================================================

    async def health_check(self) -> bool:
        """Проверяет здоровье подключения к Redis."""
        try:
            return await self.client.ping()
        except Exception as e:
            await log_error(f"Health check Redis failed: {e}")
            return False


_redis_client: RedisClient | None = None


def get_redis() -> RedisClient:
    """Возвращает глобальный экземпляр RedisClient."""
    global _redis_client
    if _redis_client is None:
        _redis_client = RedisClient()
    return _redis_client


async def init_redis() -> RedisClient:
    """Инициализирует подключение к Redis по настройкам из конфигурации."""
    from src.config import settings

    redis_client = get_redis()
    redis_client._namespace = settings.redis.REDIS_NAMESPACE
    await redis_client.connect(
        url=settings.redis.url,
        max_connections=settings.redis.REDIS_MAX_CONNECTIONS,
    )
    return redis_client


async def close_redis() -> None:
    """Закрывает подключение к Redis."""
    await get_redis().disconnect()

