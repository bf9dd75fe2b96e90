# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.
"""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path
from typing import Any, Callable, Generator
from unittest.mock import AsyncMock, MagicMock

import pytest

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("DB_PASSWORD", "test_password")
os.environ.setdefault("REDIS_PASSWORD", "")
os.environ.setdefault("JWT_SECRET", "test_jwt_secret")

from src.common.constants import UserRole
from src.config.loader import TrackingSettings
from src.core.tracking import InMemoryLocationStore
from src.shared.models.fleet import UserRecord
from src.shared.models.location import VehicleInfo


# =============================================================================
# ФИКСТУРЫ КОНФИГУРАЦИИ
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def config_path(project_root: Path) -> Path:
    """Путь к файлу конфигурации."""
    return project_root / "config" / "config.json"


@pytest.fixture
def mock_config() -> dict[str, Any]:
    """Мок конфигурации для тестов."""
    return {
        "PROJECT_NAME": "taxinort_test",
        "VERSION": "1.0.0-test",
        "DEBUG": True,
        "LOG_LEVEL": "DEBUG",
        "ENVIRONMENT": "test",
        "LOG_TO_FILE": False,
        "LOG_FILE_PATH": "logs/test.log",
        "LOG_FORMAT": "colored",
        "FLEET_API_HOST": "127.0.0.1",
        "FLEET_API_PORT": 8181,
        "DOMAIN": "test.taxinort.cl",
        "TIMEZONE": "America/Santiago",
        "DEFAULT_CITY": "Copiapó",
        "DB_HOST": "localhost",
        "DB_PORT": 5432,
        "DB_NAME": "taxinort_test",
        "DB_USER": "postgres",
        "DB_MIN_POOL_SIZE": 2,
        "DB_MAX_POOL_SIZE": 5,
        "DB_COMMAND_TIMEOUT": 30,
        "REDIS_HOST": "localhost",
        "REDIS_PORT": 6379,
        "REDIS_DB": 1,
        "REDIS_NAMESPACE": "taxinort_test",
        "REDIS_MAX_CONNECTIONS": 10,
        "JWT_EXPIRES_DAYS": 30,
        "TRACKING_STALE_THRESHOLD_SECONDS": 30,
        "TRACKING_STORE_BACKEND": "memory",
        "TRACKING_DISTRIBUTION_MODE": "poll",
        "TRACKING_BROADCAST_INTERVAL_SECONDS": 1.0,
        "TRACKING_POLL_INTERVAL_SECONDS": 1.0,
        "TRACKING_SWEEP_INTERVAL_SECONDS": 0,
    }


@pytest.fixture
def temp_config_file(tmp_path: Path, mock_config: dict[str, Any]) -> Path:
    """Создаёт временный файл конфигурации."""
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps(mock_config, ensure_ascii=False, indent=2), encoding="utf-8")
    return config_file


# =============================================================================
# ФИКСТУРЫ ИНФРАСТРУКТУРЫ (МОКИ)
# =============================================================================

@pytest.fixture
def mock_db() -> AsyncMock:
    """Мок менеджера базы данных."""
    db = AsyncMock()
    db.fetchrow = AsyncMock(return_value=None)
    db.fetch = AsyncMock(return_value=[])
    db.execute = AsyncMock(return_value="INSERT 0 1")
    db.fetchval = AsyncMock(return_value=None)
    return db


@pytest.fixture
def mock_redis() -> AsyncMock:
    """Мок RedisClient (hash-операции хранилища локаций)."""
    redis = AsyncMock()
    redis.hset = AsyncMock(return_value=1)
    redis.hgetall = AsyncMock(return_value={})
    redis.eval = AsyncMock(return_value=0)
    redis.health_check = AsyncMock(return_value=True)
    return redis


# =============================================================================
# ТРЕКИНГ
# =============================================================================

class FakeClock:
    """Управляемые часы в миллисекундах epoch."""

    def __init__(self, now_ms: int = 1_700_000_000_000) -> None:
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, seconds: float) -> None:
        self.now_ms += int(seconds * 1000)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store() -> InMemoryLocationStore:
    return InMemoryLocationStore()


@pytest.fixture
def tracking_settings() -> TrackingSettings:
    """Режим poll без фоновой очистки: в тестах нет фоновых задач."""
    return TrackingSettings(
        STALE_THRESHOLD_SECONDS=30,
        STORE_BACKEND="memory",
        DISTRIBUTION_MODE="poll",
        POLL_INTERVAL_SECONDS=0.05,
        BROADCAST_INTERVAL_SECONDS=0.05,
        SWEEP_INTERVAL_SECONDS=0,
    )


# =============================================================================
# ПОЛЬЗОВАТЕЛИ И РЕПОЗИТОРИЙ
# =============================================================================

@pytest.fixture
def users() -> dict[str, UserRecord]:
    """Пользователи по ролям (пароль у всех не проверяется, хеш-заглушка)."""
    return {
        role.value: UserRecord(
            id=f"user-{role.value}",
            email=f"{role.value}@taxinort.cl",
            name=f"Test {role.value}",
            role=role,
            password="not-a-hash",
        )
        for role in UserRole
    }


@pytest.fixture
def fake_repository(users: dict[str, UserRecord]) -> MagicMock:
    """
    Мок FleetRepository.

    Водитель user-driver закреплён за автомобилем V1.
    """
    by_id = {u.id: u for u in users.values()}
    by_email = {u.email: u for u in users.values()}

    repository = MagicMock()
    repository.get_user_by_id = AsyncMock(side_effect=lambda user_id: by_id.get(user_id))
    repository.get_user_by_email = AsyncMock(side_effect=lambda email: by_email.get(email))
    repository.get_vehicle_id_for_user = AsyncMock(
        side_effect=lambda user_id: "V1" if user_id == "user-driver" else None
    )
    repository.get_vehicle_info = AsyncMock(side_effect=lambda ids: {
        vid: VehicleInfo(
            vehicle_id=vid,
            plate=f"PL-{vid}",
            model="Toyota Yaris",
            driver_name="Juan Pérez",
            is_paid=vid == "V1",
        )
        for vid in ids
    })
    repository.add_audit_log = AsyncMock(return_value=None)
    return repository


@pytest.fixture
def fleet_app(
    fake_repository: MagicMock,
    memory_store: InMemoryLocationStore,
    tracking_settings: TrackingSettings,
    clock: FakeClock,
) -> Generator[Any, None, None]:
    """
    Приложение fleet_api с внедрёнными зависимостями (без lifespan:
    TestClient создаётся без контекстного менеджера).
    """
    from src.services.fleet_api.app import app
    from src.services.fleet_api.dependencies import cleanup_dependencies, init_dependencies

    asyncio.run(init_dependencies(fake_repository, memory_store, tracking_settings, clock=clock))
    yield app
    asyncio.run(cleanup_dependencies())


@pytest.fixture
def auth_headers() -> Callable[[str], dict[str, str]]:
    """Фабрика заголовка Authorization для пользователя."""
    from src.services.fleet_api.auth import create_access_token

    def make(user_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}

    return make
