# src/config/loader.py
"""
Загрузчик конфигурации проекта.
Единственный источник истины — config/config.json.
Секретные данные переопределяются из переменных окружения.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# ОПРЕДЕЛЕНИЕ ПУТЕЙ
# =============================================================================

def get_project_root() -> Path:
    """Возвращает корневую директорию проекта."""
    return Path(__file__).parent.parent.parent


def get_config_path() -> Path:
    """Возвращает путь к файлу конфигурации."""
    return get_project_root() / "config" / "config.json"


def load_config_json() -> dict[str, Any]:
    """Загружает config.json и возвращает словарь."""
    config_path = get_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Файл конфигурации не найден: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        return json.load(f)


# =============================================================================
# PYDANTIC МОДЕЛИ КОНФИГУРАЦИИ
# =============================================================================

class SystemSettings(BaseModel):
    """Системные настройки."""
    PROJECT_NAME: str = "taxinort"
    VERSION: str = "1.0.0"
    DEBUG: bool = True
    LOG_LEVEL: str = "DEBUG"
    ENVIRONMENT: str = "development"


class DeploymentSettings(BaseModel):
    """Настройки развертывания компонентов."""
    FLEET_API_HOST: str = "0.0.0.0"
    FLEET_API_PORT: int = 8080
    FLEET_API_PUBLIC_URL: str = "http://localhost:8080"


class LoggingSettings(BaseModel):
    """Настройки логирования."""
    LOG_LEVEL: str = "DEBUG"
    LOG_TO_FILE: bool = True
    LOG_FILE_PATH: str = "logs/app.log"
    LOG_FORMAT: str = "colored"
    LOG_MAX_BYTES: int = 10485760
    LOG_BACKUP_COUNT: int = 5


class DomainSettings(BaseModel):
    """Настройки домена и локализации."""
    DOMAIN: str = "taxinort.cl"
    TIMEZONE: str = "America/Santiago"
    DEFAULT_CITY: str = "Copiapó"
    DEFAULT_MAP_CENTER: list[float] = Field(default_factory=lambda: [-27.3668, -70.3319])


class DatabaseSettings(BaseModel):
    """Настройки PostgreSQL."""
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "taxinort"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_MIN_POOL_SIZE: int = 5
    DB_MAX_POOL_SIZE: int = 20
    DB_COMMAND_TIMEOUT: int = 60
    DB_RETRY_ATTEMPTS: int = 3
    DB_RETRY_DELAY: float = 1.0

    @field_validator("DB_PASSWORD", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает пароль из переменных окружения."""
        if not v:
            return os.getenv("DB_PASSWORD", "")
        return v

    @property
    def dsn(self) -> str:
        """Возвращает DSN для подключения к PostgreSQL."""
        return (
            f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )


class RedisSettings(BaseModel):
    """Настройки Redis."""
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ""
    REDIS_NAMESPACE: str = "taxinort"
    REDIS_MAX_CONNECTIONS: int = 50

    @field_validator("REDIS_PASSWORD", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает пароль из переменных окружения."""
        if not v:
            return os.getenv("REDIS_PASSWORD", "")
        return v

    @property
    def url(self) -> str:
        """Возвращает URL для подключения к Redis."""
        auth = f":{self.REDIS_PASSWORD}@" if self.REDIS_PASSWORD else ""
        return f"redis://{auth}{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"


class AuthSettings(BaseModel):
    """Настройки аутентификации (JWT)."""
    JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_DAYS: int = 30
    AUTH_COOKIE_NAME: str = "token"
    AUTH_COOKIE_SECURE: bool = False

    @field_validator("JWT_SECRET", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает секрет из переменных окружения."""
        if not v:
            return os.getenv("JWT_SECRET", "taxinort_jwt_secret")
        return v


class TrackingSettings(BaseModel):
    """Настройки GPS-трекинга."""
    # Единый порог устаревания для всех путей чтения и для очистки
    STALE_THRESHOLD_SECONDS: int = 30
    STORE_BACKEND: str = "memory"  # memory, redis
    DISTRIBUTION_MODE: str = "push"  # push, poll
    BROADCAST_INTERVAL_SECONDS: float = 5.0
    POLL_INTERVAL_SECONDS: float = 5.0
    SWEEP_INTERVAL_SECONDS: float = 60.0  # 0 — очистка отключена
    CLIENT_CHECK_INTERVAL_SECONDS: float = 5.0
    CLIENT_MIN_SEND_INTERVAL_SECONDS: float = 10.0

    @field_validator("STORE_BACKEND")
    @classmethod
    def check_backend(cls, v: str) -> str:
        """Проверяет тип хранилища."""
        if v not in ("memory", "redis"):
            raise ValueError(f"Неизвестный STORE_BACKEND: {v}")
        return v

    @field_validator("DISTRIBUTION_MODE")
    @classmethod
    def check_mode(cls, v: str) -> str:
        """Проверяет режим рассылки."""
        if v not in ("push", "poll"):
            raise ValueError(f"Неизвестный DISTRIBUTION_MODE: {v}")
        return v


# =============================================================================
# ГЛАВНЫЙ КЛАСС НАСТРОЕК
# =============================================================================

class Settings(BaseSettings):
    """
    Главный класс настроек приложения.
    Агрегирует все секции конфигурации.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    system: SystemSettings = Field(default_factory=SystemSettings)
    deployment: DeploymentSettings = Field(default_factory=DeploymentSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    domain: DomainSettings = Field(default_factory=DomainSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    tracking: TrackingSettings = Field(default_factory=TrackingSettings)

    @classmethod
    def from_config_json(cls) -> "Settings":
        """
        Создаёт объект Settings из config.json.
        Секреты переопределяются из переменных окружения.
        """
        config_data = load_config_json()

        # Фильтруем комментарии (ключи, начинающиеся с _comment_)
        filtered_data = {k: v for k, v in config_data.items() if not k.startswith("_comment_")}

        return cls(
            system=SystemSettings(
                PROJECT_NAME=filtered_data.get("PROJECT_NAME", "taxinort"),
                VERSION=filtered_data.get("VERSION", "1.0.0"),
                DEBUG=filtered_data.get("DEBUG", True),
                LOG_LEVEL=filtered_data.get("LOG_LEVEL", "DEBUG"),
                ENVIRONMENT=os.getenv("ENVIRONMENT", filtered_data.get("ENVIRONMENT", "development")),
            ),
            deployment=DeploymentSettings(
                FLEET_API_HOST=filtered_data.get("FLEET_API_HOST", "0.0.0.0"),
                FLEET_API_PORT=int(os.getenv("PORT", filtered_data.get("FLEET_API_PORT", 8080))),
                FLEET_API_PUBLIC_URL=os.getenv(
                    "FLEET_API_PUBLIC_URL",
                    filtered_data.get("FLEET_API_PUBLIC_URL", "http://localhost:8080"),
                ),
            ),
            logging=LoggingSettings(
                LOG_LEVEL=filtered_data.get("LOG_LEVEL", "DEBUG"),
                LOG_TO_FILE=filtered_data.get("LOG_TO_FILE", True),
                LOG_FILE_PATH=filtered_data.get("LOG_FILE_PATH", "logs/app.log"),
                LOG_FORMAT=filtered_data.get("LOG_FORMAT", "colored"),
                LOG_MAX_BYTES=filtered_data.get("LOG_MAX_BYTES", 10485760),
                LOG_BACKUP_COUNT=filtered_data.get("LOG_BACKUP_COUNT", 5),
            ),
            domain=DomainSettings(
                DOMAIN=filtered_data.get("DOMAIN", "taxinort.cl"),
                TIMEZONE=filtered_data.get("TIMEZONE", "America/Santiago"),
                DEFAULT_CITY=filtered_data.get("DEFAULT_CITY", "Copiapó"),
                DEFAULT_MAP_CENTER=filtered_data.get("DEFAULT_MAP_CENTER", [-27.3668, -70.3319]),
            ),
            database=DatabaseSettings(
                DB_HOST=os.getenv("DB_HOST", filtered_data.get("DB_HOST", "localhost")),
                DB_PORT=int(os.getenv("DB_PORT", filtered_data.get("DB_PORT", 5432))),
                DB_NAME=os.getenv("DB_NAME", filtered_data.get("DB_NAME", "taxinort")),
                DB_USER=os.getenv("DB_USER", filtered_data.get("DB_USER", "postgres")),
                DB_PASSWORD=os.getenv("DB_PASSWORD", filtered_data.get("DB_PASSWORD", "")),
                DB_MIN_POOL_SIZE=filtered_data.get("DB_MIN_POOL_SIZE", 5),
                DB_MAX_POOL_SIZE=filtered_data.get("DB_MAX_POOL_SIZE", 20),
                DB_COMMAND_TIMEOUT=filtered_data.get("DB_COMMAND_TIMEOUT", 60),
                DB_RETRY_ATTEMPTS=filtered_data.get("DB_RETRY_ATTEMPTS", 3),
                DB_RETRY_DELAY=filtered_data.get("DB_RETRY_DELAY", 1.0),
            ),
            redis=RedisSettings(
                REDIS_HOST=os.getenv("REDIS_HOST", filtered_data.get("REDIS_HOST", "localhost")),
                REDIS_PORT=int(os.getenv("REDIS_PORT", filtered_data.get("REDIS_PORT", 6379))),
                REDIS_DB=filtered_data.get("REDIS_DB", 0),
                REDIS_PASSWORD=os.getenv("REDIS_PASSWORD", filtered_data.get("REDIS_PASSWORD", "")),
                REDIS_NAMESPACE=filtered_data.get("REDIS_NAMESPACE", "taxinort"),
                REDIS_MAX_CONNECTIONS=filtered_data.get("REDIS_MAX_CONNECTIONS", 50),
            ),
            auth=AuthSettings(
                JWT_SECRET=os.getenv("JWT_SECRET", filtered_data.get("JWT_SECRET", "")),
                JWT_ALGORITHM=filtered_data.get("JWT_ALGORITHM", "HS256"),
                JWT_EXPIRES_DAYS=filtered_data.get("JWT_EXPIRES_DAYS", 30),
                AUTH_COOKIE_NAME=filtered_data.get("AUTH_COOKIE_NAME", "token"),
                AUTH_COOKIE_SECURE=filtered_data.get("AUTH_COOKIE_SECURE", False),
            ),
            tracking=TrackingSettings(
                STALE_THRESHOLD_SECONDS=filtered_data.get("TRACKING_STALE_THRESHOLD_SECONDS", 30),
                STORE_BACKEND=os.getenv(
                    "TRACKING_STORE_BACKEND",
                    filtered_data.get("TRACKING_STORE_BACKEND", "memory"),
                ),
                DISTRIBUTION_MODE=filtered_data.get("TRACKING_DISTRIBUTION_MODE", "push"),
                BROADCAST_INTERVAL_SECONDS=filtered_data.get("TRACKING_BROADCAST_INTERVAL_SECONDS", 5.0),
                POLL_INTERVAL_SECONDS=filtered_data.get("TRACKING_POLL_INTERVAL_SECONDS", 5.0),
                SWEEP_INTERVAL_SECONDS=filtered_data.get("TRACKING_SWEEP_INTERVAL_SECONDS", 60.0),
                CLIENT_CHECK_INTERVAL_SECONDS=filtered_data.get("TRACKING_CLIENT_CHECK_INTERVAL_SECONDS", 5.0),
                CLIENT_MIN_SEND_INTERVAL_SECONDS=filtered_data.get("TRACKING_CLIENT_MIN_SEND_INTERVAL_SECONDS", 10.0),
            ),
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Возвращает синглтон настроек приложения.
    Использует кэширование для производительности.
    """
    from dotenv import load_dotenv

    # Загружаем .env файл
    env_path = get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return Settings.from_config_json()


# Экспорт синглтона для удобного импорта
settings = get_settings()
