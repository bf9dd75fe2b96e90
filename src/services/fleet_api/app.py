# src/services/fleet_api/app.py
"""
FastAPI приложение Fleet API.

REST endpoints:
- GET /health — проверка здоровья
- GET /stats — статистика приёма локаций и соединений (admin)
- /api/auth/*, /api/user — аутентификация
- /api/vehicle-locations, /api/vehicles/{id}/location — GPS-трекинг
- /api/drivers, /api/vehicles, /api/route-slips, /api/payments, /api/audit-logs — реестры

WebSocket endpoints:
- /ws/fleet — push-канал live-карты
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.common.constants import TypeMsg, UserRole
from src.common.logger import log_error, log_info, setup_logging
from src.config import settings
from src.core.tracking import InMemoryLocationStore, LocationStore, RedisLocationStore
from src.infra.database import close_db, get_db, init_db
from src.infra.redis_client import close_redis, init_redis
from src.services.fleet_api import auth_routes, records_routes, tracking_routes
from src.services.fleet_api.auth import require_roles
from src.services.fleet_api.dependencies import (
    cleanup_dependencies,
    get_connection_manager,
    get_fleet_feed,
    get_ingest_service,
    get_location_store,
    init_dependencies,
)
from src.services.fleet_api.repository import FleetRepository
from src.shared.models.common import ErrorResponse, HealthStatus

SERVICE_NAME = "fleet_api"


# === LIFESPAN ===

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Жизненный цикл приложения."""
    # Startup
    setup_logging()
    await log_info(f"Запуск {SERVICE_NAME} ({settings.system.ENVIRONMENT})...", type_msg=TypeMsg.INFO)

    db = await init_db()

    store: LocationStore
    use_redis = settings.tracking.STORE_BACKEND == "redis"
    if use_redis:
        store = RedisLocationStore(await init_redis())
    else:
        store = InMemoryLocationStore()

    await init_dependencies(
        repository=FleetRepository(db, timezone=settings.domain.TIMEZONE),
        store=store,
        tracking=settings.tracking,
    )
    await log_info(
        f"Трекинг: хранилище={store.name}, режим={settings.tracking.DISTRIBUTION_MODE}, "
        f"порог устаревания={settings.tracking.STALE_THRESHOLD_SECONDS} с",
        type_msg=TypeMsg.INFO,
    )

    yield

    # Shutdown
    await log_info(f"Остановка {SERVICE_NAME}...", type_msg=TypeMsg.INFO)
    await cleanup_dependencies()
    if use_redis:
        await close_redis()
    await close_db()


# === APP ===

app = FastAPI(
    title="TaxiNort Fleet API",
    description="GPS-трекинг автопарка, реестры водителей, автомобилей и маршрутных листов.",
    version=settings.system.VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.deployment.FLEET_API_PUBLIC_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def access_log(request: Request, call_next):
    """Лог запросов к /api: метод, путь, статус, длительность."""
    if not request.url.path.startswith("/api"):
        return await call_next(request)

    started = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - started) * 1000
    await log_info(
        f"{request.method} {request.url.path} {response.status_code} in {duration_ms:.0f}ms",
        type_msg=TypeMsg.INFO,
        extra={"status_code": response.status_code, "duration_ms": round(duration_ms, 1)},
    )
    return response


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Непредвиденные ошибки: лог с трейсбеком, клиенту 500."""
    await log_error(
        f"Необработанная ошибка {request.method} {request.url.path}: {exc}",
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(message="Внутренняя ошибка сервера").model_dump(exclude_none=True),
    )


app.include_router(auth_routes.router, prefix="/api")
app.include_router(tracking_routes.router, prefix="/api")
app.include_router(records_routes.router, prefix="/api")
app.include_router(tracking_routes.ws_router)


# === HEALTH CHECK ===

@app.get("/health", response_model=HealthStatus, tags=["Health"])
async def health_check() -> HealthStatus:
    """Проверка здоровья сервиса и зависимостей."""
    dependencies: dict[str, str] = {}

    db = get_db()
    db_ok = db.is_connected and await db.health_check()
    dependencies["postgres"] = "healthy" if db_ok else "unhealthy"

    try:
        store_ok = await get_location_store().health_check()
    except RuntimeError:
        store_ok = False
    dependencies["location_store"] = "healthy" if store_ok else "unhealthy"

    if store_ok and db_ok:
        overall = "healthy"
    elif store_ok:
        # Карта работает без обогащения
        overall = "degraded"
    else:
        overall = "unhealthy"

    return HealthStatus(
        service=SERVICE_NAME,
        status=overall,
        version=settings.system.VERSION,
        dependencies=dependencies,
    )


# === STATS ===

@app.get("/stats", tags=["Stats"], dependencies=[Depends(require_roles(UserRole.ADMIN))])
async def get_stats() -> dict[str, Any]:
    """Статистика приёма локаций, канала рассылки и WebSocket соединений."""
    return {
        "store_backend": get_location_store().name,
        "stale_threshold_seconds": settings.tracking.STALE_THRESHOLD_SECONDS,
        "ingest": get_ingest_service().get_stats(),
        "feed": get_fleet_feed().get_stats(),
        "connections": get_connection_manager().get_stats(),
    }


# === STARTUP ===

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.deployment.FLEET_API_HOST, port=settings.deployment.FLEET_API_PORT)
