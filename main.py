#!/usr/bin/env python3
# main.py
"""
Главная точка входа TaxiNort.
Запускает Fleet API или клиент водителя в зависимости от аргументов.

    python main.py fleet_api
    python main.py driver_client

Режим также берётся из переменной окружения COMPONENT_MODE (для Docker).
"""

from __future__ import annotations

import asyncio
import os
import signal
import sys
from typing import Callable

from src.config import settings
from src.common.logger import setup_logging, log_info, log_error
from src.common.constants import TypeMsg


VALID_MODES = ("fleet_api", "driver_client")

# Глобальный флаг для graceful shutdown
_shutdown_event: asyncio.Event | None = None
_on_shutdown: list[Callable[[], None]] = []


def setup_signal_handlers() -> None:
    """Настраивает обработчики сигналов для graceful shutdown."""
    global _shutdown_event
    _shutdown_event = asyncio.Event()

    def signal_handler(sig: int) -> None:
        """Обработчик сигналов SIGINT и SIGTERM."""
        if _shutdown_event and not _shutdown_event.is_set():
            print(f"\nПолучен сигнал остановки (sig={sig}), завершаем работу...")
            for callback in _on_shutdown:
                callback()
            _shutdown_event.set()

    try:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda s=sig: signal_handler(s))
    except NotImplementedError:
        # Windows не поддерживает add_signal_handler
        signal.signal(signal.SIGINT, lambda s, f: signal_handler(s))
        signal.signal(signal.SIGTERM, lambda s, f: signal_handler(s))


async def run_fleet_api() -> None:
    """Запускает Fleet API (трекинг, реестры, WebSocket карты)."""
    import uvicorn

    await log_info(
        f"Запуск Fleet API на порту {settings.deployment.FLEET_API_PORT}...",
        type_msg=TypeMsg.INFO
    )

    config = uvicorn.Config(
        "src.services.fleet_api.app:app",
        host=settings.deployment.FLEET_API_HOST,
        port=settings.deployment.FLEET_API_PORT,
        log_level="debug" if settings.system.DEBUG else "info",
    )

    server = uvicorn.Server(config)
    # uvicorn ставит собственные обработчики сигналов
    await server.serve()


async def run_driver_client() -> None:
    """
    Запускает клиент водителя.

    Переменные окружения:
        DRIVER_EMAIL, DRIVER_PASSWORD — учётные данные водителя
        DRIVER_TRACK_FILE — JSON-трек для ReplayPositionSource
    """
    from src.driver_client import DriverTrackingSession, FleetApiClient, ReplayPositionSource

    email = os.getenv("DRIVER_EMAIL", "")
    password = os.getenv("DRIVER_PASSWORD", "")
    track_file = os.getenv("DRIVER_TRACK_FILE", "")
    if not (email and password and track_file):
        await log_error("Укажите DRIVER_EMAIL, DRIVER_PASSWORD и DRIVER_TRACK_FILE")
        return

    session = DriverTrackingSession(
        client=FleetApiClient(),
        source=ReplayPositionSource.from_json_file(track_file, interval_seconds=1.0, loop=True),
        check_interval_seconds=settings.tracking.CLIENT_CHECK_INTERVAL_SECONDS,
        min_send_interval_seconds=settings.tracking.CLIENT_MIN_SEND_INTERVAL_SECONDS,
    )
    # Завершение процесса = выгрузка страницы
    _on_shutdown.append(session.on_unload)

    try:
        await session.start(email, password)
        if _shutdown_event:
            await _shutdown_event.wait()
    finally:
        await session.close()
        await log_info("Клиент водителя остановлен", type_msg=TypeMsg.INFO)


def resolve_mode(argv: list[str]) -> str | None:
    """Режим из аргумента командной строки или COMPONENT_MODE."""
    mode = argv[1] if len(argv) > 1 else os.getenv("COMPONENT_MODE", "")
    return mode if mode in VALID_MODES else None


async def main(mode: str | None = None) -> None:
    """
    Главная функция запуска.

    Args:
        mode: Режим запуска (fleet_api, driver_client).
    """
    setup_logging()

    mode = mode or resolve_mode(sys.argv)
    if mode is None:
        await log_error(f"Неизвестный режим. Допустимые: {', '.join(VALID_MODES)}")
        sys.exit(2)

    await log_info(
        f"TaxiNort v{settings.system.VERSION} — запуск в режиме '{mode}'",
        type_msg=TypeMsg.INFO
    )

    if mode == "fleet_api":
        await run_fleet_api()
    elif mode == "driver_client":
        setup_signal_handlers()
        await run_driver_client()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nОстановлено пользователем")
