#!/usr/bin/env python3
"""
Entrypoint для клиента водителя (GPS-трекер).

Запуск:
    DRIVER_EMAIL=... DRIVER_PASSWORD=... DRIVER_TRACK_FILE=track.json \
        python entrypoints/entrypoint_driver_client.py

Ctrl+C / SIGTERM отправляет offline-сигнал перед выходом.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

# Добавляем корневую директорию проекта в путь
project_root = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(project_root))

from main import main


if __name__ == "__main__":
    try:
        asyncio.run(main(mode="driver_client"))
    except KeyboardInterrupt:
        print("\nПолучен сигнал остановки, завершение работы...")
