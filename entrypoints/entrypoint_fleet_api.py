#!/usr/bin/env python3
"""
Entrypoint для Fleet API.

Запуск:
    python entrypoints/entrypoint_fleet_api.py

Порт по умолчанию: 8080 (FLEET_API_PORT или PORT)
"""

import sys
from pathlib import Path

# Добавляем корневую директорию проекта в путь
project_root = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(project_root))

import uvicorn

from src.config import settings


def main() -> None:
    """Запустить Fleet API."""
    uvicorn.run(
        "src.services.fleet_api.app:app",
        host=settings.deployment.FLEET_API_HOST,
        port=settings.deployment.FLEET_API_PORT,
        reload=settings.system.DEBUG,
        log_level=settings.system.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
