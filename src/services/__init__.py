# src/services/__init__.py
"""
Сервисы приложения.

Сервисы:
- fleet_api: REST + WebSocket API флота (аутентификация, реестры,
  приём GPS-отчётов, live-карта)
"""

__all__: list[str] = []
