# src/shared/__init__.py
"""
Общий код между сервисом и клиентами.

Модули:
- models: общие DTO и Pydantic-модели
"""

__all__: list[str] = []
