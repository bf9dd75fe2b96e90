# src/core/tracking/staleness.py
"""
Фильтр устаревших отчётов.

Видимость пересчитывается при каждом чтении, хранилище не изменяется.
"""

from __future__ import annotations

import time
from typing import Callable, Iterable

from src.shared.models.location import LocationReport

# Источник текущего времени в миллисекундах epoch
Clock = Callable[[], int]


def now_ms() -> int:
    """Текущее время в миллисекундах epoch."""
    return int(time.time() * 1000)


def is_fresh(report: LocationReport, now: int, threshold_ms: int) -> bool:
    """Запись без timestamp считается устаревшей."""
    if report.timestamp is None:
        return False
    return now - report.timestamp <= threshold_ms


def filter_fresh(
    reports: Iterable[LocationReport],
    now: int,
    threshold_ms: int,
) -> list[LocationReport]:
    """
    Возвращает отчёты, для которых now - timestamp <= threshold_ms.

    Args:
        reports: Срез хранилища
        now: Момент чтения (мс)
        threshold_ms: Порог устаревания (мс)
    """
    return [r for r in reports if is_fresh(r, now, threshold_ms)]
