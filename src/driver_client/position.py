# src/driver_client/position.py
"""
Источники GPS-позиций для клиента водителя.
"""

from __future__ import annotations

import asyncio
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Iterable


@dataclass(frozen=True)
class Position:
    """Показание GPS. speed_mps — скорость в м/с, None если приёмник её не отдаёт."""
    lat: float
    lng: float
    speed_mps: float | None = None

    @property
    def speed_kmh(self) -> float:
        if not self.speed_mps or self.speed_mps < 0:
            return 0.0
        return self.speed_mps * 3.6


class PositionSource(ABC):
    """Поток показаний GPS (аналог watchPosition)."""

    @abstractmethod
    def watch(self) -> AsyncIterator[Position]:
        """Асинхронный поток позиций."""


class ReplayPositionSource(PositionSource):
    """
    Проигрывает заранее записанный трек с фиксированным шагом.

    Используется для стендов и проверки без реального приёмника.
    """

    def __init__(self, points: Iterable[Position], interval_seconds: float = 1.0, loop: bool = False) -> None:
        self._points = list(points)
        self._interval = interval_seconds
        self._loop = loop

    @classmethod
    def from_json_file(cls, path: str | Path, **kwargs) -> "ReplayPositionSource":
        """Файл: [{"lat": ..., "lng": ..., "speed": <м/с>}, ...]."""
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        points = [Position(lat=p["lat"], lng=p["lng"], speed_mps=p.get("speed")) for p in raw]
        return cls(points, **kwargs)

    async def watch(self) -> AsyncIterator[Position]:
        while True:
            for point in self._points:
                yield point
                await asyncio.sleep(self._interval)
            if not self._loop:
                return
