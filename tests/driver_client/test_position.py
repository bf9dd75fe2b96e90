# tests/driver_client/test_position.py
"""
Тесты источников GPS-позиций.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from src.driver_client.position import Position, ReplayPositionSource


class TestPosition:

    def test_speed_conversion(self) -> None:
        assert Position(0, 0, speed_mps=10).speed_kmh == pytest.approx(36.0)

    @pytest.mark.parametrize("speed", [None, 0, -3])
    def test_missing_or_negative_speed(self, speed) -> None:
        assert Position(0, 0, speed_mps=speed).speed_kmh == 0.0


class TestReplayPositionSource:

    @pytest.mark.asyncio
    async def test_replays_points_once(self) -> None:
        points = [Position(1, 1), Position(2, 2)]
        source = ReplayPositionSource(points, interval_seconds=0)

        received = [p async for p in source.watch()]

        assert received == points

    @pytest.mark.asyncio
    async def test_from_json_file(self, tmp_path: Path) -> None:
        track = tmp_path / "track.json"
        track.write_text(json.dumps([
            {"lat": -27.36, "lng": -70.33, "speed": 5},
            {"lat": -27.37, "lng": -70.34},
        ]), encoding="utf-8")

        source = ReplayPositionSource.from_json_file(track, interval_seconds=0)
        received = [p async for p in source.watch()]

        assert received[0].speed_kmh == pytest.approx(18.0)
        assert received[1].speed_mps is None
