# tests/services/test_repository.py
"""
Тесты FleetRepository (SQL через мок DatabaseManager).
"""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.common.constants import PaymentMethod, UserRole
from src.services.fleet_api.repository import FleetRepository
from src.shared.models.fleet import (
    CreatePaymentRequest,
    CreateRouteSlipRequest,
    CreateVehicleRequest,
)

CREATED = datetime(2024, 6, 1, tzinfo=timezone.utc)


@pytest.fixture
def repository(mock_db: AsyncMock) -> FleetRepository:
    return FleetRepository(mock_db, timezone="America/Santiago")


@pytest.fixture
def tx_conn(mock_db: AsyncMock) -> AsyncMock:
    """Соединение внутри db.transaction()."""
    conn = AsyncMock()
    mock_db.transaction = MagicMock()
    mock_db.transaction.return_value.__aenter__.return_value = conn
    mock_db.transaction.return_value.__aexit__.return_value = None
    return conn


class TestUsers:

    @pytest.mark.asyncio
    async def test_get_user_by_email(self, repository: FleetRepository, mock_db: AsyncMock) -> None:
        mock_db.fetchrow.return_value = {
            "id": "u1", "email": "admin@taxinort.cl", "name": "Admin",
            "role": "admin", "password": "$2b$10$hash", "created_at": CREATED,
        }

        user = await repository.get_user_by_email("Admin@TaxiNort.cl")

        assert user is not None
        assert user.role == UserRole.ADMIN
        assert user.public().model_dump().get("password") is None
        assert "lower(email)" in mock_db.fetchrow.call_args[0][0]

    @pytest.mark.asyncio
    async def test_get_user_not_found(self, repository: FleetRepository) -> None:
        assert await repository.get_user_by_id("missing") is None

    @pytest.mark.asyncio
    async def test_create_user_generates_uuid(self, repository: FleetRepository, mock_db: AsyncMock) -> None:
        mock_db.fetchrow.side_effect = lambda sql, *args: {
            "id": args[0], "email": args[1], "password": args[2], "name": args[3], "role": args[4],
        }

        user = await repository.create_user("d@taxinort.cl", "hash", "Driver")

        assert len(user.id) == 36
        assert user.role == UserRole.DRIVER


class TestVehicles:

    @pytest.mark.asyncio
    async def test_create_vehicle_uppercases_plate(self, repository: FleetRepository, mock_db: AsyncMock) -> None:
        mock_db.fetchrow.return_value = {
            "id": "v1", "plate": "ABCD12", "model": "Yaris", "color": "Blanco",
            "owner_name": "Owner", "technical_review_date": "2025-01-01",
            "year": 2020, "status": "active", "assigned_driver_id": None,
        }

        vehicle = await repository.create_vehicle(CreateVehicleRequest(
            plate="abcd12", model="Yaris", color="Blanco",
            owner_name="Owner", technical_review_date="2025-01-01",
        ))

        assert vehicle.plate == "ABCD12"
        assert mock_db.fetchrow.call_args[0][2] == "ABCD12"

    @pytest.mark.asyncio
    async def test_vehicle_for_user(self, repository: FleetRepository, mock_db: AsyncMock) -> None:
        mock_db.fetchval.return_value = "V1"

        assert await repository.get_vehicle_id_for_user("user-driver") == "V1"

    @pytest.mark.asyncio
    async def test_vehicle_info(self, repository: FleetRepository, mock_db: AsyncMock) -> None:
        mock_db.fetch.return_value = [
            {"vehicle_id": "V1", "plate": "AB12", "model": "Yaris", "driver_name": "Juan", "is_paid": False},
        ]

        info = await repository.get_vehicle_info(["V1"])

        assert info["V1"].plate == "AB12"
        assert info["V1"].is_paid is False
        args = mock_db.fetch.call_args[0]
        assert args[1] == ["V1"]
        assert args[2] == repository.today()
        assert args[3] == "paid"

    @pytest.mark.asyncio
    async def test_vehicle_info_empty_ids(self, repository: FleetRepository, mock_db: AsyncMock) -> None:
        assert await repository.get_vehicle_info([]) == {}
        mock_db.fetch.assert_not_awaited()


class TestRouteSlips:

    @pytest.mark.asyncio
    async def test_duplicate_flag(self, repository: FleetRepository, tx_conn: AsyncMock) -> None:
        tx_conn.fetchval.return_value = True
        tx_conn.fetchrow.side_effect = lambda sql, *args: {
            "id": args[0], "date": args[1], "driver_id": args[2], "vehicle_id": args[3],
            "payment_status": args[5], "is_duplicate": args[10],
        }

        slip = await repository.create_route_slip(CreateRouteSlipRequest(
            date="2024-06-01", driver_id="D1", vehicle_id="V1",
        ))

        assert slip.is_duplicate is True
        assert slip.payment_status == "pending"


class TestPayments:

    @pytest.mark.asyncio
    async def test_payment_marks_route_slip_paid(self, repository: FleetRepository, tx_conn: AsyncMock) -> None:
        tx_conn.fetchrow.side_effect = lambda sql, *args: {
            "id": args[0], "route_slip_id": args[1], "type": args[2], "amount": args[3],
            "date": args[6], "status": args[8], "method": args[9],
        }

        payment = await repository.create_payment(CreatePaymentRequest(
            route_slip_id="RS1", type=PaymentMethod.CASH, amount=15000,
        ))

        assert payment.method == PaymentMethod.CASH
        assert payment.date == repository.today()
        tx_conn.execute.assert_awaited_once()
        assert tx_conn.execute.call_args[0][1:] == ("paid", "RS1")

    @pytest.mark.asyncio
    async def test_payment_without_route_slip(self, repository: FleetRepository, tx_conn: AsyncMock) -> None:
        tx_conn.fetchrow.side_effect = lambda sql, *args: {"id": args[0], "amount": args[3]}

        await repository.create_payment(CreatePaymentRequest(amount=1000, date="2024-06-01"))

        tx_conn.execute.assert_not_awaited()


class TestAudit:

    @pytest.mark.asyncio
    async def test_add_audit_log(self, repository: FleetRepository, mock_db: AsyncMock) -> None:
        await repository.add_audit_log("u1", "Admin", "create", "vehicle", "v1", "AB12")

        args = mock_db.execute.call_args[0]
        assert args[2:] == ("u1", "Admin", "create", "vehicle", "v1", "AB12")

    @pytest.mark.asyncio
    async def test_list_audit_logs_limit(self, repository: FleetRepository, mock_db: AsyncMock) -> None:
        await repository.list_audit_logs(limit=50)

        assert mock_db.fetch.call_args[0][1] == 50
