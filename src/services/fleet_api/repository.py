# src/services/fleet_api/repository.py
"""
Репозиторий реестров TaxiNort (PostgreSQL через asyncpg).

Таблицы: users, drivers, vehicles, route_slips, payments, audit_logs.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from zoneinfo import ZoneInfo

from src.common.constants import PaymentStatus, UserRole
from src.infra.database import DatabaseManager
from src.shared.models.fleet import (
    AuditLogDTO,
    CreateDriverRequest,
    CreatePaymentRequest,
    CreateRouteSlipRequest,
    CreateVehicleRequest,
    DriverDTO,
    PaymentDTO,
    RouteSlipDTO,
    UserRecord,
    VehicleDTO,
)
from src.shared.models.location import VehicleInfo


def _new_id() -> str:
    return str(uuid.uuid4())


class FleetRepository:
    """Репозиторий пользователей, автомобилей, водителей и финансов."""

    def __init__(self, db: DatabaseManager, timezone: str = "America/Santiago") -> None:
        """
        Args:
            db: Менеджер базы данных
            timezone: Часовой пояс для определения «сегодня» у маршрутных листов
        """
        self._db = db
        self._tz = ZoneInfo(timezone)

    def today(self) -> str:
        """Текущая дата в часовом поясе парка (YYYY-MM-DD)."""
        return datetime.now(self._tz).date().isoformat()

    # =========================================================================
    # ПОЛЬЗОВАТЕЛИ
    # =========================================================================

    async def get_user_by_email(self, email: str) -> UserRecord | None:
        row = await self._db.fetchrow(
            "SELECT * FROM users WHERE lower(email) = lower($1)",
            email,
        )
        return UserRecord.model_validate(dict(row)) if row else None

    async def get_user_by_id(self, user_id: str) -> UserRecord | None:
        row = await self._db.fetchrow("SELECT * FROM users WHERE id = $1", user_id)
        return UserRecord.model_validate(dict(row)) if row else None

    async def create_user(
        self,
        email: str,
        password_hash: str,
        name: str,
        role: UserRole = UserRole.DRIVER,
    ) -> UserRecord:
        row = await self._db.fetchrow(
            """
            INSERT INTO users (id, email, password, name, role)
            VALUES ($1, $2, $3, $4, $5)
            RETURNING *
            """,
            _new_id(), email, password_hash, name, role.value,
        )
        return UserRecord.model_validate(dict(row))

    async def set_user_password(self, user_id: str, password_hash: str, role: UserRole) -> None:
        await self._db.execute(
            "UPDATE users SET password = $1, role = $2 WHERE id = $3",
            password_hash, role.value, user_id,
        )

    # =========================================================================
    # ВОДИТЕЛИ
    # =========================================================================

    async def list_drivers(self) -> list[DriverDTO]:
        rows = await self._db.fetch("SELECT * FROM drivers ORDER BY name")
        return [DriverDTO.model_validate(dict(r)) for r in rows]

    async def create_driver(self, request: CreateDriverRequest) -> DriverDTO:
        row = await self._db.fetchrow(
            """
            INSERT INTO drivers (id, user_id, name, rut, phone, license_number, status, address)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
            RETURNING *
            """,
            _new_id(),
            request.user_id,
            request.name,
            request.rut,
            request.phone,
            request.license_number,
            request.status.value,
            request.address,
        )
        return DriverDTO.model_validate(dict(row))

    # =========================================================================
    # АВТОМОБИЛИ
    # =========================================================================

    async def list_vehicles(self) -> list[VehicleDTO]:
        rows = await self._db.fetch("SELECT * FROM vehicles ORDER BY plate")
        return [VehicleDTO.model_validate(dict(r)) for r in rows]

    async def create_vehicle(self, request: CreateVehicleRequest) -> VehicleDTO:
        row = await self._db.fetchrow(
            """
            INSERT INTO vehicles (
                id, plate, model, color, owner_name, technical_review_date,
                year, status, assigned_driver_id
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
            RETURNING *
            """,
            _new_id(),
            request.plate.upper(),
            request.model,
            request.color,
            request.owner_name,
            request.technical_review_date,
            request.year,
            request.status.value,
            request.assigned_driver_id,
        )
        return VehicleDTO.model_validate(dict(row))

    async def get_vehicle_id_for_user(self, user_id: str) -> str | None:
        """Автомобиль, закреплённый за водителем пользователя."""
        return await self._db.fetchval(
            """
            SELECT v.id
            FROM vehicles v
            JOIN drivers d ON d.id = v.assigned_driver_id
            WHERE d.user_id = $1
            ORDER BY v.created_at DESC
            LIMIT 1
            """,
            user_id,
        )

    async def get_vehicle_info(self, vehicle_ids: list[str]) -> dict[str, VehicleInfo]:
        """
        Справочные данные для live-карты.

        is_paid = у автомобиля нет неоплаченного маршрутного листа за сегодня.
        """
        if not vehicle_ids:
            return {}

        rows = await self._db.fetch(
            """
            SELECT
                v.id AS vehicle_id,
                v.plate,
                v.model,
                d.name AS driver_name,
                NOT EXISTS (
                    SELECT 1 FROM route_slips rs
                    WHERE rs.vehicle_id = v.id
                      AND rs.date = $2
                      AND rs.payment_status <> $3
                ) AS is_paid
            FROM vehicles v
            LEFT JOIN drivers d ON d.id = v.assigned_driver_id
            WHERE v.id = ANY($1::varchar[])
            """,
            vehicle_ids, self.today(), PaymentStatus.PAID.value,
        )
        return {r["vehicle_id"]: VehicleInfo.model_validate(dict(r)) for r in rows}

    # =========================================================================
    # МАРШРУТНЫЕ ЛИСТЫ
    # =========================================================================

    async def list_route_slips(self) -> list[RouteSlipDTO]:
        rows = await self._db.fetch("SELECT * FROM route_slips ORDER BY date DESC, created_at DESC")
        return [RouteSlipDTO.model_validate(dict(r)) for r in rows]

    async def create_route_slip(self, request: CreateRouteSlipRequest) -> RouteSlipDTO:
        """Лист на ту же дату для той же пары водитель/автомобиль помечается дубликатом."""
        async with self._db.transaction() as conn:
            is_duplicate = await conn.fetchval(
                """
                SELECT EXISTS (
                    SELECT 1 FROM route_slips
                    WHERE driver_id = $1 AND vehicle_id = $2 AND date = $3
                )
                """,
                request.driver_id, request.vehicle_id, request.date,
            )
            row = await conn.fetchrow(
                """
                INSERT INTO route_slips (
                    id, date, driver_id, vehicle_id, signature, payment_status,
                    notes, total_amount, expenses, net_amount, is_duplicate
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11)
                RETURNING *
                """,
                _new_id(),
                request.date,
                request.driver_id,
                request.vehicle_id,
                request.signature,
                request.payment_status.value,
                request.notes,
                request.total_amount,
                request.expenses,
                request.net_amount,
                bool(is_duplicate),
            )
        return RouteSlipDTO.model_validate(dict(row))

    # =========================================================================
    # ПЛАТЕЖИ
    # =========================================================================

    async def list_payments(self) -> list[PaymentDTO]:
        rows = await self._db.fetch("SELECT * FROM payments ORDER BY created_at DESC")
        return [PaymentDTO.model_validate(dict(r)) for r in rows]

    async def create_payment(self, request: CreatePaymentRequest) -> PaymentDTO:
        """Платёж, привязанный к маршрутному листу, помечает лист оплаченным."""
        method = request.method or request.type
        async with self._db.transaction() as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO payments (
                    id, route_slip_id, type, amount, driver_id, vehicle_id,
                    date, proof_of_payment, status, method
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
                RETURNING *
                """,
                _new_id(),
                request.route_slip_id,
                request.type.value if request.type else None,
                request.amount,
                request.driver_id,
                request.vehicle_id,
                request.date or self.today(),
                request.proof_of_payment,
                request.status,
                method.value if method else None,
            )
            if request.route_slip_id:
                await conn.execute(
                    "UPDATE route_slips SET payment_status = $1 WHERE id = $2",
                    PaymentStatus.PAID.value, request.route_slip_id,
                )
        return PaymentDTO.model_validate(dict(row))

    # =========================================================================
    # АУДИТ
    # =========================================================================

    async def add_audit_log(
        self,
        user_id: str,
        user_name: str,
        action: str,
        entity: str,
        entity_id: str | None = None,
        details: str | None = None,
    ) -> None:
        await self._db.execute(
            """
            INSERT INTO audit_logs (id, user_id, user_name, action, entity, entity_id, details)
            VALUES ($1, $2, $3, $4, $5, $6, $7)
            """,
            _new_id(), user_id, user_name, action, entity, entity_id, details,
        )

    async def list_audit_logs(self, limit: int = 200) -> list[AuditLogDTO]:
        rows = await self._db.fetch(
            "SELECT * FROM audit_logs ORDER BY timestamp DESC LIMIT $1",
            limit,
        )
        return [AuditLogDTO.model_validate(dict(r)) for r in rows]
