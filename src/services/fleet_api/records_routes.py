# src/services/fleet_api/records_routes.py
"""
Реестры: водители, автомобили, маршрутные листы, платежи, журнал аудита.

Каждое создание записи пишется в audit_logs.
"""

from __future__ import annotations

import asyncpg
from fastapi import APIRouter, Depends, HTTPException, status

from src.common.constants import UserRole
from src.common.logger import log_warning
from src.services.fleet_api.auth import get_current_user, require_roles
from src.services.fleet_api.dependencies import get_repository
from src.services.fleet_api.repository import FleetRepository
from src.shared.models.fleet import (
    AuditLogDTO,
    CreateDriverRequest,
    CreatePaymentRequest,
    CreateRouteSlipRequest,
    CreateVehicleRequest,
    DriverDTO,
    PaymentDTO,
    RouteSlipDTO,
    UserDTO,
    VehicleDTO,
)

router = APIRouter(tags=["Records"])


async def _audit(
    repository: FleetRepository,
    user: UserDTO,
    entity: str,
    entity_id: str,
    details: str | None = None,
) -> None:
    await repository.add_audit_log(user.id, user.name, "create", entity, entity_id, details)


def _integrity_error(e: asyncpg.IntegrityConstraintViolationError) -> HTTPException:
    """Нарушение UNIQUE / FOREIGN KEY -> 400."""
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=f"Нарушено ограничение БД: {getattr(e, 'constraint_name', None) or e}",
    )


# === DRIVERS ===

@router.get("/drivers", response_model=list[DriverDTO])
async def list_drivers(
    _: UserDTO = Depends(get_current_user),
    repository: FleetRepository = Depends(get_repository),
) -> list[DriverDTO]:
    return await repository.list_drivers()


@router.post("/drivers", response_model=DriverDTO)
async def create_driver(
    request: CreateDriverRequest,
    user: UserDTO = Depends(require_roles(UserRole.ADMIN, UserRole.OPERATOR)),
    repository: FleetRepository = Depends(get_repository),
) -> DriverDTO:
    try:
        driver = await repository.create_driver(request)
    except asyncpg.IntegrityConstraintViolationError as e:
        raise _integrity_error(e)
    await _audit(repository, user, "driver", driver.id, driver.name)
    return driver


# === VEHICLES ===

@router.get("/vehicles", response_model=list[VehicleDTO])
async def list_vehicles(
    _: UserDTO = Depends(get_current_user),
    repository: FleetRepository = Depends(get_repository),
) -> list[VehicleDTO]:
    return await repository.list_vehicles()


@router.post("/vehicles", response_model=VehicleDTO)
async def create_vehicle(
    request: CreateVehicleRequest,
    user: UserDTO = Depends(require_roles(UserRole.ADMIN, UserRole.OPERATOR)),
    repository: FleetRepository = Depends(get_repository),
) -> VehicleDTO:
    try:
        vehicle = await repository.create_vehicle(request)
    except asyncpg.IntegrityConstraintViolationError as e:
        raise _integrity_error(e)
    await _audit(repository, user, "vehicle", vehicle.id, vehicle.plate)
    return vehicle


# === ROUTE SLIPS ===

@router.get("/route-slips", response_model=list[RouteSlipDTO])
async def list_route_slips(
    _: UserDTO = Depends(get_current_user),
    repository: FleetRepository = Depends(get_repository),
) -> list[RouteSlipDTO]:
    return await repository.list_route_slips()


@router.post("/route-slips", response_model=RouteSlipDTO)
async def create_route_slip(
    request: CreateRouteSlipRequest,
    user: UserDTO = Depends(get_current_user),
    repository: FleetRepository = Depends(get_repository),
) -> RouteSlipDTO:
    """Повторный лист на ту же дату создаётся с isDuplicate=true."""
    try:
        slip = await repository.create_route_slip(request)
    except asyncpg.IntegrityConstraintViolationError as e:
        raise _integrity_error(e)
    if slip.is_duplicate:
        await log_warning(
            f"Дубликат маршрутного листа: driver={slip.driver_id} vehicle={slip.vehicle_id} date={slip.date}",
        )
    await _audit(repository, user, "route_slip", slip.id, slip.date)
    return slip


# === PAYMENTS ===

@router.get("/payments", response_model=list[PaymentDTO])
async def list_payments(
    _: UserDTO = Depends(get_current_user),
    repository: FleetRepository = Depends(get_repository),
) -> list[PaymentDTO]:
    return await repository.list_payments()


@router.post("/payments", response_model=PaymentDTO)
async def create_payment(
    request: CreatePaymentRequest,
    user: UserDTO = Depends(require_roles(UserRole.ADMIN, UserRole.FINANCE)),
    repository: FleetRepository = Depends(get_repository),
) -> PaymentDTO:
    """Платёж по маршрутному листу переводит лист в статус paid."""
    try:
        payment = await repository.create_payment(request)
    except asyncpg.IntegrityConstraintViolationError as e:
        raise _integrity_error(e)
    await _audit(repository, user, "payment", payment.id, str(payment.amount))
    return payment


# === AUDIT ===

@router.get("/audit-logs", response_model=list[AuditLogDTO])
async def list_audit_logs(
    limit: int = 200,
    _: UserDTO = Depends(require_roles(UserRole.ADMIN)),
    repository: FleetRepository = Depends(get_repository),
) -> list[AuditLogDTO]:
    return await repository.list_audit_logs(limit=min(max(limit, 1), 1000))
