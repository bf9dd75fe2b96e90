# src/shared/models/fleet.py
"""
DTO реестров: пользователи, водители, автомобили, маршрутные листы, платежи, аудит.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from src.common.constants import PaymentMethod, PaymentStatus, RecordStatus, UserRole
from src.shared.models.common import CamelModel


# =============================================================================
# ПОЛЬЗОВАТЕЛИ И АУТЕНТИФИКАЦИЯ
# =============================================================================

class UserDTO(CamelModel):
    """Пользователь без хеша пароля."""
    id: str
    email: str
    name: str
    role: UserRole = UserRole.DRIVER
    created_at: datetime | None = None


class UserRecord(UserDTO):
    """Пользователь в том виде, как он хранится в БД (с хешем пароля)."""
    password: str

    def public(self) -> UserDTO:
        """Публичное представление без пароля."""
        return UserDTO.model_validate(self.model_dump(exclude={"password"}))


class LoginRequest(CamelModel):
    email: str
    password: str


class RegisterRequest(CamelModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)
    rut: str | None = None
    phone: str | None = None


class AuthResponse(CamelModel):
    user: UserDTO
    token: str


# =============================================================================
# ВОДИТЕЛИ И АВТОМОБИЛИ
# =============================================================================

class CreateDriverRequest(CamelModel):
    name: str = Field(..., min_length=1)
    rut: str
    phone: str
    license_number: str
    status: RecordStatus = RecordStatus.ACTIVE
    address: str | None = None
    user_id: str | None = None


class DriverDTO(CreateDriverRequest):
    id: str
    created_at: datetime | None = None


class CreateVehicleRequest(CamelModel):
    plate: str = Field(..., min_length=1)
    model: str
    color: str
    owner_name: str
    technical_review_date: str
    year: int | None = None
    status: RecordStatus = RecordStatus.ACTIVE
    assigned_driver_id: str | None = None


class VehicleDTO(CreateVehicleRequest):
    id: str
    created_at: datetime | None = None


# =============================================================================
# МАРШРУТНЫЕ ЛИСТЫ И ПЛАТЕЖИ
# =============================================================================

class CreateRouteSlipRequest(CamelModel):
    date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$")  # YYYY-MM-DD
    driver_id: str
    vehicle_id: str
    signature: str | None = None
    payment_status: PaymentStatus = PaymentStatus.PENDING
    notes: str | None = None
    total_amount: int = 0
    expenses: int = 0
    net_amount: int = 0


class RouteSlipDTO(CreateRouteSlipRequest):
    id: str
    is_duplicate: bool = False
    created_at: datetime | None = None


class CreatePaymentRequest(CamelModel):
    route_slip_id: str | None = None
    type: PaymentMethod | None = None
    amount: int = Field(..., ge=0)
    driver_id: str | None = None
    vehicle_id: str | None = None
    date: str | None = None
    status: str = "pending"
    method: PaymentMethod | None = None
    proof_of_payment: str | None = None  # ссылка на подтверждение оплаты


class PaymentDTO(CreatePaymentRequest):
    id: str
    created_at: datetime | None = None


# =============================================================================
# АУДИТ
# =============================================================================

class AuditLogDTO(CamelModel):
    id: str
    user_id: str
    user_name: str
    action: str
    entity: str
    entity_id: str | None = None
    details: str | None = None
    timestamp: datetime | None = None
