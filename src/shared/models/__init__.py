# src/shared/models/__init__.py
"""
Общие DTO и Pydantic-модели API.
"""

from src.shared.models.common import (
    CamelModel,
    ErrorResponse,
    HealthStatus,
)
from src.shared.models.location import (
    LocationReportRequest,
    LocationReport,
    VehicleInfo,
    FleetVehicle,
    FleetSnapshot,
    LocationAck,
)
from src.shared.models.fleet import (
    UserDTO,
    UserRecord,
    LoginRequest,
    RegisterRequest,
    AuthResponse,
    CreateDriverRequest,
    DriverDTO,
    CreateVehicleRequest,
    VehicleDTO,
    CreateRouteSlipRequest,
    RouteSlipDTO,
    CreatePaymentRequest,
    PaymentDTO,
    AuditLogDTO,
)

__all__ = [
    # Common
    "CamelModel",
    "ErrorResponse",
    "HealthStatus",
    # Location
    "LocationReportRequest",
    "LocationReport",
    "VehicleInfo",
    "FleetVehicle",
    "FleetSnapshot",
    "LocationAck",
    # Fleet
    "UserDTO",
    "UserRecord",
    "LoginRequest",
    "RegisterRequest",
    "AuthResponse",
    "CreateDriverRequest",
    "DriverDTO",
    "CreateVehicleRequest",
    "VehicleDTO",
    "CreateRouteSlipRequest",
    "RouteSlipDTO",
    "CreatePaymentRequest",
    "PaymentDTO",
    "AuditLogDTO",
]
