# src/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class UserRole(str, Enum):
    """Роли пользователей."""
    ADMIN = "admin"
    OPERATOR = "operator"
    FINANCE = "finance"
    DRIVER = "driver"


class LocationStatus(str, Enum):
    """Статус GPS-отчёта автомобиля."""
    ACTIVE = "active"
    OFFLINE = "offline"


class RecordStatus(str, Enum):
    """Статус водителя / автомобиля в реестре."""
    ACTIVE = "active"
    INACTIVE = "inactive"


class PaymentStatus(str, Enum):
    """Статусы оплаты маршрутного листа."""
    PENDING = "pending"
    PAID = "paid"


class PaymentMethod(str, Enum):
    """Способы оплаты."""
    CASH = "efectivo"
    TRANSFER = "transferencia"


# Ключ хеша Redis с последними отчётами (vehicle_id -> JSON)
VEHICLE_LOCATIONS_KEY = "vehicle_locations"
