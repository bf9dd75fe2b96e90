# tests/common/test_constants.py
"""
Тесты для модуля констант.
"""

from src.common.constants import (
    LocationStatus,
    PaymentMethod,
    PaymentStatus,
    RecordStatus,
    TypeMsg,
    UserRole,
    VEHICLE_LOCATIONS_KEY,
)


class TestTypeMsg:
    """Тесты для enum TypeMsg."""

    def test_type_msg_values(self) -> None:
        """Проверяет значения типов сообщений."""
        assert TypeMsg.DEBUG.value == "debug"
        assert TypeMsg.INFO.value == "info"
        assert TypeMsg.WARNING.value == "warning"
        assert TypeMsg.ERROR.value == "error"
        assert TypeMsg.CRITICAL.value == "critical"

    def test_type_msg_is_str_enum(self) -> None:
        assert isinstance(TypeMsg.DEBUG, str)
        assert TypeMsg.INFO == "info"


class TestUserRole:
    """Тесты для enum UserRole."""

    def test_user_role_values(self) -> None:
        assert UserRole.ADMIN.value == "admin"
        assert UserRole.OPERATOR.value == "operator"
        assert UserRole.FINANCE.value == "finance"
        assert UserRole.DRIVER.value == "driver"

    def test_all_roles_exist(self) -> None:
        """Проверяет наличие всех ролей."""
        assert len(list(UserRole)) == 4

    def test_role_from_string(self) -> None:
        assert UserRole("operator") is UserRole.OPERATOR


class TestLocationStatus:
    """Тесты для enum LocationStatus."""

    def test_location_status_values(self) -> None:
        assert LocationStatus.ACTIVE.value == "active"
        assert LocationStatus.OFFLINE.value == "offline"

    def test_only_two_statuses(self) -> None:
        assert len(list(LocationStatus)) == 2


class TestRecordStatuses:
    """Тесты статусов реестров и оплаты."""

    def test_record_status_values(self) -> None:
        assert RecordStatus.ACTIVE == "active"
        assert RecordStatus.INACTIVE == "inactive"

    def test_payment_status_values(self) -> None:
        assert PaymentStatus.PENDING == "pending"
        assert PaymentStatus.PAID == "paid"

    def test_payment_method_values(self) -> None:
        """Способы оплаты хранятся в исходном (испанском) виде."""
        assert PaymentMethod.CASH.value == "efectivo"
        assert PaymentMethod.TRANSFER.value == "transferencia"


def test_vehicle_locations_key() -> None:
    assert VEHICLE_LOCATIONS_KEY == "vehicle_locations"
