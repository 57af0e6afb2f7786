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


class PrincipalKind(str, Enum):
    """Типы аутентифицированных участников."""
    ADMIN = "admin"
    RIDER = "rider"
    CLIENT = "client"

    def __str__(self) -> str:
        return self.value


class OrderStatus(str, Enum):
    """Статусы заказа доставки."""
    PENDING = "Pending"
    ACCEPTED = "Accepted"
    COMPLETED = "Completed"

    def __str__(self) -> str:
        return self.value


class ProofKind(str, Enum):
    """Виды подтверждения доставки."""
    PICKUP = "pickup"
    DROPOFF = "dropoff"

    def __str__(self) -> str:
        return self.value


class StorageBackend(str, Enum):
    """Бэкенды хранения агрегата."""
    MEMORY = "memory"
    FILE = "file"
    POSTGRES = "postgres"


# Идентификатор администратора в токене (администратор один и задаётся конфигом)
ADMIN_PRINCIPAL_ID = 0

# Категория заказа по умолчанию
DEFAULT_ORDER_CATEGORY = "general"

# Заглушка для неизвестного имени/телефона заказчика
CUSTOMER_PLACEHOLDER = "-"
