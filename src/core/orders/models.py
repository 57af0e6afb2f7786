# src/core/orders/models.py
"""
Модели данных заказов доставки.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.common.constants import (
    CUSTOMER_PLACEHOLDER,
    DEFAULT_ORDER_CATEGORY,
    OrderStatus,
    ProofKind,
)


def utcnow() -> datetime:
    """Текущее время в UTC."""
    return datetime.now(timezone.utc)


# =============================================================================
# ПРОИСХОЖДЕНИЕ ЗАКАЗА
# =============================================================================

class ClientOrigin(BaseModel):
    """Заказ создан зарегистрированным клиентом."""

    kind: Literal["client"] = "client"
    client_id: int = Field(..., ge=1, description="ID клиента")


class ManualOrigin(BaseModel):
    """Заказ внесён администратором вручную для анонимного заказчика."""

    kind: Literal["manual"] = "manual"
    customer_name: str = Field(..., min_length=1, description="Имя заказчика")
    customer_phone: str = Field("", description="Телефон заказчика")


OrderOrigin = Annotated[Union[ClientOrigin, ManualOrigin], Field(discriminator="kind")]


# =============================================================================
# ЗАКАЗ
# =============================================================================

class Order(BaseModel):
    """Модель заказа."""

    id: int = Field(..., ge=1, description="ID заказа")
    origin: OrderOrigin = Field(..., description="Клиент или ручной заказчик")

    pickup: str = Field(..., min_length=1, description="Точка забора")
    dropoff: str = Field(..., min_length=1, description="Точка доставки")
    distance: float = Field(0.0, ge=0.0, allow_inf_nan=False, description="Расстояние")
    fee: float = Field(0.0, ge=0.0, allow_inf_nan=False, description="Стоимость доставки")
    category: str = Field(DEFAULT_ORDER_CATEGORY, description="Категория")
    notes: str = Field("", description="Комментарий")

    status: OrderStatus = Field(OrderStatus.PENDING, description="Статус заказа")
    rider_id: Optional[int] = Field(None, description="ID назначенного курьера")

    pickup_proof: Optional[str] = Field(None, description="Ссылка на фото забора")
    dropoff_proof: Optional[str] = Field(None, description="Ссылка на фото доставки")

    created_at: datetime = Field(default_factory=utcnow, description="Время создания")
    accepted_at: Optional[datetime] = Field(None, description="Время назначения курьера")
    completed_at: Optional[datetime] = Field(None, description="Время завершения")

    @model_validator(mode="after")
    def check_invariants(self) -> "Order":
        """Курьер назначен тогда и только тогда, когда заказ Accepted или Completed."""
        assigned_status = self.status in (OrderStatus.ACCEPTED, OrderStatus.COMPLETED)
        if assigned_status and self.rider_id is None:
            raise ValueError(f"заказ в статусе {self.status} должен иметь курьера")
        if not assigned_status and self.rider_id is not None:
            raise ValueError(f"заказ в статусе {self.status} не может иметь курьера")
        if self.status == OrderStatus.COMPLETED and self.dropoff_proof is None:
            raise ValueError("завершённый заказ должен иметь подтверждение доставки")
        return self

    @property
    def client_id(self) -> Optional[int]:
        """ID клиента или None для ручного заказа."""
        if isinstance(self.origin, ClientOrigin):
            return self.origin.client_id
        return None

    @property
    def is_terminal(self) -> bool:
        """Завершён ли заказ."""
        return self.status == OrderStatus.COMPLETED

    def is_assigned_to(self, rider_id: int) -> bool:
        """Назначен ли заказ данному курьеру."""
        return self.rider_id is not None and self.rider_id == rider_id

    def proof(self, kind: ProofKind) -> Optional[str]:
        """Ссылка на подтверждение заданного вида."""
        if kind == ProofKind.PICKUP:
            return self.pickup_proof
        return self.dropoff_proof


class RiderOrderView(Order):
    """Заказ в очереди курьера с данными заказчика."""

    customer_name: str = CUSTOMER_PLACEHOLDER
    customer_phone: str = CUSTOMER_PLACEHOLDER


# =============================================================================
# DTO
# =============================================================================

class OrderCreateDTO(BaseModel):
    """DTO для создания заказа клиентом."""

    model_config = ConfigDict(populate_by_name=True)

    pickup: Optional[str] = None
    dropoff: Optional[str] = None
    # Числа проверяются в сервисе без приведения типов
    distance: Optional[Any] = None
    fee: Optional[Any] = None
    # В JSON поле называется "type"
    category: Optional[str] = Field(None, alias="type")
    notes: Optional[str] = None


class ManualOrderCreateDTO(BaseModel):
    """DTO для ручного создания заказа администратором."""

    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    pickup: Optional[str] = None
    dropoff: Optional[str] = None
    distance: Optional[Any] = None
    fee: Optional[Any] = None
    rider_id: Optional[int] = None
