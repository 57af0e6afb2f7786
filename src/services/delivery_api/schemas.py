# src/services/delivery_api/schemas.py
"""
Модели запросов и ответов HTTP API доставки.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel

from src.common.constants import ProofKind
from src.core.clients.models import ClientPublic
from src.core.orders.models import Order
from src.core.riders.models import RiderPublic


# === REQUESTS ===

class AssignRequest(BaseModel):
    """Назначение курьера; null снимает назначение."""
    rider_id: Optional[int] = None


class CreditRequest(BaseModel):
    """Начисление кредита курьеру."""
    amount: Optional[Any] = None


# === RESPONSES ===

class TokenResponse(BaseModel):
    """Ответ на вход администратора."""
    token: str


class RiderLoginResponse(BaseModel):
    token: str
    rider: RiderPublic


class ClientLoginResponse(BaseModel):
    token: str
    client: ClientPublic


class ClientRegisterResponse(BaseModel):
    message: str = "Registration successful"
    client: ClientPublic


class OrderResponse(BaseModel):
    """Заказ с сообщением о выполненной команде."""
    message: str
    order: Order


class CreditResponse(BaseModel):
    rider_id: int
    credit: float


class ProofResponse(BaseModel):
    """Ссылка на сохранённое фото подтверждения."""
    order_id: int
    kind: ProofKind
    ref: str
    order: Order
