# src/core/orders/__init__.py
"""
Домен заказов.
Модели, машина состояний и сервис леджера заказов.
"""

from src.core.orders.models import (
    Order,
    OrderCreateDTO,
    ManualOrderCreateDTO,
    RiderOrderView,
)
from src.core.orders.state_machine import OrderStateMachine
from src.core.orders.service import OrderService

__all__ = [
    "Order",
    "OrderCreateDTO",
    "ManualOrderCreateDTO",
    "RiderOrderView",
    "OrderStateMachine",
    "OrderService",
]
