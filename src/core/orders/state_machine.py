# src/core/orders/state_machine.py
"""
Машина состояний заказа.

Pending -> Accepted -> Completed. Администратор может вернуть Accepted
в Pending (снять курьера). Completed терминален.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from src.common.constants import OrderStatus
from src.common.errors import ConflictError, ValidationError
from src.core.orders.models import Order, utcnow


class OrderStateMachine:
    ALLOWED_TRANSITIONS = {
        OrderStatus.PENDING: [OrderStatus.PENDING, OrderStatus.ACCEPTED],
        OrderStatus.ACCEPTED: [OrderStatus.ACCEPTED, OrderStatus.PENDING, OrderStatus.COMPLETED],
        OrderStatus.COMPLETED: [],
    }

    @staticmethod
    def can_transition(current_status: str, new_status: str) -> bool:
        try:
            curr = OrderStatus(current_status)
            new = OrderStatus(new_status)
        except ValueError:
            return False
        return new in OrderStateMachine.ALLOWED_TRANSITIONS.get(curr, [])

    @staticmethod
    def transition(
        order: Order,
        new_status: OrderStatus,
        *,
        rider_id: Optional[int],
        at: Optional[datetime] = None,
    ) -> Order:
        """
        Возвращает новую версию заказа в статусе new_status.

        Инварианты модели проверяются повторно, поэтому некорректная
        комбинация статуса и курьера не может попасть в леджер.

        Raises:
            ConflictError: Переход запрещён (например, из Completed)
            ValidationError: Результат нарушает инварианты заказа
        """
        if not OrderStateMachine.can_transition(order.status, new_status):
            raise ConflictError(
                f"Order {order.id} cannot move from {order.status} to {new_status}",
                details={"order_id": order.id, "status": str(order.status)},
            )

        now = at or utcnow()
        changes: dict[str, Any] = {"status": new_status, "rider_id": rider_id}

        if new_status == OrderStatus.PENDING:
            changes["accepted_at"] = None
        elif new_status == OrderStatus.ACCEPTED:
            # Время назначения сохраняется при повторном захвате тем же курьером
            if order.status != OrderStatus.ACCEPTED or order.rider_id != rider_id:
                changes["accepted_at"] = now
        elif new_status == OrderStatus.COMPLETED:
            changes["completed_at"] = now

        return revalidate(order, changes)


def revalidate(order: Order, changes: dict[str, Any]) -> Order:
    """Применяет изменения к заказу и заново проверяет инварианты."""
    data = order.model_dump()
    data.update(changes)
    try:
        return Order.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(
            f"Order {order.id} update rejected",
            details={"errors": e.errors(include_url=False, include_context=False, include_input=False)},
        ) from e
