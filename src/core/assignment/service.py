# src/core/assignment/service.py
"""
Арбитр назначений: захват заказа курьером и завершение доставки.

Проверка и изменение выполняются в одной транзакции хранилища, поэтому
из двух одновременных захватов одного заказа успешен ровно один.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from src.common.constants import OrderStatus, TypeMsg
from src.common.errors import ConflictError, ForbiddenError, ValidationError
from src.common.logger import log_info
from src.core.orders.models import Order
from src.core.orders.state_machine import OrderStateMachine

if TYPE_CHECKING:
    from src.infra.storage import AggregateStore


class AssignmentService:
    """Сервис назначений."""

    def __init__(self, store: "AggregateStore") -> None:
        self._store = store

    async def claim(self, rider_id: int, order_id: int) -> Order:
        """
        Захватывает заказ курьером.

        Повторный захват своего заказа идемпотентен.

        Args:
            rider_id: ID курьера
            order_id: ID заказа

        Returns:
            Обновлённый заказ

        Raises:
            NotFoundError: Заказ или курьер не найден
            ConflictError: Заказ завершён или назначен другому курьеру
        """
        async with self._store.transaction() as state:
            order = state.get_order(order_id)
            state.get_rider(rider_id)

            if order.is_terminal:
                raise ConflictError(
                    f"Order {order_id} is already completed",
                    details={"order_id": order_id},
                )
            if order.rider_id is not None and order.rider_id != rider_id:
                raise ConflictError(
                    f"Order {order_id} is already assigned to another rider",
                    details={"order_id": order_id},
                )

            updated = OrderStateMachine.transition(order, OrderStatus.ACCEPTED, rider_id=rider_id)
            state.replace_order(updated)

        await log_info(f"Курьер {rider_id} принял заказ {order_id}", type_msg=TypeMsg.INFO)
        return updated

    async def complete(self, rider_id: int, order_id: int) -> Order:
        """
        Завершает доставку.

        Порядок проверок: заказ существует, есть фото доставки,
        заказ назначен этому курьеру, заказ в статусе Accepted.

        Raises:
            NotFoundError: Заказ не найден
            ValidationError: Нет фото доставки
            ForbiddenError: Заказ назначен не этому курьеру
            ConflictError: Заказ не в статусе Accepted
        """
        async with self._store.transaction() as state:
            order = state.get_order(order_id)

            if order.dropoff_proof is None:
                raise ValidationError("Dropoff proof required", details={"order_id": order_id})
            if not order.is_assigned_to(rider_id):
                raise ForbiddenError(
                    f"Order {order_id} is not assigned to you",
                    details={"order_id": order_id},
                )
            if order.status != OrderStatus.ACCEPTED:
                raise ConflictError(
                    f"Order {order_id} is not in progress",
                    details={"order_id": order_id, "status": str(order.status)},
                )

            updated = OrderStateMachine.transition(order, OrderStatus.COMPLETED, rider_id=rider_id)
            state.replace_order(updated)

        await log_info(f"Курьер {rider_id} завершил заказ {order_id}", type_msg=TypeMsg.INFO)
        return updated
