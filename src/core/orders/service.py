# src/core/orders/service.py
"""
Леджер заказов.
Создание, выборки, загрузка подтверждений и ручное назначение курьера.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from pydantic import ValidationError as PydanticValidationError

from src.common.constants import (
    CUSTOMER_PLACEHOLDER,
    DEFAULT_ORDER_CATEGORY,
    OrderStatus,
    ProofKind,
    TypeMsg,
)
from src.common.errors import (
    ConflictError,
    ForbiddenError,
    PermissionDeniedError,
    ValidationError,
)
from src.common.logger import log_info
from src.common.validators import clean_text, non_negative_amount, require_fields
from src.core.auth.models import Principal
from src.core.orders.models import (
    ClientOrigin,
    ManualOrderCreateDTO,
    ManualOrigin,
    Order,
    OrderCreateDTO,
    RiderOrderView,
    utcnow,
)
from src.core.orders.state_machine import OrderStateMachine, revalidate

if TYPE_CHECKING:
    from src.core.ledger.state import LedgerState
    from src.infra.storage import AggregateStore


def _build_order(order_id: int, **fields: Any) -> Order:
    try:
        return Order(id=order_id, **fields)
    except PydanticValidationError as e:
        raise ValidationError(
            "Invalid order data",
            details={"errors": e.errors(include_url=False, include_context=False, include_input=False)},
        ) from e


class OrderService:
    """
    Сервис заказов.
    Единственный владелец записей заказов; курьеров только читает.
    """

    def __init__(self, store: "AggregateStore") -> None:
        """
        Args:
            store: Хранилище агрегата
        """
        self._store = store

    # =========================================================================
    # СОЗДАНИЕ
    # =========================================================================

    async def create_from_client(self, client_id: int, dto: OrderCreateDTO) -> Order:
        """
        Создаёт заказ от имени клиента в статусе Pending.

        Args:
            client_id: ID аутентифицированного клиента
            dto: Данные заказа

        Returns:
            Созданный заказ

        Raises:
            ValidationError: Нет pickup/dropoff или некорректные суммы
            NotFoundError: Клиент не найден
        """
        fields = require_fields("Pickup and dropoff are required", pickup=dto.pickup, dropoff=dto.dropoff)
        distance = non_negative_amount("distance", dto.distance)
        fee = non_negative_amount("fee", dto.fee)
        category = clean_text(dto.category) or DEFAULT_ORDER_CATEGORY
        notes = clean_text(dto.notes)

        async with self._store.transaction() as state:
            state.get_client(client_id)
            order = state.append_order(
                lambda order_id: _build_order(
                    order_id,
                    origin=ClientOrigin(client_id=client_id),
                    pickup=fields["pickup"],
                    dropoff=fields["dropoff"],
                    distance=distance,
                    fee=fee,
                    category=category,
                    notes=notes,
                )
            )

        await log_info(f"Заказ {order.id} создан клиентом {client_id}", type_msg=TypeMsg.INFO)
        return order

    async def create_manual(self, dto: ManualOrderCreateDTO) -> Order:
        """
        Создаёт заказ вручную (администратор).
        Если указан курьер, заказ сразу переходит в Accepted.

        Raises:
            ValidationError: Нет имени заказчика, pickup или dropoff
            NotFoundError: Указанный курьер не найден
        """
        fields = require_fields(
            "Customer name, pickup and dropoff are required",
            customer_name=dto.customer_name,
            pickup=dto.pickup,
            dropoff=dto.dropoff,
        )
        distance = non_negative_amount("distance", dto.distance)
        fee = non_negative_amount("fee", dto.fee)

        async with self._store.transaction() as state:
            assigned: dict[str, Any] = {}
            if dto.rider_id is not None:
                state.get_rider(dto.rider_id)
                assigned = {
                    "status": OrderStatus.ACCEPTED,
                    "rider_id": dto.rider_id,
                    "accepted_at": utcnow(),
                }
            order = state.append_order(
                lambda order_id: _build_order(
                    order_id,
                    origin=ManualOrigin(
                        customer_name=fields["customer_name"],
                        customer_phone=clean_text(dto.customer_phone),
                    ),
                    pickup=fields["pickup"],
                    dropoff=fields["dropoff"],
                    distance=distance,
                    fee=fee,
                    **assigned,
                )
            )

        await log_info(
            f"Заказ {order.id} создан вручную (курьер: {order.rider_id})",
            type_msg=TypeMsg.INFO,
        )
        return order

    # =========================================================================
    # ВЫБОРКИ
    # =========================================================================

    async def get_order(self, order_id: int) -> Order:
        state = await self._store.snapshot()
        return state.get_order(order_id)

    async def list_all(self) -> list[Order]:
        """Все заказы в порядке леджера."""
        state = await self._store.snapshot()
        return list(state.orders)

    async def list_for_client(self, client_id: int) -> list[Order]:
        """Заказы клиента в порядке леджера."""
        state = await self._store.snapshot()
        return [order for order in state.orders if order.client_id == client_id]

    async def list_for_rider(self, rider_id: int) -> list[RiderOrderView]:
        """
        Очередь курьера: его заказы и все свободные (Pending),
        с именем и телефоном заказчика.
        """
        state = await self._store.snapshot()
        return [
            self._annotate(state, order)
            for order in state.orders
            if order.is_assigned_to(rider_id) or order.status == OrderStatus.PENDING
        ]

    @staticmethod
    def _annotate(state: "LedgerState", order: Order) -> RiderOrderView:
        name: Optional[str] = None
        phone: Optional[str] = None

        if isinstance(order.origin, ClientOrigin):
            client = state.find_client(order.origin.client_id)
            if client is not None:
                name, phone = client.fullname, client.phone
        else:
            name, phone = order.origin.customer_name, order.origin.customer_phone

        return RiderOrderView(
            **order.model_dump(),
            customer_name=name or CUSTOMER_PLACEHOLDER,
            customer_phone=phone or CUSTOMER_PLACEHOLDER,
        )

    # =========================================================================
    # ИЗМЕНЕНИЯ
    # =========================================================================

    async def upload_proof(
        self,
        principal: Principal,
        order_id: int,
        kind: ProofKind,
        ref: Optional[str],
    ) -> Order:
        """
        Прикрепляет фото подтверждения к заказу.

        Администратор может прикрепить фото к любому заказу, курьер только
        к назначенному ему. Подтверждения завершённого заказа не меняются.

        Args:
            principal: Участник, выполняющий загрузку
            order_id: ID заказа
            kind: pickup или dropoff
            ref: Ссылка на сохранённый файл

        Raises:
            PermissionDeniedError: Клиент пытается загрузить подтверждение
            NotFoundError: Заказ не найден
            ValidationError: Файл не передан
            ForbiddenError: Заказ назначен другому курьеру
            ConflictError: Заказ уже завершён
        """
        if principal.is_client:
            raise PermissionDeniedError("Clients cannot upload delivery proofs")

        proof_kind = ProofKind(kind)

        async with self._store.transaction() as state:
            order = state.get_order(order_id)
            if not clean_text(ref):
                raise ValidationError("No file uploaded", details={"kind": proof_kind.value})
            if principal.is_rider and not order.is_assigned_to(principal.id):
                raise ForbiddenError(
                    f"Order {order_id} is not assigned to you",
                    details={"order_id": order_id},
                )
            if order.is_terminal:
                raise ConflictError(
                    f"Order {order_id} is already completed",
                    details={"order_id": order_id},
                )

            updated = revalidate(order, {f"{proof_kind.value}_proof": ref})
            state.replace_order(updated)

        await log_info(
            f"Фото {proof_kind.value} загружено для заказа {order_id} ({principal.kind}:{principal.id})",
            type_msg=TypeMsg.INFO,
        )
        return updated

    async def admin_assign(self, order_id: int, rider_id: Optional[int]) -> Order:
        """
        Назначает курьера (Accepted) или снимает назначение (Pending).
        Существующее назначение перезаписывается безусловно.

        Raises:
            NotFoundError: Заказ или курьер не найден
            ConflictError: Заказ уже завершён
        """
        async with self._store.transaction() as state:
            order = state.get_order(order_id)
            if rider_id is not None:
                state.get_rider(rider_id)
                new_status = OrderStatus.ACCEPTED
            else:
                new_status = OrderStatus.PENDING

            updated = OrderStateMachine.transition(order, new_status, rider_id=rider_id)
            state.replace_order(updated)

        await log_info(
            f"Заказ {order_id}: назначение изменено на курьера {rider_id} ({updated.status})",
            type_msg=TypeMsg.INFO,
        )
        return updated
