# src/core/ledger/state.py
"""
Агрегат леджера: курьеры, заказы, клиенты и счётчики ID.

Все три коллекции и счётчики образуют одну единицу хранения с общей
версией. ID совпадает с позицией записи в коллекции (начиная с 1):
записи только добавляются и никогда не удаляются, поэтому выделение
ID и вставка выполняются одним шагом.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from src.common.errors import NotFoundError
from src.core.clients.models import Client
from src.core.orders.models import Order
from src.core.riders.models import Rider


T = TypeVar("T", Order, Rider, Client)


def _lookup(items: list[T], item_id: int) -> Optional[T]:
    """Ищет запись по ID как по индексу."""
    if 1 <= item_id <= len(items):
        item = items[item_id - 1]
        if item.id == item_id:
            return item
    # Индекс не совпал: файл мог быть отредактирован вручную
    return next((item for item in items if item.id == item_id), None)


def _replace(items: list[T], updated: T) -> None:
    for index, item in enumerate(items):
        if item.id == updated.id:
            items[index] = updated
            return
    raise NotFoundError(f"Record {updated.id} not found", details={"id": updated.id})


class LedgerState(BaseModel):
    """Версионированный агрегат, читаемый и записываемый целиком."""

    model_config = ConfigDict(populate_by_name=True)

    version: int = Field(0, ge=0)
    riders: list[Rider] = Field(default_factory=list)
    orders: list[Order] = Field(default_factory=list)
    clients: list[Client] = Field(default_factory=list)
    next_rider_id: int = Field(1, ge=1, alias="nextRiderId")
    next_order_id: int = Field(1, ge=1, alias="nextOrderId")
    next_client_id: int = Field(1, ge=1, alias="nextClientId")

    # =========================================================================
    # СЕРИАЛИЗАЦИЯ
    # =========================================================================

    def to_payload(self) -> dict[str, Any]:
        """JSON-совместимый словарь в формате data.json."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "LedgerState":
        """Восстанавливает агрегат из словаря data.json."""
        return cls.model_validate(payload)

    # =========================================================================
    # ЗАКАЗЫ
    # =========================================================================

    def append_order(self, build: Callable[[int], Order]) -> Order:
        """
        Выделяет следующий ID заказа и добавляет построенный заказ.
        Счётчик сдвигается только если заказ успешно построен.
        """
        order = build(self.next_order_id)
        self.orders.append(order)
        self.next_order_id += 1
        return order

    def find_order(self, order_id: int) -> Optional[Order]:
        return _lookup(self.orders, order_id)

    def get_order(self, order_id: int) -> Order:
        order = self.find_order(order_id)
        if order is None:
            raise NotFoundError(f"Order {order_id} not found", details={"order_id": order_id})
        return order

    def replace_order(self, order: Order) -> None:
        _replace(self.orders, order)

    # =========================================================================
    # КУРЬЕРЫ
    # =========================================================================

    def append_rider(self, build: Callable[[int], Rider]) -> Rider:
        rider = build(self.next_rider_id)
        self.riders.append(rider)
        self.next_rider_id += 1
        return rider

    def find_rider(self, rider_id: int) -> Optional[Rider]:
        return _lookup(self.riders, rider_id)

    def get_rider(self, rider_id: int) -> Rider:
        rider = self.find_rider(rider_id)
        if rider is None:
            raise NotFoundError(f"Rider {rider_id} not found", details={"rider_id": rider_id})
        return rider

    def find_rider_by_username(self, username: str) -> Optional[Rider]:
        return next((r for r in self.riders if r.username == username), None)

    def replace_rider(self, rider: Rider) -> None:
        _replace(self.riders, rider)

    # =========================================================================
    # КЛИЕНТЫ
    # =========================================================================

    def append_client(self, build: Callable[[int], Client]) -> Client:
        client = build(self.next_client_id)
        self.clients.append(client)
        self.next_client_id += 1
        return client

    def find_client(self, client_id: int) -> Optional[Client]:
        return _lookup(self.clients, client_id)

    def get_client(self, client_id: int) -> Client:
        client = self.find_client(client_id)
        if client is None:
            raise NotFoundError(f"Client {client_id} not found", details={"client_id": client_id})
        return client

    def find_client_by_username(self, username: str) -> Optional[Client]:
        return next((c for c in self.clients if c.username == username), None)
