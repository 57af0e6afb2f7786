# src/core/riders/service.py
"""
Справочник курьеров: регистрация, начисление кредита, вход.
"""

from __future__ import annotations

import asyncio
import math
from typing import TYPE_CHECKING

from src.common.constants import TypeMsg
from src.common.errors import AuthError, ValidationError
from src.common.logger import log_info
from src.common.validators import positive_amount, require_fields
from src.core.auth.passwords import hash_password, verify_password
from src.core.riders.models import Rider, RiderCreateDTO

if TYPE_CHECKING:
    from src.infra.storage import AggregateStore


class RiderService:
    """
    Сервис курьеров.
    Единственный владелец записей курьеров, включая кредит.
    """

    def __init__(self, store: "AggregateStore", *, hash_iterations: int = 260000) -> None:
        """
        Args:
            store: Хранилище агрегата
            hash_iterations: Число итераций PBKDF2 для новых паролей
        """
        self._store = store
        self._hash_iterations = hash_iterations

    async def register(self, dto: RiderCreateDTO) -> Rider:
        """
        Регистрирует курьера с нулевым кредитом.

        Raises:
            ValidationError: Не заполнены поля или логин занят
        """
        fields = require_fields(
            "Name, phone, username and password are required",
            name=dto.name,
            phone=dto.phone,
            username=dto.username,
            password=dto.password,
        )
        password_hash = await asyncio.to_thread(
            hash_password, dto.password, self._hash_iterations
        )

        async with self._store.transaction() as state:
            if state.find_rider_by_username(fields["username"]) is not None:
                raise ValidationError("Username already taken", details={"username": fields["username"]})
            rider = state.append_rider(
                lambda rider_id: Rider(
                    id=rider_id,
                    name=fields["name"],
                    phone=fields["phone"],
                    username=fields["username"],
                    password_hash=password_hash,
                )
            )

        await log_info(f"Курьер {rider.id} ({rider.username}) зарегистрирован", type_msg=TypeMsg.INFO)
        return rider

    async def list_riders(self) -> list[Rider]:
        """Все курьеры в порядке ID."""
        state = await self._store.snapshot()
        return sorted(state.riders, key=lambda r: r.id)

    async def get_rider(self, rider_id: int) -> Rider:
        state = await self._store.snapshot()
        return state.get_rider(rider_id)

    async def adjust_credit(self, rider_id: int, delta: float) -> float:
        """
        Начисляет кредит курьеру. Списаний нет: баланс только растёт.

        Args:
            rider_id: ID курьера
            delta: Положительная сумма начисления

        Returns:
            Новый баланс

        Raises:
            ValidationError: Сумма не положительное конечное число
            NotFoundError: Курьер не найден
        """
        amount = positive_amount("amount", delta)

        async with self._store.transaction() as state:
            rider = state.get_rider(rider_id)
            balance = rider.credit + amount
            if not math.isfinite(balance):
                raise ValidationError("Credit balance overflow", details={"rider_id": rider_id})
            state.replace_rider(rider.model_copy(update={"credit": balance}))

        await log_info(
            f"Курьеру {rider_id} начислено {amount}, баланс {balance}",
            type_msg=TypeMsg.INFO,
        )
        return balance

    async def authenticate(self, username: str | None, password: str | None) -> Rider:
        """
        Проверяет логин и пароль курьера.

        Raises:
            AuthError: Неверные учётные данные
        """
        if not username or not password:
            raise AuthError("Invalid credentials")

        state = await self._store.snapshot()
        rider = state.find_rider_by_username(username.strip())
        if rider is None:
            raise AuthError("Invalid credentials")

        if not await asyncio.to_thread(verify_password, password, rider.password_hash):
            raise AuthError("Invalid credentials")
        return rider
