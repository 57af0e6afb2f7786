# src/core/clients/service.py
"""
Реестр клиентов: саморегистрация и вход.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from src.common.constants import TypeMsg
from src.common.errors import AuthError, ValidationError
from src.common.logger import log_info
from src.common.validators import require_fields
from src.core.auth.passwords import hash_password, verify_password
from src.core.clients.models import Client, ClientCreateDTO

if TYPE_CHECKING:
    from src.infra.storage import AggregateStore


class ClientService:
    """Сервис клиентов. Запись клиента после регистрации не меняется."""

    def __init__(self, store: "AggregateStore", *, hash_iterations: int = 260000) -> None:
        self._store = store
        self._hash_iterations = hash_iterations

    async def register(self, dto: ClientCreateDTO) -> Client:
        """
        Регистрирует клиента.

        Args:
            dto: Поля профиля, пароль и ссылки на два загруженных файла

        Raises:
            ValidationError: Не заполнены поля/файлы или логин занят
        """
        fields = require_fields(
            "All fields including files are required",
            fullname=dto.fullname,
            address=dto.address,
            phone=dto.phone,
            username=dto.username,
            password=dto.password,
            valid_id=dto.valid_id,
            selfie=dto.selfie,
        )
        password_hash = await asyncio.to_thread(
            hash_password, dto.password, self._hash_iterations
        )

        async with self._store.transaction() as state:
            if state.find_client_by_username(fields["username"]) is not None:
                raise ValidationError("Username already taken", details={"username": fields["username"]})
            client = state.append_client(
                lambda client_id: Client(
                    id=client_id,
                    fullname=fields["fullname"],
                    address=fields["address"],
                    phone=fields["phone"],
                    username=fields["username"],
                    password_hash=password_hash,
                    valid_id=fields["valid_id"],
                    selfie=fields["selfie"],
                )
            )

        await log_info(f"Клиент {client.id} ({client.username}) зарегистрирован", type_msg=TypeMsg.INFO)
        return client

    async def authenticate(self, username: str | None, password: str | None) -> Client:
        """
        Проверяет логин и пароль клиента.

        Raises:
            AuthError: Неверные учётные данные
        """
        if not username or not password:
            raise AuthError("Invalid username or password")

        state = await self._store.snapshot()
        client = state.find_client_by_username(username.strip())
        if client is None:
            raise AuthError("Invalid username or password")

        if not await asyncio.to_thread(verify_password, password, client.password_hash):
            raise AuthError("Invalid username or password")
        return client

    async def get_client(self, client_id: int) -> Client:
        state = await self._store.snapshot()
        return state.get_client(client_id)
