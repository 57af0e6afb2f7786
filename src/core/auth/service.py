# src/core/auth/service.py
"""
Вход участников и проверка токенов.
"""

from __future__ import annotations

import asyncio
import hmac
from typing import TYPE_CHECKING

from src.common.constants import ADMIN_PRINCIPAL_ID, PrincipalKind, TypeMsg
from src.common.errors import AuthError
from src.common.logger import log_info
from src.core.auth.models import Principal
from src.core.auth.passwords import is_password_hash, verify_password
from src.core.auth.tokens import TokenService

if TYPE_CHECKING:
    from src.core.clients.models import Client
    from src.core.clients.service import ClientService
    from src.core.riders.models import Rider
    from src.core.riders.service import RiderService


class AuthService:
    """
    Провайдер идентификации.

    Администратор один и задаётся конфигурацией. Пароль администратора
    может быть указан открытым текстом или хэшем pbkdf2_sha256; пустой
    пароль запрещает вход администратора.
    """

    def __init__(
        self,
        tokens: TokenService,
        riders: "RiderService",
        clients: "ClientService",
        *,
        admin_username: str,
        admin_password: str,
    ) -> None:
        self._tokens = tokens
        self._riders = riders
        self._clients = clients
        self._admin_username = admin_username
        self._admin_password = admin_password

    async def _check_admin_password(self, password: str) -> bool:
        if not self._admin_password:
            return False
        if is_password_hash(self._admin_password):
            return await asyncio.to_thread(verify_password, password, self._admin_password)
        return hmac.compare_digest(password.encode("utf-8"), self._admin_password.encode("utf-8"))

    async def login_admin(self, username: str | None, password: str | None) -> str:
        """
        Вход администратора.

        Returns:
            Токен

        Raises:
            AuthError: Неверные учётные данные
        """
        if not username or not password:
            raise AuthError("Invalid credentials")

        name_ok = hmac.compare_digest(username.encode("utf-8"), self._admin_username.encode("utf-8"))
        password_ok = await self._check_admin_password(password)
        if not (name_ok and password_ok):
            raise AuthError("Invalid credentials")

        await log_info("Вход администратора", type_msg=TypeMsg.INFO)
        return self._tokens.issue(Principal(kind=PrincipalKind.ADMIN, id=ADMIN_PRINCIPAL_ID))

    async def login_rider(self, username: str | None, password: str | None) -> tuple[str, "Rider"]:
        """Вход курьера: токен и запись курьера."""
        rider = await self._riders.authenticate(username, password)
        token = self._tokens.issue(Principal(kind=PrincipalKind.RIDER, id=rider.id))
        await log_info(f"Вход курьера {rider.id}", type_msg=TypeMsg.INFO)
        return token, rider

    async def login_client(self, username: str | None, password: str | None) -> tuple[str, "Client"]:
        """Вход клиента: токен и запись клиента."""
        client = await self._clients.authenticate(username, password)
        token = self._tokens.issue(Principal(kind=PrincipalKind.CLIENT, id=client.id))
        await log_info(f"Вход клиента {client.id}", type_msg=TypeMsg.INFO)
        return token, client

    def authenticate(self, token: str | None) -> Principal:
        """
        Проверяет токен запроса.

        Raises:
            AuthError: Токен отсутствует или недействителен
        """
        if not token:
            raise AuthError("Missing token")
        return self._tokens.verify(token)
