# src/core/auth/tokens.py
"""
Сессионные токены.

Токен: base64url(JSON payload) + "." + base64url(HMAC-SHA256(secret, payload)).
Payload: {"kind": ..., "sub": ..., "iat": ..., "exp": ...}.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from src.common.constants import PrincipalKind
from src.common.errors import AuthError
from src.core.auth.models import Principal


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64decode(value: str) -> bytes:
    padding = "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(value + padding)


class TokenService:
    """Выпуск и проверка подписанных токенов с ограниченным сроком жизни."""

    def __init__(
        self,
        secret_key: str,
        ttl_hours: int = 12,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Args:
            secret_key: Серверный ключ подписи
            ttl_hours: Время жизни токена в часах
            clock: Источник текущего времени (для тестов)
        """
        if not secret_key:
            raise ValueError("SECRET_KEY не задан")
        self._key = secret_key.encode("utf-8")
        self._ttl = timedelta(hours=ttl_hours)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _sign(self, body: str) -> str:
        return _b64encode(hmac.new(self._key, body.encode("ascii"), hashlib.sha256).digest())

    def issue(self, principal: Principal) -> str:
        """Выпускает токен для участника."""
        now = self._clock()
        payload = {
            "kind": principal.kind.value,
            "sub": principal.id,
            "iat": int(now.timestamp()),
            "exp": int((now + self._ttl).timestamp()),
        }
        body = _b64encode(json.dumps(payload, separators=(",", ":")).encode("utf-8"))
        return f"{body}.{self._sign(body)}"

    def verify(self, token: str) -> Principal:
        """
        Проверяет подпись и срок действия токена.

        Raises:
            AuthError: Токен повреждён, подделан или просрочен
        """
        body, sep, signature = token.partition(".")
        if not sep or not body or not signature:
            raise AuthError("Invalid token")

        # compare_digest не принимает не-ASCII строки
        if not body.isascii() or not signature.isascii():
            raise AuthError("Invalid token")
        if not hmac.compare_digest(self._sign(body), signature):
            raise AuthError("Invalid token")

        try:
            payload: dict[str, Any] = json.loads(_b64decode(body))
            kind = PrincipalKind(payload["kind"])
            subject = int(payload["sub"])
            expires_at = int(payload["exp"])
        except (binascii.Error, ValueError, KeyError, TypeError):
            raise AuthError("Invalid token")

        if self._clock().timestamp() >= expires_at:
            raise AuthError("Token expired")

        return Principal(kind=kind, id=subject)
