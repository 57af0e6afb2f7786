# src/core/auth/models.py
"""
Модели аутентификации.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from src.common.constants import PrincipalKind


class Principal(BaseModel):
    """Аутентифицированный участник: вид + числовой ID."""

    model_config = ConfigDict(frozen=True)

    kind: PrincipalKind
    id: int = Field(..., ge=0)

    @property
    def is_admin(self) -> bool:
        return self.kind == PrincipalKind.ADMIN

    @property
    def is_rider(self) -> bool:
        return self.kind == PrincipalKind.RIDER

    @property
    def is_client(self) -> bool:
        return self.kind == PrincipalKind.CLIENT


class LoginRequest(BaseModel):
    """Пара логин/пароль."""

    username: str | None = None
    password: str | None = None
