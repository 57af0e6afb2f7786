# src/core/clients/models.py
"""
Модели данных клиентов.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from src.core.orders.models import utcnow


class Client(BaseModel):
    """Модель клиента. После регистрации не изменяется."""

    id: int = Field(..., ge=1, description="ID клиента")
    fullname: str = Field(..., min_length=1, description="Полное имя")
    address: str = Field(..., min_length=1, description="Адрес")
    phone: str = Field(..., min_length=1, description="Телефон")
    username: str = Field(..., min_length=1, description="Логин")
    password_hash: str = Field(..., description="Хэш пароля")

    # Ссылки на артефакты, загруженные при регистрации
    valid_id: str = Field(..., min_length=1, description="Фото документа")
    selfie: str = Field(..., min_length=1, description="Селфи")

    created_at: datetime = Field(default_factory=utcnow, description="Дата регистрации")

    def to_public(self) -> "ClientPublic":
        """Проекция без учётных данных."""
        return ClientPublic.model_validate(self.model_dump(exclude={"password_hash"}))


class ClientPublic(BaseModel):
    """Клиент в ответах API."""

    id: int
    fullname: str
    address: str
    phone: str
    username: str
    valid_id: str
    selfie: str
    created_at: datetime


class ClientCreateDTO(BaseModel):
    """DTO для саморегистрации клиента."""

    fullname: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    valid_id: Optional[str] = None
    selfie: Optional[str] = None
