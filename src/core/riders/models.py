# src/core/riders/models.py
"""
Модели данных курьеров.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from src.core.orders.models import utcnow


class Rider(BaseModel):
    """Модель курьера."""

    id: int = Field(..., ge=1, description="ID курьера")
    name: str = Field(..., min_length=1, description="Имя")
    phone: str = Field(..., min_length=1, description="Телефон")
    username: str = Field(..., min_length=1, description="Логин")
    password_hash: str = Field(..., description="Хэш пароля")

    # Только растёт: начисления без списаний
    credit: float = Field(0.0, ge=0.0, allow_inf_nan=False, description="Накопленный кредит")

    created_at: datetime = Field(default_factory=utcnow, description="Дата регистрации")

    def to_public(self) -> "RiderPublic":
        """Проекция без учётных данных."""
        return RiderPublic.model_validate(self.model_dump(exclude={"password_hash"}))


class RiderPublic(BaseModel):
    """Курьер в ответах API."""

    id: int
    name: str
    phone: str
    username: str
    credit: float
    created_at: datetime


class RiderCreateDTO(BaseModel):
    """DTO для регистрации курьера администратором."""

    name: Optional[str] = None
    phone: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
