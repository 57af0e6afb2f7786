# src/common/errors.py
"""
Иерархия ошибок ядра.

Каждая ошибка относится к одной операции и означает, что операция
отклонена без изменения леджера. Автоматических повторов нет.
"""

from __future__ import annotations

from typing import Any


class DeliveryError(Exception):
    """Базовая ошибка сервиса доставки."""

    error_code: str = "delivery_error"
    status_code: int = 500

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class AuthError(DeliveryError):
    """Отсутствующий, невалидный или просроченный токен; неверные учётные данные."""

    error_code = "auth_error"
    status_code = 401


class PermissionDeniedError(DeliveryError):
    """Участник аутентифицирован, но его роль не допускает команду."""

    error_code = "permission_denied"
    status_code = 403


class ValidationError(DeliveryError):
    """Некорректные или отсутствующие входные данные."""

    error_code = "validation_error"
    status_code = 400


class NotFoundError(DeliveryError):
    """Заказ, курьер или клиент не существует."""

    error_code = "not_found"
    status_code = 404


class ConflictError(DeliveryError):
    """Нарушен guard перехода состояния (проигравший в гонке, терминальный статус)."""

    error_code = "conflict"
    status_code = 403


class ForbiddenError(ConflictError):
    """Заказ принадлежит другому курьеру."""

    error_code = "forbidden"


class PersistenceError(DeliveryError):
    """Хранилище недоступно на чтение или запись."""

    error_code = "persistence_error"
    status_code = 500
