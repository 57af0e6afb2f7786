# src/common/validators.py
"""
Проверки входных данных команд.
"""

from __future__ import annotations

import math
from typing import Any, Optional

from src.common.errors import ValidationError


def clean_text(value: Optional[str]) -> str:
    """Обрезает пробелы; None превращается в пустую строку."""
    return (value or "").strip()


def require_fields(message: str, **fields: Optional[str]) -> dict[str, str]:
    """
    Проверяет, что все текстовые поля заполнены.

    Returns:
        Словарь очищенных значений

    Raises:
        ValidationError: Хотя бы одно поле пустое
    """
    cleaned = {name: clean_text(value) for name, value in fields.items()}
    missing = [name for name, value in cleaned.items() if not value]
    if missing:
        raise ValidationError(message, details={"missing": missing})
    return cleaned


def _as_number(field: str, value: Any) -> float:
    # bool является подклассом int, но не числом в смысле API
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field} must be a number", details={"field": field})
    number = float(value)
    if not math.isfinite(number):
        raise ValidationError(f"{field} must be a finite number", details={"field": field})
    return number


def non_negative_amount(field: str, value: Any, default: float = 0.0) -> float:
    """Конечное число >= 0; None заменяется значением по умолчанию."""
    if value is None:
        return default
    number = _as_number(field, value)
    if number < 0:
        raise ValidationError(f"{field} must not be negative", details={"field": field})
    return number


def positive_amount(field: str, value: Any) -> float:
    """Конечное число > 0."""
    if value is None:
        raise ValidationError(f"{field} is required", details={"field": field})
    number = _as_number(field, value)
    if number <= 0:
        raise ValidationError(f"{field} must be a positive number", details={"field": field})
    return number
