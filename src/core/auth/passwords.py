# src/core/auth/passwords.py
"""
Хэширование паролей: соль + PBKDF2-HMAC-SHA256.

Формат хранения: pbkdf2_sha256$<итерации>$<соль hex>$<хэш hex>.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets

ALGORITHM = "pbkdf2_sha256"
SALT_BYTES = 16


def hash_password(password: str, iterations: int) -> str:
    """
    Хэширует пароль со случайной солью.

    Args:
        password: Пароль в открытом виде
        iterations: Количество итераций PBKDF2

    Returns:
        Строка для хранения
    """
    salt = secrets.token_bytes(SALT_BYTES)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return f"{ALGORITHM}${iterations}${salt.hex()}${digest.hex()}"


def is_password_hash(value: str) -> bool:
    """Похожа ли строка на результат hash_password."""
    return value.startswith(f"{ALGORITHM}$") and value.count("$") == 3


def verify_password(password: str, stored: str) -> bool:
    """
    Проверяет пароль против сохранённого хэша за постоянное время.

    Повреждённый хэш считается несовпадением.
    """
    try:
        algorithm, iterations_raw, salt_hex, digest_hex = stored.split("$")
        iterations = int(iterations_raw)
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(digest_hex)
    except ValueError:
        return False

    if algorithm != ALGORITHM or iterations <= 0:
        return False

    candidate = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return hmac.compare_digest(candidate, expected)
