# src/core/auth/__init__.py
"""
Аутентификация: пароли, токены, вход участников.
"""

from src.core.auth.models import Principal, LoginRequest
from src.core.auth.passwords import hash_password, verify_password
from src.core.auth.tokens import TokenService
from src.core.auth.service import AuthService

__all__ = [
    "Principal",
    "LoginRequest",
    "hash_password",
    "verify_password",
    "TokenService",
    "AuthService",
]
