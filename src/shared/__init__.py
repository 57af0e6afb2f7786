# src/shared/__init__.py
"""
Общий код между слоями сервиса.

Модули:
- models: модели ответов API (ошибки, health)
"""

__all__: list[str] = []
