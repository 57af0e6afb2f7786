# src/services/__init__.py
"""
HTTP сервисы приложения.

Сервисы:
- delivery_api: FastAPI приложение доставки (заказы, курьеры, клиенты, фото)
"""

__all__: list[str] = []
