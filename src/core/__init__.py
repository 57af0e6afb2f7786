# src/core/__init__.py
"""
Доменный слой (Core Domain).
Бизнес-логика доставки, независимая от HTTP и способа хранения.

Подпакеты:
- orders: леджер заказов
- assignment: захват и завершение заказов курьерами
- riders: справочник курьеров
- clients: реестр клиентов
- auth: пароли, токены, вход
- ledger: общий версионированный агрегат
"""
