# src/services/delivery_api/__init__.py
"""
HTTP API сервиса доставки.
"""
