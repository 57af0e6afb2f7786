# src/core/clients/__init__.py
"""
Реестр клиентов.
"""

from src.core.clients.models import Client, ClientPublic, ClientCreateDTO
from src.core.clients.service import ClientService

__all__ = [
    "Client",
    "ClientPublic",
    "ClientCreateDTO",
    "ClientService",
]
