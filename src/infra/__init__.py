# src/infra/__init__.py
"""
Инфраструктурный слой.
Хранилища леджера (память, JSON-файл, PostgreSQL) и файлов.
"""

from src.infra.database import DatabaseManager, get_db
from src.infra.storage import (
    AggregateStore,
    MemoryAggregateStore,
    JsonFileAggregateStore,
    PostgresAggregateStore,
    create_store,
)
from src.infra.artifacts import LocalArtifactStore

__all__ = [
    "DatabaseManager",
    "get_db",
    "AggregateStore",
    "MemoryAggregateStore",
    "JsonFileAggregateStore",
    "PostgresAggregateStore",
    "create_store",
    "LocalArtifactStore",
]
