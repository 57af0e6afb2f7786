# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Awaitable, Callable
from unittest.mock import AsyncMock

import pytest

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ADMIN_USERNAME", "admin")
os.environ.setdefault("ADMIN_PASSWORD", "admin-pass")
os.environ.setdefault("PASSWORD_HASH_ITERATIONS", "1000")
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("DB_PASSWORD", "test_password")

from src.config.loader import AuthSettings, Settings, StorageSettings  # noqa: E402
from src.core.assignment.service import AssignmentService  # noqa: E402
from src.core.clients.models import Client, ClientCreateDTO  # noqa: E402
from src.core.clients.service import ClientService  # noqa: E402
from src.core.orders.models import Order, OrderCreateDTO  # noqa: E402
from src.core.orders.service import OrderService  # noqa: E402
from src.core.riders.models import Rider, RiderCreateDTO  # noqa: E402
from src.core.riders.service import RiderService  # noqa: E402
from src.infra.storage import AggregateStore, JsonFileAggregateStore, MemoryAggregateStore  # noqa: E402


TEST_ITERATIONS = 1000


# =============================================================================
# ФИКСТУРЫ КОНФИГУРАЦИИ
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def config_path(project_root: Path) -> Path:
    """Путь к файлу конфигурации."""
    return project_root / "config" / "config.json"


@pytest.fixture
def mock_config() -> dict[str, Any]:
    """Мок конфигурации для тестов."""
    return {
        "_comment_system": "test",
        "PROJECT_NAME": "kabalen_delivery_test",
        "VERSION": "1.0.0-test",
        "DEBUG": True,
        "ENVIRONMENT": "test",
        "LOG_LEVEL": "DEBUG",
        "LOG_FORMAT": "colored",
        "LOG_TO_FILE": False,
        "LOG_FILE_PATH": "logs/test.log",
        "HOST": "127.0.0.1",
        "PORT": 10001,
        "ALLOWED_ORIGINS": ["http://localhost:3000"],
        "SECRET_KEY": "config-secret",
        "TOKEN_TTL_HOURS": 6,
        "ADMIN_USERNAME": "root",
        "ADMIN_PASSWORD": "",
        "PASSWORD_HASH_ITERATIONS": 5000,
        "STORAGE_BACKEND": "file",
        "DATA_FILE": "data/test.json",
        "UPLOAD_DIR": "data/test_uploads",
        "MAX_UPLOAD_BYTES": 1024,
        "DB_HOST": "localhost",
        "DB_PORT": 5432,
        "DB_NAME": "kabalen_test",
        "DB_USER": "postgres",
        "DB_PASSWORD": "test_password",
        "DB_MIN_POOL_SIZE": 1,
        "DB_MAX_POOL_SIZE": 5,
        "DB_COMMAND_TIMEOUT": 30,
    }


@pytest.fixture
def temp_config_file(tmp_path: Path, mock_config: dict[str, Any]) -> Path:
    """Создаёт временный файл конфигурации."""
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps(mock_config, ensure_ascii=False, indent=2))
    return config_file


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Настройки с хранилищем в памяти и каталогом загрузок во временной папке."""
    return Settings(
        auth=AuthSettings(
            SECRET_KEY="test-secret-key",
            ADMIN_USERNAME="admin",
            ADMIN_PASSWORD="admin-pass",
            PASSWORD_HASH_ITERATIONS=TEST_ITERATIONS,
        ),
        storage=StorageSettings(
            BACKEND="memory",
            DATA_FILE=str(tmp_path / "data.json"),
            UPLOAD_DIR=str(tmp_path / "uploads"),
            MAX_UPLOAD_BYTES=1024,
        ),
    )


# =============================================================================
# ФИКСТУРЫ ХРАНИЛИЩА И СЕРВИСОВ
# =============================================================================

@pytest.fixture
def store(request: pytest.FixtureRequest, tmp_path: Path) -> AggregateStore:
    """
    Пустое хранилище: в памяти по умолчанию.

    С indirect-параметром "file" используется JSON-файл, у которого
    чтение и запись уступают управление циклу событий.
    """
    if getattr(request, "param", "memory") == "file":
        return JsonFileAggregateStore(tmp_path / "data.json")
    return MemoryAggregateStore()


@pytest.fixture
def order_service(store: AggregateStore) -> OrderService:
    return OrderService(store)


@pytest.fixture
def assignment_service(store: AggregateStore) -> AssignmentService:
    return AssignmentService(store)


@pytest.fixture
def rider_service(store: AggregateStore) -> RiderService:
    return RiderService(store, hash_iterations=TEST_ITERATIONS)


@pytest.fixture
def client_service(store: AggregateStore) -> ClientService:
    return ClientService(store, hash_iterations=TEST_ITERATIONS)


@pytest.fixture
def mock_db() -> AsyncMock:
    """Мок менеджера базы данных."""
    db = AsyncMock()
    db.fetchrow = AsyncMock(return_value=None)
    db.execute = AsyncMock(return_value="INSERT 0 1")
    db.fetchval = AsyncMock(return_value=None)
    return db


# =============================================================================
# ФАБРИКИ ДАННЫХ
# =============================================================================

@pytest.fixture
def make_rider(rider_service: RiderService) -> Callable[..., Awaitable[Rider]]:
    """Регистрирует курьера через сервис."""
    async def _make(username: str = "rider1", password: str = "secret") -> Rider:
        return await rider_service.register(
            RiderCreateDTO(name=f"Rider {username}", phone="09170000001", username=username, password=password)
        )
    return _make


@pytest.fixture
def make_client(client_service: ClientService) -> Callable[..., Awaitable[Client]]:
    """Регистрирует клиента через сервис."""
    async def _make(username: str = "client1", password: str = "secret") -> Client:
        return await client_service.register(
            ClientCreateDTO(
                fullname="Juan Dela Cruz",
                address="Poblacion, Angeles",
                phone="09171234567",
                username=username,
                password=password,
                valid_id="validId_1_a.jpg",
                selfie="selfie_1_b.jpg",
            )
        )
    return _make


@pytest.fixture
def make_order(
    order_service: OrderService,
    make_client: Callable[..., Awaitable[Client]],
) -> Callable[..., Awaitable[Order]]:
    """Создаёт заказ клиента (клиент регистрируется при первом вызове)."""
    clients: list[Client] = []

    async def _make(pickup: str = "SM Clark", dropoff: str = "Marquee Mall", **fields: Any) -> Order:
        if not clients:
            clients.append(await make_client())
        return await order_service.create_from_client(
            clients[0].id, OrderCreateDTO(pickup=pickup, dropoff=dropoff, **fields)
        )
    return _make
