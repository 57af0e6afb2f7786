# src/services/delivery_api/dependencies.py
"""
Dependency Injection для API доставки.

Контейнер сервисов создаётся в lifespan и хранится в app.state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Annotated

from fastapi import Depends, Header, Request

from src.common.errors import PermissionDeniedError
from src.core.assignment.service import AssignmentService
from src.core.auth.models import Principal
from src.core.auth.service import AuthService
from src.core.auth.tokens import TokenService
from src.core.clients.service import ClientService
from src.core.orders.service import OrderService
from src.core.riders.service import RiderService
from src.infra.artifacts import LocalArtifactStore
from src.infra.storage import AggregateStore, create_store

if TYPE_CHECKING:
    from src.config.loader import Settings


@dataclass
class ServiceContainer:
    """Все сервисы приложения поверх одного хранилища."""

    store: AggregateStore
    artifacts: LocalArtifactStore
    auth: AuthService
    orders: OrderService
    assignment: AssignmentService
    riders: RiderService
    clients: ClientService

    async def close(self) -> None:
        await self.store.close()


def build_container(
    settings: "Settings",
    store: AggregateStore,
    artifacts: LocalArtifactStore | None = None,
) -> ServiceContainer:
    """
    Собирает сервисы поверх готового хранилища.

    Args:
        settings: Настройки приложения
        store: Хранилище агрегата
        artifacts: Хранилище файлов (по умолчанию storage.UPLOAD_DIR)
    """
    iterations = settings.auth.PASSWORD_HASH_ITERATIONS
    riders = RiderService(store, hash_iterations=iterations)
    clients = ClientService(store, hash_iterations=iterations)
    tokens = TokenService(settings.auth.SECRET_KEY, ttl_hours=settings.auth.TOKEN_TTL_HOURS)

    return ServiceContainer(
        store=store,
        artifacts=artifacts or LocalArtifactStore(
            settings.storage.UPLOAD_DIR, max_bytes=settings.storage.MAX_UPLOAD_BYTES
        ),
        auth=AuthService(
            tokens,
            riders,
            clients,
            admin_username=settings.auth.ADMIN_USERNAME,
            admin_password=settings.auth.ADMIN_PASSWORD,
        ),
        orders=OrderService(store),
        assignment=AssignmentService(store),
        riders=riders,
        clients=clients,
    )


async def init_dependencies(settings: "Settings") -> ServiceContainer:
    """Создаёт хранилище по настройкам и собирает контейнер."""
    store = await create_store(settings)
    return build_container(settings, store)


def get_container(request: Request) -> ServiceContainer:
    """Получить контейнер сервисов."""
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise RuntimeError("Сервисы не инициализированы. Запустите приложение через lifespan")
    return container


Container = Annotated[ServiceContainer, Depends(get_container)]


# === AUTH DEPENDENCIES ===

def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


async def require_principal(
    container: Container,
    authorization: Annotated[str | None, Header()] = None,
) -> Principal:
    """
    Проверить токен из заголовка Authorization: Bearer <token>.

    Все защищённые endpoints требуют этот заголовок.
    """
    return container.auth.authenticate(_bearer_token(authorization))


CurrentPrincipal = Annotated[Principal, Depends(require_principal)]


async def require_admin(principal: CurrentPrincipal) -> Principal:
    if not principal.is_admin:
        raise PermissionDeniedError("Admin access required")
    return principal


async def require_rider(principal: CurrentPrincipal) -> Principal:
    if not principal.is_rider:
        raise PermissionDeniedError("Rider access required")
    return principal


async def require_client(principal: CurrentPrincipal) -> Principal:
    if not principal.is_client:
        raise PermissionDeniedError("Client access required")
    return principal


AdminPrincipal = Annotated[Principal, Depends(require_admin)]
RiderPrincipal = Annotated[Principal, Depends(require_rider)]
ClientPrincipal = Annotated[Principal, Depends(require_client)]
