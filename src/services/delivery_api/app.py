# src/services/delivery_api/app.py
"""
FastAPI приложение сервиса доставки.

Endpoints:
- GET /health, GET /api - проверка работы
- POST /admin/login, /riders/login, /clients/login - вход
- POST /clients/register - регистрация клиента (multipart)
- POST|GET /clients/orders - заказы клиента
- POST|GET /admin/orders - ручные заказы и все заказы
- PUT /admin/orders/{id}/assign - назначение курьера
- POST|GET /admin/riders - курьеры
- POST /admin/riders/{id}/credit - начисление кредита
- GET /riders/orders - очередь курьера
- POST /riders/orders/{id}/claim|complete - принять/завершить заказ
- POST /orders/{id}/proof/{kind} - фото забора/доставки
- GET /uploads/{ref} - загруженный файл
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from src.common.constants import TypeMsg
from src.common.errors import DeliveryError, ValidationError
from src.common.logger import log_error, log_info
from src.shared.models.common import ErrorResponse, HealthStatus
from src.services.delivery_api.dependencies import ServiceContainer, init_dependencies
from src.services.delivery_api.routes import (
    admin_router,
    client_router,
    orders_router,
    rider_router,
)

if TYPE_CHECKING:
    from src.config.loader import Settings


SERVICE_NAME = "delivery_api"


def _error_response(error: DeliveryError) -> JSONResponse:
    body = ErrorResponse(error_code=error.error_code, message=error.message, details=error.details)
    return JSONResponse(status_code=error.status_code, content=body.model_dump())


def create_app(
    settings: "Settings | None" = None,
    container: ServiceContainer | None = None,
) -> FastAPI:
    """
    Создаёт приложение.

    Args:
        settings: Настройки (по умолчанию глобальные из config.json)
        container: Готовый контейнер сервисов; если не передан,
            создаётся в lifespan по storage.BACKEND

    Returns:
        FastAPI приложение
    """
    if settings is None:
        from src.config import settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Жизненный цикл приложения."""
        app.state.started_at = time.monotonic()
        owned = container is None
        app.state.container = container or await init_dependencies(settings)
        await log_info(f"{SERVICE_NAME} запущен", type_msg=TypeMsg.INFO)

        yield

        if owned:
            await app.state.container.close()
        app.state.container = None
        await log_info(f"{SERVICE_NAME} остановлен", type_msg=TypeMsg.INFO)

    app = FastAPI(
        title="Kabalen Delivery API",
        description="Заказы доставки, назначение курьеров и подтверждение доставки фото.",
        version=settings.system.VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # === ERROR HANDLERS ===

    @app.exception_handler(DeliveryError)
    async def delivery_error_handler(request: Request, exc: DeliveryError) -> JSONResponse:
        if exc.status_code >= 500:
            await log_error(f"{request.method} {request.url.path}: {exc.message}")
        else:
            await log_info(
                f"{request.method} {request.url.path} отклонён: {exc.error_code} ({exc.message})",
                type_msg=TypeMsg.WARNING,
            )
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
            for err in exc.errors()
        ]
        return _error_response(ValidationError("Invalid request", details={"errors": errors}))

    # === HEALTH CHECK ===

    @app.get("/health", response_model=HealthStatus, tags=["Health"])
    async def health_check(request: Request) -> HealthStatus:
        """Проверка здоровья сервиса."""
        started_at = getattr(request.app.state, "started_at", None)
        return HealthStatus(
            service=SERVICE_NAME,
            version=settings.system.VERSION,
            uptime_seconds=time.monotonic() - started_at if started_at is not None else None,
            dependencies={"storage": settings.storage.BACKEND.value},
        )

    @app.get("/api", response_class=PlainTextResponse, tags=["Health"])
    async def api_root() -> str:
        return "Kabalen Backend API is running"

    app.include_router(admin_router)
    app.include_router(rider_router)
    app.include_router(client_router)
    app.include_router(orders_router)

    return app


app = create_app()
