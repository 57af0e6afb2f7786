#!/usr/bin/env python3
# main.py
"""
Главная точка входа сервиса доставки Kabalen.
Запускает HTTP API или применяет схему БД в зависимости от аргументов.
"""

from __future__ import annotations

import asyncio
import sys

from src.config import settings
from src.common.logger import setup_logging, log_info, log_error
from src.common.constants import StorageBackend, TypeMsg


async def run_api() -> None:
    """Запускает HTTP API доставки."""
    import uvicorn

    await log_info(
        f"Запуск Delivery API на {settings.server.HOST}:{settings.server.PORT} "
        f"(хранилище: {settings.storage.BACKEND.value})...",
        type_msg=TypeMsg.INFO,
    )

    config = uvicorn.Config(
        "src.services.delivery_api.app:app",
        host=settings.server.HOST,
        port=settings.server.PORT,
        reload=settings.system.DEBUG,
        log_level="debug" if settings.system.DEBUG else "info",
    )

    server = uvicorn.Server(config)
    try:
        await server.serve()
    except asyncio.CancelledError:
        await log_info("Delivery API: graceful shutdown", type_msg=TypeMsg.DEBUG)
        await server.shutdown()


async def run_migrate() -> None:
    """Применяет migrations/init.sql к PostgreSQL."""
    from src.infra.database import init_db, close_db

    if settings.storage.BACKEND != StorageBackend.POSTGRES:
        await log_info(
            f"STORAGE_BACKEND={settings.storage.BACKEND.value}: миграция не требуется",
            type_msg=TypeMsg.WARNING,
        )
        return

    try:
        await init_db(settings)
    finally:
        await close_db()


async def main(mode: str) -> None:
    """
    Главная функция.

    Args:
        mode: api или migrate
    """
    setup_logging()
    await log_info(
        f"{settings.system.PROJECT_NAME} v{settings.system.VERSION} ({settings.system.ENVIRONMENT}), режим: {mode}",
        type_msg=TypeMsg.INFO,
    )

    try:
        if mode == "api":
            await run_api()
        elif mode == "migrate":
            await run_migrate()
        else:
            await log_error(f"Неизвестный режим: {mode}")
    except asyncio.CancelledError:
        await log_info("Задача отменена, выполняется graceful shutdown", type_msg=TypeMsg.INFO)
    except Exception as e:
        await log_error(f"Критическая ошибка: {e}", exc_info=True)
        raise
    finally:
        await log_info("Приложение остановлено", type_msg=TypeMsg.INFO)


def print_usage() -> None:
    """Выводит справку по использованию."""
    print("""
Kabalen Delivery - заказы доставки, курьеры, подтверждение фото

Использование:
    python main.py [mode]

Режимы:
    api        - HTTP API (по умолчанию, порт из config.json / PORT)
    migrate    - применить migrations/init.sql (STORAGE_BACKEND=postgres)

Вспомогательные скрипты:
    python create_db.py            - создать базу PostgreSQL
    python create_dev_rider.py     - добавить тестового курьера
    """)


if __name__ == "__main__":
    mode = "api"

    if len(sys.argv) > 1:
        arg = sys.argv[1].lower()
        if arg in ("--help", "-h"):
            print_usage()
            sys.exit(0)
        elif arg in ("api", "migrate"):
            mode = arg
        else:
            print(f"Ошибка: неизвестный режим '{arg}'")
            print_usage()
            sys.exit(1)

    try:
        asyncio.run(main(mode))
    except KeyboardInterrupt:
        pass
