#!/usr/bin/env python3
# entrypoint_delivery_api.py
"""
Точка входа для контейнера Delivery API.
Перед запуском API применяет схему БД, если выбран бэкенд postgres.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

# Добавляем корневую директорию проекта в путь
project_root = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(project_root))

from main import main


async def run() -> None:
    await main(mode="migrate")
    await main(mode="api")


if __name__ == "__main__":
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        print("\nПолучен сигнал остановки, завершение работы...")
