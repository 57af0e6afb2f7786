# src/infra/storage.py
"""
Хранилища агрегата леджера.

Каждая команда выполняется как одна транзакция над всем агрегатом:
загрузка последней версии, изменение рабочей копии и сохранение с
версией +1. Если тело транзакции бросило исключение, ничего не
сохраняется. Транзакции одного хранилища строго сериализованы.
"""

from __future__ import annotations

import asyncio
import fcntl
import json
import os
import tempfile
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator

import asyncpg
from pydantic import ValidationError as PydanticValidationError

from src.common.constants import StorageBackend, TypeMsg
from src.common.errors import PersistenceError
from src.common.logger import log_error, log_info
from src.core.ledger.state import LedgerState
from src.infra.database import DatabaseManager

# Пауза между попытками взять файловую блокировку, секунды
LOCK_POLL_INTERVAL = 0.01


class AggregateStore(ABC):
    """Базовое хранилище: единственный писатель в пределах процесса."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()

    @abstractmethod
    async def _load(self) -> LedgerState:
        """Читает последнюю сохранённую версию агрегата."""

    @abstractmethod
    async def _save(self, state: LedgerState) -> None:
        """Атомарно сохраняет агрегат."""

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[LedgerState, None]:
        """
        Транзакция над агрегатом.

        Yields:
            Рабочая копия агрегата. Изменения сохраняются только при
            выходе из блока без исключения.

        Raises:
            PersistenceError: Хранилище недоступно
        """
        async with self._lock:
            current = await self._load()
            working = current.model_copy(deep=True)
            yield working
            working.version = current.version + 1
            await self._save(working)

    async def snapshot(self) -> LedgerState:
        """Согласованная копия агрегата для чтения."""
        async with self._lock:
            state = await self._load()
            return state.model_copy(deep=True)

    async def close(self) -> None:
        """Освобождает ресурсы хранилища."""


# =============================================================================
# ПАМЯТЬ
# =============================================================================

class MemoryAggregateStore(AggregateStore):
    """Хранилище в памяти процесса (тесты, разработка)."""

    def __init__(self, initial: LedgerState | None = None) -> None:
        super().__init__()
        self._state = initial or LedgerState()

    async def _load(self) -> LedgerState:
        return self._state

    async def _save(self, state: LedgerState) -> None:
        self._state = state


# =============================================================================
# JSON ФАЙЛ
# =============================================================================

class JsonFileAggregateStore(AggregateStore):
    """
    Хранилище в одном JSON-файле.

    Запись идёт во временный файл в том же каталоге с последующим
    os.replace, поэтому читатель видит либо старую, либо новую версию.
    Транзакция держит эксклюзивную flock-блокировку на файле рядом с
    данными (data.json.lock), чтение держит разделяемую. Так пишут по
    очереди и разные экземпляры, и разные процессы.
    """

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self._path = Path(path)
        self._lock_path = self._path.with_name(f"{self._path.name}.lock")

    @property
    def path(self) -> Path:
        return self._path

    @property
    def lock_path(self) -> Path:
        return self._lock_path

    @asynccontextmanager
    async def _file_lock(self, exclusive: bool) -> AsyncGenerator[None, None]:
        """
        Блокировка файла данных на уровне ОС.

        Args:
            exclusive: True для записи, False для чтения

        Raises:
            PersistenceError: Файл блокировки недоступен
        """
        mode = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
        try:
            self._lock_path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self._lock_path, os.O_RDWR | os.O_CREAT, 0o644)
        except OSError as e:
            await log_error(f"Не удалось открыть {self._lock_path}: {e}")
            raise PersistenceError("Failed to lock data", details={"path": str(self._path)}) from e

        try:
            while True:
                try:
                    fcntl.flock(fd, mode | fcntl.LOCK_NB)
                    break
                except BlockingIOError:
                    await asyncio.sleep(LOCK_POLL_INTERVAL)
            yield
        finally:
            # Закрытие дескриптора снимает блокировку
            os.close(fd)

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[LedgerState, None]:
        async with self._lock, self._file_lock(exclusive=True):
            current = await self._load()
            working = current.model_copy(deep=True)
            yield working
            working.version = current.version + 1
            await self._save(working)

    async def snapshot(self) -> LedgerState:
        async with self._lock, self._file_lock(exclusive=False):
            state = await self._load()
            return state.model_copy(deep=True)

    def _read(self) -> dict[str, Any] | None:
        if not self._path.exists():
            return None
        with open(self._path, "r", encoding="utf-8") as f:
            return json.load(f)

    def _write(self, payload: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self._path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    async def _load(self) -> LedgerState:
        try:
            payload = await asyncio.to_thread(self._read)
            if payload is None:
                return LedgerState()
            return LedgerState.from_payload(payload)
        except (OSError, json.JSONDecodeError, PydanticValidationError) as e:
            await log_error(f"Не удалось прочитать {self._path}: {e}")
            raise PersistenceError("Failed to read data", details={"path": str(self._path)}) from e

    async def _save(self, state: LedgerState) -> None:
        try:
            await asyncio.to_thread(self._write, state.to_payload())
        except OSError as e:
            await log_error(f"Не удалось записать {self._path}: {e}")
            raise PersistenceError("Failed to save data", details={"path": str(self._path)}) from e


# =============================================================================
# POSTGRESQL
# =============================================================================

class PostgresAggregateStore(AggregateStore):
    """
    Хранилище в одной строке таблицы ledger_state.

    Строка блокируется через SELECT ... FOR UPDATE на время транзакции,
    поэтому несколько процессов сервиса также пишут по очереди.
    """

    SELECT_FOR_UPDATE = "SELECT version, payload FROM ledger_state WHERE id = 1 FOR UPDATE"
    SELECT = "SELECT version, payload FROM ledger_state WHERE id = 1"
    UPSERT = """
        INSERT INTO ledger_state (id, version, payload, updated_at)
        VALUES (1, $1, $2::jsonb, NOW())
        ON CONFLICT (id) DO UPDATE
        SET version = EXCLUDED.version, payload = EXCLUDED.payload, updated_at = NOW()
    """

    def __init__(self, db: DatabaseManager) -> None:
        super().__init__()
        self._db = db

    @staticmethod
    def _decode(row: Any) -> LedgerState:
        if row is None:
            return LedgerState()
        payload = row["payload"]
        try:
            if isinstance(payload, str):
                payload = json.loads(payload)
            state = LedgerState.from_payload(payload or {})
        except (json.JSONDecodeError, PydanticValidationError) as e:
            raise PersistenceError("Stored data is corrupted") from e
        state.version = row["version"]
        return state

    async def _load(self) -> LedgerState:
        try:
            return self._decode(await self._db.fetchrow(self.SELECT))
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            await log_error(f"Не удалось прочитать ledger_state: {e}")
            raise PersistenceError("Failed to read data") from e

    async def _save(self, state: LedgerState) -> None:
        try:
            await self._db.execute(self.UPSERT, state.version, json.dumps(state.to_payload()))
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            await log_error(f"Не удалось записать ledger_state: {e}")
            raise PersistenceError("Failed to save data") from e

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[LedgerState, None]:
        async with self._lock:
            try:
                async with self._db.transaction() as conn:
                    current = self._decode(await conn.fetchrow(self.SELECT_FOR_UPDATE))
                    working = current.model_copy(deep=True)
                    yield working
                    working.version = current.version + 1
                    await conn.execute(
                        self.UPSERT, working.version, json.dumps(working.to_payload())
                    )
            except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
                await log_error(f"Транзакция ledger_state не выполнена: {e}")
                raise PersistenceError("Failed to save data") from e

    async def close(self) -> None:
        await self._db.disconnect()


async def create_store(settings: Any) -> AggregateStore:
    """
    Создаёт хранилище согласно настройкам storage.BACKEND.

    Args:
        settings: Настройки приложения

    Returns:
        Готовое к работе хранилище
    """
    backend = StorageBackend(settings.storage.BACKEND)

    if backend == StorageBackend.MEMORY:
        store: AggregateStore = MemoryAggregateStore()
    elif backend == StorageBackend.FILE:
        store = JsonFileAggregateStore(settings.storage.DATA_FILE)
    else:
        from src.infra.database import init_db

        store = PostgresAggregateStore(await init_db(settings))

    await log_info(f"Хранилище леджера: {backend.value}", type_msg=TypeMsg.INFO)
    return store
