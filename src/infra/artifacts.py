# src/infra/artifacts.py
"""
Хранилище загруженных файлов (фото документов и подтверждений доставки).

Файлы сохраняются под уникальным именем <поле>_<epoch-мс>_<случайное>.<расширение>;
в леджер записывается только это имя.
"""

from __future__ import annotations

import asyncio
import re
import secrets
import time
from pathlib import Path

from src.common.errors import PersistenceError, ValidationError
from src.common.logger import log_error

_SAFE_EXT = re.compile(r"^[A-Za-z0-9]{1,10}$")
_SAFE_REF = re.compile(r"^[A-Za-z0-9_.-]+$")


class LocalArtifactStore:
    """Файлы в локальном каталоге загрузок."""

    def __init__(self, root: str | Path, max_bytes: int = 10 * 1024 * 1024) -> None:
        self._root = Path(root)
        self._max_bytes = max_bytes

    @property
    def root(self) -> Path:
        return self._root

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    @staticmethod
    def make_name(field: str, filename: str | None) -> str:
        """Генерирует уникальное имя файла с сохранением расширения."""
        ext = Path(filename or "").suffix.lstrip(".").lower()
        if not _SAFE_EXT.match(ext):
            ext = "bin"
        return f"{field}_{int(time.time() * 1000)}_{secrets.token_hex(4)}.{ext}"

    def path_for(self, ref: str) -> Path:
        """
        Путь к файлу по ссылке.

        Raises:
            ValidationError: Ссылка содержит недопустимые символы
        """
        if not _SAFE_REF.match(ref) or ref.startswith("."):
            raise ValidationError("Invalid file reference", details={"ref": ref})
        return self._root / ref

    def _write(self, path: Path, content: bytes) -> None:
        self._root.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)

    async def save(self, field: str, filename: str | None, content: bytes) -> str:
        """
        Сохраняет файл и возвращает ссылку на него.

        Args:
            field: Имя поля формы (validId, selfie, pickup, dropoff)
            filename: Исходное имя файла
            content: Содержимое

        Raises:
            ValidationError: Файл пустой или превышает лимит
            PersistenceError: Ошибка записи на диск
        """
        if not content:
            raise ValidationError(f"File '{field}' is empty", details={"field": field})
        if len(content) > self._max_bytes:
            raise ValidationError(
                f"File '{field}' is too large",
                details={"field": field, "max_bytes": self._max_bytes},
            )

        ref = self.make_name(field, filename)
        try:
            await asyncio.to_thread(self._write, self._root / ref, content)
        except OSError as e:
            await log_error(f"Не удалось сохранить файл {ref}: {e}")
            raise PersistenceError("Failed to store file") from e
        return ref

    async def delete(self, ref: str) -> None:
        """Удаляет файл; отсутствующий файл не считается ошибкой."""
        path = self.path_for(ref)
        try:
            await asyncio.to_thread(path.unlink, True)
        except OSError as e:
            await log_error(f"Не удалось удалить файл {ref}: {e}")
