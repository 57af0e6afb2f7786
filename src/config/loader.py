# src/config/loader.py
"""
Загрузчик конфигурации проекта.
Единственный источник истины: config/config.json.
Секретные данные переопределяются из переменных окружения.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.common.constants import StorageBackend


# =============================================================================
# ОПРЕДЕЛЕНИЕ ПУТЕЙ
# =============================================================================

def get_project_root() -> Path:
    """Возвращает корневую директорию проекта."""
    return Path(__file__).parent.parent.parent


def get_config_path() -> Path:
    """
    Возвращает путь к файлу конфигурации.
    Переменная окружения DELIVERY_CONFIG_PATH позволяет подменить файл.
    """
    override = os.getenv("DELIVERY_CONFIG_PATH")
    if override:
        return Path(override)
    return get_project_root() / "config" / "config.json"


def load_config_json() -> dict[str, Any]:
    """Загружает config.json и возвращает словарь."""
    config_path = get_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Файл конфигурации не найден: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        return json.load(f)


def _resolve_path(value: str) -> str:
    """Относительные пути считаются от корня проекта."""
    path = Path(value)
    if not path.is_absolute():
        path = get_project_root() / path
    return str(path)


# =============================================================================
# PYDANTIC МОДЕЛИ КОНФИГУРАЦИИ
# =============================================================================

class SystemSettings(BaseModel):
    """Системные настройки."""
    PROJECT_NAME: str = "kabalen_delivery"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"


class LoggingSettings(BaseModel):
    """Настройки логирования."""
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "colored"
    LOG_TO_FILE: bool = False
    LOG_FILE_PATH: str = "logs/app.log"
    LOG_MAX_BYTES: int = 10485760


class ServerSettings(BaseModel):
    """Настройки HTTP сервера."""
    HOST: str = "0.0.0.0"
    PORT: int = 10000
    ALLOWED_ORIGINS: list[str] = Field(default_factory=lambda: [
        "http://localhost",
        "http://localhost:3000",
    ])


class AuthSettings(BaseModel):
    """Настройки аутентификации и токенов."""
    SECRET_KEY: str = ""
    TOKEN_TTL_HOURS: int = 12
    ADMIN_USERNAME: str = "admin"
    ADMIN_PASSWORD: str = ""
    PASSWORD_HASH_ITERATIONS: int = 260000

    @field_validator("SECRET_KEY", "ADMIN_PASSWORD", mode="before")
    @classmethod
    def get_from_env(cls, v: str, info) -> str:
        """Получает секрет из переменных окружения, если не задан."""
        if not v:
            return os.getenv(info.field_name, "")
        return v

    @field_validator("TOKEN_TTL_HOURS", "PASSWORD_HASH_ITERATIONS")
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        """Время жизни токена и число итераций должны быть положительными."""
        if v <= 0:
            raise ValueError("значение должно быть положительным")
        return v


class StorageSettings(BaseModel):
    """Настройки хранилища агрегата и артефактов."""
    BACKEND: StorageBackend = StorageBackend.FILE
    DATA_FILE: str = "data/data.json"
    UPLOAD_DIR: str = "data/uploads"
    MAX_UPLOAD_BYTES: int = 10485760


class DatabaseSettings(BaseModel):
    """Настройки PostgreSQL."""
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "kabalen_delivery"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_MIN_POOL_SIZE: int = 2
    DB_MAX_POOL_SIZE: int = 10
    DB_COMMAND_TIMEOUT: int = 60
    DB_RETRY_ATTEMPTS: int = 3
    DB_RETRY_DELAY: float = 1.0

    @field_validator("DB_PASSWORD", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает пароль из переменных окружения."""
        if not v:
            return os.getenv("DB_PASSWORD", "")
        return v

    @property
    def dsn(self) -> str:
        """Возвращает DSN для подключения к PostgreSQL."""
        return (
            f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )


# =============================================================================
# ГЛАВНЫЙ КЛАСС НАСТРОЕК
# =============================================================================

class Settings(BaseSettings):
    """
    Главный класс настроек приложения.
    Агрегирует все секции конфигурации.
    """
    system: SystemSettings = Field(default_factory=SystemSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def from_config_json(cls) -> "Settings":
        """
        Создаёт объект Settings из config.json.
        Секреты переопределяются из переменных окружения.
        """
        config_data = load_config_json()

        # Фильтруем комментарии (ключи, начинающиеся с _comment_)
        data = {k: v for k, v in config_data.items() if not k.startswith("_comment_")}

        return cls(
            system=SystemSettings(
                PROJECT_NAME=data.get("PROJECT_NAME", "kabalen_delivery"),
                VERSION=data.get("VERSION", "1.0.0"),
                DEBUG=data.get("DEBUG", False),
                ENVIRONMENT=os.getenv("ENVIRONMENT", data.get("ENVIRONMENT", "development")),
            ),
            logging=LoggingSettings(
                LOG_LEVEL=os.getenv("LOG_LEVEL", data.get("LOG_LEVEL", "INFO")),
                LOG_FORMAT=data.get("LOG_FORMAT", "colored"),
                LOG_TO_FILE=data.get("LOG_TO_FILE", False),
                LOG_FILE_PATH=_resolve_path(data.get("LOG_FILE_PATH", "logs/app.log")),
                LOG_MAX_BYTES=data.get("LOG_MAX_BYTES", 10485760),
            ),
            server=ServerSettings(
                HOST=os.getenv("HOST", data.get("HOST", "0.0.0.0")),
                PORT=int(os.getenv("PORT", data.get("PORT", 10000))),
                ALLOWED_ORIGINS=data.get("ALLOWED_ORIGINS", ["http://localhost", "http://localhost:3000"]),
            ),
            auth=AuthSettings(
                SECRET_KEY=os.getenv("SECRET_KEY", data.get("SECRET_KEY", "")),
                TOKEN_TTL_HOURS=data.get("TOKEN_TTL_HOURS", 12),
                ADMIN_USERNAME=os.getenv("ADMIN_USERNAME", data.get("ADMIN_USERNAME", "admin")),
                ADMIN_PASSWORD=os.getenv("ADMIN_PASSWORD", data.get("ADMIN_PASSWORD", "")),
                PASSWORD_HASH_ITERATIONS=int(
                    os.getenv("PASSWORD_HASH_ITERATIONS", data.get("PASSWORD_HASH_ITERATIONS", 260000))
                ),
            ),
            storage=StorageSettings(
                BACKEND=os.getenv("STORAGE_BACKEND", data.get("STORAGE_BACKEND", "file")),
                DATA_FILE=_resolve_path(os.getenv("DATA_FILE", data.get("DATA_FILE", "data/data.json"))),
                UPLOAD_DIR=_resolve_path(os.getenv("UPLOAD_DIR", data.get("UPLOAD_DIR", "data/uploads"))),
                MAX_UPLOAD_BYTES=data.get("MAX_UPLOAD_BYTES", 10485760),
            ),
            database=DatabaseSettings(
                DB_HOST=os.getenv("DB_HOST", data.get("DB_HOST", "localhost")),
                DB_PORT=int(os.getenv("DB_PORT", data.get("DB_PORT", 5432))),
                DB_NAME=os.getenv("DB_NAME", data.get("DB_NAME", "kabalen_delivery")),
                DB_USER=os.getenv("DB_USER", data.get("DB_USER", "postgres")),
                DB_PASSWORD=os.getenv("DB_PASSWORD", data.get("DB_PASSWORD", "")),
                DB_MIN_POOL_SIZE=data.get("DB_MIN_POOL_SIZE", 2),
                DB_MAX_POOL_SIZE=data.get("DB_MAX_POOL_SIZE", 10),
                DB_COMMAND_TIMEOUT=data.get("DB_COMMAND_TIMEOUT", 60),
                DB_RETRY_ATTEMPTS=data.get("DB_RETRY_ATTEMPTS", 3),
                DB_RETRY_DELAY=data.get("DB_RETRY_DELAY", 1.0),
            ),
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Возвращает синглтон настроек приложения.
    Использует кэширование для производительности.
    """
    from dotenv import load_dotenv

    # Загружаем .env файл
    env_path = get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return Settings.from_config_json()


# Экспорт синглтона для удобного импорта
settings = get_settings()
