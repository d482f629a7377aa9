# -*- coding: utf-8 -*-
"""
exam_assembly/config/settings.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Конфигурация движка сборки тестов с использованием Pydantic.

Модуль загружает конфигурацию из .env файла (если он существует) и переменных
окружения, предоставляя централизованные настройки хранилища, таймаутов и кэша.
"""

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

# Корень проекта (каталог с pyproject.toml)
BASE_DIR = Path(__file__).resolve().parent.parent.parent

ROOT_ENV_PATH = (BASE_DIR / ".env").resolve()


class Settings(BaseSettings):
    """Настройки приложения, загружаемые из .env файла."""

    _env_file = ROOT_ENV_PATH if ROOT_ENV_PATH.exists() else None

    model_config = SettingsConfigDict(
        env_file=_env_file,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Конфигурация базы данных (основной клиент)
    database_url: str | None = None
    postgres_db: str = "exams"
    postgres_user: str = "postgres"
    postgres_password: str = "postgres"
    postgres_host: str = "localhost"
    postgres_port: int = 5432

    # Резервный клиент для метаданных теста.
    # Если не задан, используется отдельный пул подключений к основной БД.
    fallback_database_url: str | None = None

    # Конфигурация приложения
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    # Таймауты обращений к хранилищу (в секундах)
    assembly_metadata_timeout: float = 8.0
    assembly_questions_timeout: float = 8.0
    assembly_answers_timeout: float = 8.0
    # Обращения к кэшу: при превышении считаются промахом
    assembly_cache_timeout: float = 2.0

    # Лимит времени по умолчанию, если у теста он не задан (в секундах)
    assembly_default_time_limit: int = 900

    # Перемешивать ли вопросы (порядок стабилен в рамках session_id)
    assembly_shuffle_questions: bool = True

    # Бэкенд кэша: in-process память или Redis
    cache_backend: Literal["memory", "redis"] = "memory"
    # Максимальное число записей in-memory кэша (None: без ограничения)
    cache_max_entries: int | None = 500

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if not self.database_url:
            self.database_url = self._build_database_url()
        if not self.fallback_database_url:
            self.fallback_database_url = self.database_url

    def _build_database_url(self) -> str:
        """Build database URL from individual components."""
        driver = "postgresql+asyncpg"
        return f"{driver}://{self.postgres_user}:{self.postgres_password}@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"

    def get_config_source(self) -> str:
        """Возвращает информацию об источнике конфигурации для отладки."""
        if ROOT_ENV_PATH.exists():
            return f"root: {ROOT_ENV_PATH}"
        return "environment variables only"


settings = Settings()
