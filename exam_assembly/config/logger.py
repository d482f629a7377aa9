# -*- coding: utf-8 -*-
"""
exam_assembly/config/logger.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Логирование движка сборки на loguru.

Стандартный logging (uvicorn, SQLAlchemy, redis) перенаправляется в loguru,
поэтому все сообщения выводятся в одном формате. Уровень задаётся переменной
окружения LOG_LEVEL, DEBUG=true включает отладочный вывод.
"""
import logging
import os
import sys

from loguru import logger

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DEBUG = os.getenv("DEBUG", "false").lower() == "true"

# Шумные библиотеки: пропускаем их сообщения ниже WARNING
_QUIET_LOGGERS = ("httpx", "httpcore", "asyncio", "aiosqlite")

# Логгеры, которые перехватываются при старте приложения
_INTERCEPTED_LOGGERS = (
    "uvicorn",
    "uvicorn.access",
    "uvicorn.error",
    "fastapi",
    "sqlalchemy.engine",
    "sqlalchemy.pool",
)


class InterceptHandler(logging.Handler):
    """Перенаправляет записи стандартного logging в loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        # Стартовые INFO-сообщения uvicorn дублируют наши
        if record.name.startswith("uvicorn") and record.levelno == logging.INFO:
            return
        if record.name.startswith(_QUIET_LOGGERS) and record.levelno < logging.WARNING:
            return

        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Ищем кадр, из которого был вызван logging
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _line_format(source: str) -> str:
    return (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        f"{source} - "
        "<level>{message}</level>"
    )


def _is_system(record) -> bool:
    return record["extra"].get("system") is True


logger.remove()
logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

# Сообщения модулей: с указанием места вызова
logger.add(
    sys.stdout,
    format=_line_format("<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan>"),
    level="DEBUG" if DEBUG else LOG_LEVEL,
    colorize=True,
    backtrace=False,
    diagnose=False,
    filter=lambda record: not _is_system(record),
)

# Системные сообщения (статус сервисов при старте): без места вызова
logger.add(
    sys.stdout,
    format=_line_format("<cyan>SYSTEM</cyan>"),
    level=LOG_LEVEL,
    colorize=True,
    backtrace=False,
    diagnose=False,
    filter=_is_system,
)


def configure_logger(name: str = "exam_assembly"):
    """Логгер, привязанный к имени модуля."""
    return logger.bind(module=name)


def get_system_logger():
    """Логгер системных сообщений."""
    return logger.bind(system=True)


def setup_uvicorn_logging() -> None:
    """Перехватить логгеры uvicorn и SQLAlchemy, созданные после импорта модуля."""
    for name in _INTERCEPTED_LOGGERS:
        intercepted = logging.getLogger(name)
        intercepted.handlers = [InterceptHandler()]
        intercepted.propagate = False
