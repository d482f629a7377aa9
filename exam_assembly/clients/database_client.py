# -*- coding: utf-8 -*-
"""
Клиент для работы с базой данных.

Движок только читает данные, поэтому создаются два асинхронных пула:
основной и резервный (используется для повторного чтения метаданных теста).
"""
from sqlalchemy.ext.asyncio import (AsyncEngine, AsyncSession,
                                    async_sessionmaker, create_async_engine)

from exam_assembly.config.settings import settings
from exam_assembly.domain.models import Base


def create_engine_for(url: str) -> AsyncEngine:
    """Создать асинхронный движок для указанного URL."""
    return create_async_engine(
        url,
        echo=False,
        pool_pre_ping=True,  # Проверяем соединение перед использованием
        pool_recycle=3600,  # Переподключаемся каждый час
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


# Основной асинхронный движок
async_engine = create_engine_for(settings.database_url)
AsyncSessionLocal = create_session_factory(async_engine)

# Резервный движок (отдельный пул; по умолчанию та же БД)
fallback_engine = create_engine_for(settings.fallback_database_url)
FallbackSessionLocal = create_session_factory(fallback_engine)


async def init_db(engine: AsyncEngine = async_engine) -> None:
    """
    Создаёт таблицы хранилища (для локальной разработки и тестов).

    Raises:
        SQLAlchemyError: Ошибки при создании таблиц
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engines() -> None:
    """Закрыть пулы подключений."""
    await async_engine.dispose()
    await fallback_engine.dispose()
