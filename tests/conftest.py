# -*- coding: utf-8 -*-
"""
Общие фикстуры для тестирования
"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from exam_assembly.clients.database_client import init_db
from exam_assembly.domain.models import Base
from exam_assembly.service.answer_loader import BatchAnswerLoader
from exam_assembly.service.cache_service import AssemblyCache, InMemoryCacheBackend
from exam_assembly.service.test_assembler import TestAssembler

from tests.fixtures import FakeRecordStore, ManualClock, build_sample_store

# Тестовая база данных во временном файле: сборка читает её
# несколькими сессиями одновременно
TEST_DATABASE_URL = "sqlite+aiosqlite:///{path}"


@pytest.fixture
async def test_engine(tmp_path):
    """Создать тестовый движок БД."""
    engine = create_async_engine(
        TEST_DATABASE_URL.format(path=tmp_path / "assembly.db"),
        echo=False,
    )

    # Создаем таблицы
    await init_db(engine)

    yield engine

    # Удаляем таблицы
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    """Фабрика сессий тестовой БД."""
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def test_session(session_factory):
    """Создать тестовую сессию БД."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def memory_backend(clock) -> InMemoryCacheBackend:
    return InMemoryCacheBackend(max_entries=100, clock=clock)


@pytest.fixture
def cache(memory_backend) -> AssemblyCache:
    return AssemblyCache(memory_backend, assembly_ttl=600, answers_ttl=1200)


@pytest.fixture
def store() -> FakeRecordStore:
    """Хранилище с тестом из двух single-choice и одного matching вопроса."""
    return build_sample_store()


@pytest.fixture
def fallback_store() -> FakeRecordStore:
    return FakeRecordStore()


@pytest.fixture
def assembler(store, cache, fallback_store) -> TestAssembler:
    """Сборщик без перемешивания вопросов."""
    return TestAssembler(
        store=store,
        cache=cache,
        loader=BatchAnswerLoader(store, cache, timeout=1.0),
        fallback_store=fallback_store,
        metadata_timeout=1.0,
        questions_timeout=1.0,
        shuffle=False,
    )


@pytest.fixture
async def async_client(assembler):
    """Создать асинхронный тестовый клиент для API."""
    from exam_assembly.main import app

    original = app.state.assembler
    app.state.assembler = assembler
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        yield client
    app.state.assembler = original
