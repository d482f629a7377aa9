# -*- coding: utf-8 -*-
"""
Контракт хранилища записей и его реализация на SQLAlchemy.

Каждое обращение открывает собственную сессию: обращения выполняются
параллельно, а AsyncSession не допускает конкурентного использования.
"""

from typing import Any, Dict, List, Optional, Protocol, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from exam_assembly.config.logger import configure_logger
from exam_assembly.config.settings import settings
from exam_assembly.domain.assembly import CategoryInfo, QuestionRecord, TestInfo
from exam_assembly.domain.models import Test
from exam_assembly.repository.answers import get_answer_rows_by_question_ids
from exam_assembly.repository.tests import (get_questions_for_test,
                                            get_test_by_id)

logger = configure_logger(__name__)


class RecordStore(Protocol):
    """Абстрактный контракт чтения из хранилища."""

    async def get_test_by_id(self, test_id: str) -> Optional[TestInfo]:
        ...

    async def get_questions_for_test(self, test_id: str) -> List[QuestionRecord]:
        ...

    async def get_answer_rows_by_question_ids(
        self,
        relation: str,
        question_ids: Sequence[str],
        order_by: Sequence[str] = (),
        filter_key: str = "question_id",
    ) -> List[Dict[str, Any]]:
        ...


def build_test_info(test: Test, default_time_limit: int) -> TestInfo:
    """Преобразовать ORM-тест в метаданные сборки."""
    categories = tuple(CategoryInfo.model_validate(c) for c in test.categories or ())
    return TestInfo(
        id=test.id,
        title=test.title,
        description=test.description,
        instructions=test.instructions,
        time_limit=test.time_limit or default_time_limit,
        is_active=bool(test.is_active),
        category_ids=tuple(c.id for c in categories),
        categories=categories,
        created_at=test.created_at,
        updated_at=test.updated_at,
    )


class SqlAlchemyRecordStore:
    """Хранилище записей поверх асинхронной фабрики сессий SQLAlchemy."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        name: str = "primary",
        default_time_limit: int = settings.assembly_default_time_limit,
    ):
        self._session_factory = session_factory
        self.name = name
        self._default_time_limit = default_time_limit

    async def get_test_by_id(self, test_id: str) -> Optional[TestInfo]:
        async with self._session_factory() as session:
            test = await get_test_by_id(session, test_id)
            if test is None:
                return None
            return build_test_info(test, self._default_time_limit)

    async def get_questions_for_test(self, test_id: str) -> List[QuestionRecord]:
        async with self._session_factory() as session:
            rows = await get_questions_for_test(session, test_id)

        records: List[QuestionRecord] = []
        orphaned = 0
        for link, question in rows:
            if question is None:
                orphaned += 1
                continue
            records.append(
                QuestionRecord(
                    id=question.id,
                    text=question.text,
                    type=question.type,
                    media_url=question.media_url,
                    position=link.position,
                    category_id=question.category_id,
                    difficulty=question.difficulty,
                    points=question.points,
                    explanation=question.explanation,
                )
            )
        if orphaned:
            logger.warning(
                f"⚠️ [{self.name}] Тест {test_id}: {orphaned} связей без вопроса пропущено"
            )
        return records

    async def get_answer_rows_by_question_ids(
        self,
        relation: str,
        question_ids: Sequence[str],
        order_by: Sequence[str] = (),
        filter_key: str = "question_id",
    ) -> List[Dict[str, Any]]:
        async with self._session_factory() as session:
            return await get_answer_rows_by_question_ids(
                session, relation, question_ids, order_by, filter_key
            )
