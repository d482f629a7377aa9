# -*- coding: utf-8 -*-
"""
Репозиторий чтения тестов и их вопросов.
"""

from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from exam_assembly.domain.models import Question, Test, TestQuestion


async def get_test_by_id(session: AsyncSession, test_id: str) -> Optional[Test]:
    """Получить тест вместе с категориями."""
    stmt = select(Test).where(Test.id == test_id)
    result = await session.execute(stmt)
    return result.scalars().first()


async def get_questions_for_test(
    session: AsyncSession, test_id: str
) -> List[Tuple[TestQuestion, Optional[Question]]]:
    """
    Получить связи тест-вопрос, упорядоченные по позиции, вместе с вопросами.

    Связь без вопроса (вопрос удалён) возвращается с None во втором элементе.
    """
    stmt = (
        select(TestQuestion, Question)
        .outerjoin(Question, TestQuestion.question_id == Question.id)
        .where(TestQuestion.test_id == test_id)
        .order_by(TestQuestion.position.asc(), TestQuestion.id.asc())
    )
    result = await session.execute(stmt)
    return [(link, question) for link, question in result.all()]
