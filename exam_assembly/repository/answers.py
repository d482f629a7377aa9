# -*- coding: utf-8 -*-
"""
Репозиторий пакетного чтения строк ответов.

Одна выборка возвращает строки сразу для множества вопросов вместо запроса
на каждый вопрос.
"""

from typing import Any, Dict, List, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from exam_assembly.domain.models import ANSWER_RELATIONS


def _row_to_dict(instance: Any) -> Dict[str, Any]:
    return {column.name: getattr(instance, column.key) for column in instance.__table__.columns}


async def get_answer_rows_by_question_ids(
    session: AsyncSession,
    relation: str,
    question_ids: Sequence[str],
    order_by: Sequence[str] = (),
    filter_key: str = "question_id",
) -> List[Dict[str, Any]]:
    """
    Получить строки таблицы ответов для набора вопросов одним запросом.

    Args:
        session: Сессия базы данных
        relation: Имя таблицы ответов
        question_ids: ID вопросов партиции
        order_by: Колонки сортировки (если пусто, порядок не гарантируется)
        filter_key: Колонка, по которой фильтруются вопросы

    Returns:
        Список строк в виде словарей

    Raises:
        KeyError: если таблица ответов не зарегистрирована
    """
    if not question_ids:
        return []

    model = ANSWER_RELATIONS[relation]
    stmt = select(model).where(getattr(model, filter_key).in_(list(question_ids)))
    for column in order_by:
        stmt = stmt.order_by(getattr(model, column).asc())

    result = await session.execute(stmt)
    return [_row_to_dict(row) for row in result.scalars().all()]
