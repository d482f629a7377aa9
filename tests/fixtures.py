# -*- coding: utf-8 -*-
"""
Фикстуры и вспомогательные объекты для тестирования сборки тестов
"""

import asyncio
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from exam_assembly.domain.assembly import QuestionRecord, TestInfo
from exam_assembly.domain.models import (Answer, Category, MatchItem, Question,
                                         SequenceItem, Test, TestCategory,
                                         TestQuestion)

SAMPLE_TEST_ID = "test-1"


class ManualClock:
    """Часы, которые двигаются только вручную."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRecordStore:
    """
    Хранилище записей в памяти.

    Считает обращения (по имени метода или таблице ответов) и позволяет
    внедрять ошибки и задержки для отдельных обращений.
    """

    def __init__(
        self,
        tests: Iterable[TestInfo] = (),
        questions: Optional[Dict[str, List[QuestionRecord]]] = None,
        answer_rows: Optional[Dict[str, List[Dict[str, Any]]]] = None,
    ):
        self.tests = {test.id: test for test in tests}
        self.questions = questions or {}
        self.answer_rows = answer_rows or {}
        self.calls: Counter = Counter()
        self.answer_calls: List[Tuple[str, Tuple[str, ...]]] = []
        self.failures: Dict[str, BaseException] = {}
        self.delays: Dict[str, float] = {}

    def fail(self, key: str, error: Optional[BaseException] = None) -> None:
        self.failures[key] = error or ConnectionError(f"{key} недоступно")

    async def _enter(self, key: str) -> None:
        self.calls[key] += 1
        if key in self.delays:
            await asyncio.sleep(self.delays[key])
        if key in self.failures:
            raise self.failures[key]

    async def get_test_by_id(self, test_id: str) -> Optional[TestInfo]:
        await self._enter("get_test_by_id")
        return self.tests.get(test_id)

    async def get_questions_for_test(self, test_id: str) -> List[QuestionRecord]:
        await self._enter("get_questions_for_test")
        return list(self.questions.get(test_id, []))

    async def get_answer_rows_by_question_ids(
        self,
        relation: str,
        question_ids: Sequence[str],
        order_by: Sequence[str] = (),
        filter_key: str = "question_id",
    ) -> List[Dict[str, Any]]:
        await self._enter(relation)
        self.answer_calls.append((relation, tuple(question_ids)))
        wanted = set(question_ids)
        return [dict(row) for row in self.answer_rows.get(relation, []) if row[filter_key] in wanted]


def make_test_info(test_id: str = SAMPLE_TEST_ID, time_limit: int = 1200, **kwargs) -> TestInfo:
    """Создать метаданные теста"""
    return TestInfo(
        id=test_id,
        title=kwargs.pop("title", "JavaScript Basics"),
        description=kwargs.pop("description", "Основы JavaScript"),
        time_limit=time_limit,
        **kwargs,
    )


def make_question(
    question_id: str, question_type: str = "single-choice", position: int = 0, **kwargs
) -> QuestionRecord:
    """Создать вопрос в том виде, в каком его отдаёт хранилище"""
    return QuestionRecord(
        id=question_id,
        text=kwargs.pop("text", f"Вопрос {question_id}"),
        type=question_type,
        position=position,
        **kwargs,
    )


def choice_rows(question_id: str, texts: Sequence[str], correct_index: Optional[int] = 0) -> List[dict]:
    """Строки таблицы answers для вопроса с выбором ответа"""
    return [
        {
            "id": f"{question_id}-a{i}",
            "question_id": question_id,
            "text": text,
            "is_correct": i == correct_index,
            "position": i,
        }
        for i, text in enumerate(texts)
    ]


def match_rows(question_id: str, pairs: Sequence[Tuple[str, str]]) -> List[dict]:
    """Строки таблицы match_items"""
    return [
        {
            "id": f"{question_id}-m{i}",
            "question_id": question_id,
            "left_text": left,
            "right_text": right,
        }
        for i, (left, right) in enumerate(pairs)
    ]


def sequence_rows(question_id: str, steps: Sequence[str]) -> List[dict]:
    """Строки таблицы sequence_items"""
    return [
        {
            "id": f"{question_id}-s{i}",
            "question_id": question_id,
            "text": text,
            "correct_position": i + 1,
        }
        for i, text in enumerate(steps)
    ]


SAMPLE_PAIRS = [("HTML", "Разметка"), ("CSS", "Стили"), ("JS", "Логика")]


def build_sample_store() -> FakeRecordStore:
    """
    Хранилище с тестом из трёх вопросов:
    два single-choice (Q1, Q2) и один matching (Q3) с тремя парами.
    """
    return FakeRecordStore(
        tests=[make_test_info()],
        questions={
            SAMPLE_TEST_ID: [
                make_question("q1", "single-choice", 0),
                make_question("q2", "single-choice", 1),
                make_question("q3", "matching", 2),
            ]
        },
        answer_rows={
            "answers": choice_rows("q1", ["let", "var", "const"], 2)
            + choice_rows("q2", ["==", "==="], 1),
            "match_items": match_rows("q3", SAMPLE_PAIRS),
        },
    )


# ---------------------------------------------------------------------------
# Данные для SQLAlchemy-хранилища
# ---------------------------------------------------------------------------


async def create_item(session: AsyncSession, model, **fields):
    """Создать запись и сохранить её"""
    item = model(**fields)
    session.add(item)
    await session.commit()
    await session.refresh(item)
    return item


async def create_sample_test(session: AsyncSession, test_id: str = SAMPLE_TEST_ID) -> Test:
    """
    Создать в БД тест с категорией, тремя вопросами (single-choice, matching,
    sequence) и их ответами.
    """
    category = await create_item(session, Category, name="Frontend", description="Веб")
    test = await create_item(
        session,
        Test,
        id=test_id,
        title="JavaScript Basics",
        description="Основы JavaScript",
        time_limit=None,
    )
    await create_item(session, TestCategory, test_id=test.id, category_id=category.id)

    choice = await create_item(session, Question, id="db-q1", text="Какой оператор строгого равенства?", type="single_choice")
    matching = await create_item(session, Question, id="db-q2", text="Сопоставьте технологии", type="matching")
    sequence = await create_item(session, Question, id="db-q3", text="Порядок загрузки страницы", type="sequence")

    # Позиции намеренно не совпадают с порядком вставки
    await create_item(session, TestQuestion, test_id=test.id, question_id=sequence.id, position=2)
    await create_item(session, TestQuestion, test_id=test.id, question_id=choice.id, position=0)
    await create_item(session, TestQuestion, test_id=test.id, question_id=matching.id, position=1)

    await create_item(session, Answer, question_id=choice.id, text="===", is_correct=True, position=1)
    await create_item(session, Answer, question_id=choice.id, text="==", is_correct=False, position=0)

    base = datetime(2024, 1, 1)
    for i, (left, right) in enumerate(SAMPLE_PAIRS):
        await create_item(
            session,
            MatchItem,
            question_id=matching.id,
            left_text=left,
            right_text=right,
            created_at=base + timedelta(seconds=i),
        )

    for position, text in [(3, "Рендеринг"), (1, "DNS"), (2, "HTTP-запрос")]:
        await create_item(session, SequenceItem, question_id=sequence.id, text=text, correct_position=position)

    return test
