# -*- coding: utf-8 -*-
"""
Поставщик деградированных сборок.

Чистые функции без обращения к хранилищу: движок может ответить даже при
полной недоступности хранилища.
"""

from datetime import datetime
from typing import Tuple

from exam_assembly.config.settings import settings
from exam_assembly.domain.answers import ChoiceOption
from exam_assembly.domain.assembly import (AssembledQuestion, CategoryInfo,
                                           TestInfo)
from exam_assembly.domain.enums import QuestionType

FALLBACK_QUESTION_ID = "fallback-q1"
FALLBACK_TEST_TITLE = "Fallback Test"
FALLBACK_CATEGORY = "General"


def canned_question() -> AssembledQuestion:
    """Вопрос-заглушка: single-choice, три варианта, ровно один правильный."""
    return AssembledQuestion(
        id=FALLBACK_QUESTION_ID,
        text="What is JavaScript?",
        type=QuestionType.SINGLE_CHOICE,
        position=0,
        answers=(
            ChoiceOption(id="fallback-a1", text="A programming language", is_correct=True, position=0),
            ChoiceOption(id="fallback-a2", text="A markup language", is_correct=False, position=1),
            ChoiceOption(id="fallback-a3", text="A database", is_correct=False, position=2),
        ),
    )


def canned_test(
    test_id: str, time_limit: int = settings.assembly_default_time_limit
) -> TestInfo:
    """
    Синтетические метаданные теста.

    ID помечается префиксом ``fallback-``, чтобы вызывающая сторона могла
    отличить заглушку от реального теста.
    """
    now = datetime.utcnow()
    return TestInfo(
        id=f"fallback-{test_id}",
        title=FALLBACK_TEST_TITLE,
        description="This is a fallback test created when fetch failed",
        time_limit=time_limit,
        is_active=True,
        categories=(CategoryInfo(id="fallback-category", name=FALLBACK_CATEGORY),),
        category_ids=("fallback-category",),
        created_at=now,
        updated_at=now,
    )


def with_canned_questions(
    test: TestInfo,
) -> Tuple[TestInfo, Tuple[AssembledQuestion, ...]]:
    """Реальные метаданные теста и один вопрос-заглушка."""
    if not test.description:
        test = test.model_copy(update={"description": "Test with default questions"})
    return test, (canned_question(),)
