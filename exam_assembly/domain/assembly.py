# -*- coding: utf-8 -*-
"""
Агрегат сборки теста и его составные части.

TestAssembly создаётся заново на каждый запрос (или восстанавливается из кэша)
и после построения не изменяется: все модели заморожены, коллекции хранятся
в кортежах.
"""

from datetime import datetime
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from exam_assembly.domain.answers import AnswerSet
from exam_assembly.domain.diagnostics import DiagnosticsReport
from exam_assembly.domain.enums import QuestionType


class CategoryInfo(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None


class TestInfo(BaseModel):
    """Метаданные теста."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: Optional[str] = None
    instructions: Optional[str] = None
    time_limit: int = Field(gt=0, description="Лимит времени, сек.")
    is_active: bool = True
    category_ids: Tuple[str, ...] = ()
    categories: Tuple[CategoryInfo, ...] = ()
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class QuestionRecord(BaseModel):
    """Вопрос в том виде, в каком его возвращает хранилище (тег типа не проверен)."""

    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    type: str
    media_url: Optional[str] = None
    position: int = 0
    category_id: Optional[str] = None
    difficulty: Optional[str] = None
    points: Optional[int] = None
    explanation: Optional[str] = None


class AssembledQuestion(BaseModel):
    """Вопрос с проверенным типом и набором ответов."""

    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    type: QuestionType
    media_url: Optional[str] = None
    position: int = 0
    category_id: Optional[str] = None
    difficulty: Optional[str] = None
    points: Optional[int] = None
    explanation: Optional[str] = None
    answers: AnswerSet = ()

    @model_validator(mode="after")
    def _check_answer_shape(self) -> "AssembledQuestion":
        # Вариант записей ответов обязан соответствовать типу вопроса
        from exam_assembly.service.question_types import matches_shape

        if not matches_shape(self.type, self.answers):
            raise ValueError(
                f"Набор ответов вопроса {self.id} не соответствует типу {self.type.value}"
            )
        return self


class TestAssembly(BaseModel):
    """Тест, упорядоченные вопросы с ответами, сессия и оставшееся время."""

    model_config = ConfigDict(frozen=True)

    test: TestInfo
    questions: Tuple[AssembledQuestion, ...]
    session_id: str
    start_time: datetime
    time_remaining: int


class AssemblyResult(BaseModel):
    """Результат сборки: агрегат и диагностика вызова."""

    model_config = ConfigDict(frozen=True)

    assembly: TestAssembly
    diagnostics: DiagnosticsReport
