# -*- coding: utf-8 -*-
"""
Pydantic-схемы ответов API сборки тестов.
"""

from typing import Any, Dict

from pydantic import BaseModel

from exam_assembly.domain.answers import AnswerSet
from exam_assembly.domain.enums import QuestionType


class QuestionAnswersRead(BaseModel):
    question_id: str
    type: QuestionType
    answers: AnswerSet = ()


class CacheInvalidateRead(BaseModel):
    test_id: str
    invalidated: bool


class CacheStatsRead(BaseModel):
    backend: str
    stats: Dict[str, Any]
