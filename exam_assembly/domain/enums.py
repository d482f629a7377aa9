# -*- coding: utf-8 -*-
"""
exam_assembly/domain/enums.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Определение классов перечислений для движка сборки тестов.

Модуль содержит типы вопросов, варианты наборов ответов, источники данных
шагов сборки и уровни деградации.
"""

import enum


class QuestionType(str, enum.Enum):
    """Поддерживаемые типы вопросов."""

    SINGLE_CHOICE = "single-choice"
    MULTIPLE_CHOICE = "multiple-choice"
    TRUE_FALSE = "true-false"
    MATCHING = "matching"
    SEQUENCE = "sequence"
    DRAG_DROP = "drag-drop"


class AnswerKind(str, enum.Enum):
    """Варианты набора ответов (дискриминатор AnswerSet)."""

    CHOICE = "choice"
    MATCH = "match"
    SEQUENCE = "sequence"
    DRAG_DROP = "drag_drop"


class StepSource(str, enum.Enum):
    """Откуда получены данные шага сборки."""

    DATABASE = "database"
    CACHE = "cache"
    FALLBACK = "fallback"


class DegradationTier(str, enum.Enum):
    """Уровни деградации сборки."""

    CANNED_QUESTIONS = "canned_questions"  # Метаданные реальные, вопрос-заглушка
    CANNED_TEST = "canned_test"  # Полностью синтетический тест
