# -*- coding: utf-8 -*-
"""
Маршруты FastAPI для сборки тестов.

* GET    /api/v1/assembly/tests/{test_id}                  : полная сборка
* GET    /api/v1/assembly/tests/{test_id}/questions        : сборка без ответов
* GET    /api/v1/assembly/questions/{question_id}/answers  : ответы одного вопроса
* DELETE /api/v1/assembly/tests/{test_id}/cache            : сброс кэша сборки
* GET    /api/v1/assembly/cache/stats                      : статистика кэша

Восстанавливаемые ошибки хранилища не приводят к ошибке HTTP: они отражены
в диагностике ответа.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from exam_assembly.config.logger import configure_logger
from exam_assembly.domain.assembly import AssemblyResult
from exam_assembly.service.question_types import resolve_question_type
from exam_assembly.service.test_assembler import TestAssembler
from exam_assembly.utils.exceptions import (ConfigurationError,
                                            InvalidQuestionTypeError,
                                            UnknownQuestionType)

from .schemas import CacheInvalidateRead, CacheStatsRead, QuestionAnswersRead

router = APIRouter()
logger = configure_logger(__name__)


def get_assembler(request: Request) -> TestAssembler:
    """Сборщик, созданный при старте приложения."""
    return request.app.state.assembler


@router.get("/tests/{test_id}", response_model=AssemblyResult)
async def assemble_test_endpoint(
    test_id: str,
    session_id: Optional[str] = Query(None, description="ID сессии прохождения"),
    assembler: TestAssembler = Depends(get_assembler),
) -> AssemblyResult:
    """
    Собрать тест с вопросами и ответами.

    Raises:
        ConfigurationError: если у вопроса незарегистрированный тип
    """
    try:
        return await assembler.assemble(test_id, session_id)
    except UnknownQuestionType as e:
        raise ConfigurationError(str(e))


@router.get("/tests/{test_id}/questions", response_model=AssemblyResult)
async def assemble_questions_endpoint(
    test_id: str,
    session_id: Optional[str] = Query(None, description="ID сессии прохождения"),
    assembler: TestAssembler = Depends(get_assembler),
) -> AssemblyResult:
    """Собрать тест без ответов; ответы догружаются отдельными запросами."""
    try:
        return await assembler.assemble_questions_only(test_id, session_id)
    except UnknownQuestionType as e:
        raise ConfigurationError(str(e))


@router.get("/questions/{question_id}/answers", response_model=QuestionAnswersRead)
async def question_answers_endpoint(
    question_id: str,
    question_type: str = Query(..., alias="type", description="Тег типа вопроса"),
    assembler: TestAssembler = Depends(get_assembler),
) -> QuestionAnswersRead:
    try:
        resolved = resolve_question_type(question_type, question_id)
    except UnknownQuestionType as e:
        logger.warning(f"⚠️ Запрос ответов с неизвестным типом: {e}")
        raise InvalidQuestionTypeError(str(e))

    answers = await assembler.fetch_answers_for_question(question_id, resolved)
    return QuestionAnswersRead(question_id=question_id, type=resolved, answers=answers)


@router.delete("/tests/{test_id}/cache", response_model=CacheInvalidateRead)
async def invalidate_test_cache_endpoint(
    test_id: str,
    assembler: TestAssembler = Depends(get_assembler),
) -> CacheInvalidateRead:
    invalidated = await assembler.invalidate(test_id)
    return CacheInvalidateRead(test_id=test_id, invalidated=invalidated)


@router.get("/cache/stats", response_model=CacheStatsRead)
async def cache_stats_endpoint(
    assembler: TestAssembler = Depends(get_assembler),
) -> CacheStatsRead:
    stats = await assembler.cache.stats()
    return CacheStatsRead(backend=stats.get("backend", "unknown"), stats=stats)
