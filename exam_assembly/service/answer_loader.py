# -*- coding: utf-8 -*-
"""
Пакетная загрузка ответов.

Вопросы разбиваются на партиции по типу; для каждой партиции выполняется
одна выборка из таблицы ответов (``question_id IN (...)``) вместо запроса на
каждый вопрос. Партиции загружаются параллельно и независимо: ошибка одной
партиции не влияет на остальные.
"""

import time
from collections import defaultdict
from typing import (Dict, Iterable, List, NamedTuple, Optional, Protocol,
                    Union)

from exam_assembly.clients.record_store import RecordStore
from exam_assembly.config.logger import configure_logger
from exam_assembly.config.settings import settings
from exam_assembly.domain.answers import AnswerBatch, AnswerSet
from exam_assembly.domain.assembly import TestAssembly
from exam_assembly.domain.enums import QuestionType, StepSource
from exam_assembly.service.cache_service import AssemblyCache
from exam_assembly.service.diagnostics import DiagnosticsCollector
from exam_assembly.service.question_types import (QuestionTypeSpec,
                                                  get_type_spec,
                                                  resolve_question_type)
from exam_assembly.service.task_group import gather_settled, with_timeout
from exam_assembly.utils.exceptions import (AnswerPartitionUnavailable,
                                            AssemblyError, UnknownQuestionType)

logger = configure_logger(__name__)


class QuestionLike(Protocol):
    id: str
    type: Union[QuestionType, str]


class _PartitionResult(NamedTuple):
    answers: AnswerBatch
    source: StepSource
    duration_ms: float


def partition_by_type(questions: Iterable[QuestionLike]) -> Dict[QuestionType, List[str]]:
    """
    Разбить вопросы на партиции по типу.

    ID внутри партиции уникальны и идут в исходном порядке.

    Raises:
        UnknownQuestionType: если тег типа не зарегистрирован
    """
    partitions: Dict[QuestionType, List[str]] = defaultdict(list)
    seen = set()
    for question in questions:
        question_type = resolve_question_type(question.type, question.id)
        if (question_type, question.id) not in seen:
            seen.add((question_type, question.id))
            partitions[question_type].append(question.id)
    return dict(partitions)


class BatchAnswerLoader:
    """Загрузчик ответов партициями по типу вопроса."""

    def __init__(
        self,
        store: RecordStore,
        cache: Optional[AssemblyCache] = None,
        timeout: Optional[float] = settings.assembly_answers_timeout,
        cache_timeout: Optional[float] = settings.assembly_cache_timeout,
    ):
        self._store = store
        self._cache = cache
        self._timeout = timeout
        self._cache_timeout = cache_timeout

    async def load(
        self,
        questions: Iterable[QuestionLike],
        diagnostics: Optional[DiagnosticsCollector] = None,
    ) -> Dict[str, AnswerSet]:
        """
        Загрузить ответы для набора вопросов.

        Args:
            questions: Вопросы (нужны только id и type)
            diagnostics: Сборщик диагностики вызова

        Returns:
            question_id -> набор ответов; присутствует каждый входной ID,
            вопросы неудавшейся партиции получают пустой набор

        Raises:
            UnknownQuestionType: если тег типа не зарегистрирован
        """
        diagnostics = diagnostics or DiagnosticsCollector()
        partitions = partition_by_type(questions)
        result: Dict[str, AnswerSet] = {
            question_id: () for ids in partitions.values() for question_id in ids
        }
        if not partitions:
            return result

        logger.debug(
            f"📋 Загрузка ответов: {len(result)} вопросов в {len(partitions)} партициях"
        )
        outcomes = await gather_settled(
            {
                question_type: self._load_partition(question_type, ids, diagnostics)
                for question_type, ids in partitions.items()
            }
        )

        for question_type, outcome in outcomes.items():
            step_name = f"fetch_answers:{question_type.value}"
            ids = partitions[question_type]
            if outcome.ok:
                partition = outcome.value
                result.update(partition.answers)
                diagnostics.record_step(
                    step_name,
                    success=True,
                    source=partition.source,
                    duration_ms=partition.duration_ms,
                    questions=len(ids),
                    answers=sum(len(answers) for answers in partition.answers.values()),
                )
            else:
                logger.warning(
                    f"⚠️ Ответы для партиции {question_type.value} не загружены "
                    f"({len(ids)} вопросов): {outcome.error}"
                )
                diagnostics.record_step(
                    step_name,
                    success=False,
                    source=StepSource.DATABASE,
                    questions=len(ids),
                )
                diagnostics.record_error(step_name, outcome.error)

        return result

    async def load_for_question(
        self,
        question_id: str,
        question_type: Union[QuestionType, str],
        diagnostics: Optional[DiagnosticsCollector] = None,
    ) -> AnswerSet:
        """Ответы одного вопроса; при ошибке хранилища возвращается пустой набор."""
        question_type = resolve_question_type(question_type, question_id)
        answers = await self.load(
            [_QuestionRef(question_id, question_type)], diagnostics
        )
        return answers[question_id]

    async def fill_range(
        self,
        assembly: TestAssembly,
        start: int,
        end: int,
        diagnostics: Optional[DiagnosticsCollector] = None,
    ) -> TestAssembly:
        """
        Догрузить ответы для вопросов с индексами [start, end), у которых их нет.

        Returns:
            Новая сборка; исходная не изменяется
        """
        window = [
            question
            for question in assembly.questions[max(start, 0):end]
            if not question.answers
        ]
        if not window:
            return assembly

        answers = await self.load(window, diagnostics)
        questions = tuple(
            question.model_copy(update={"answers": answers[question.id]})
            if question.id in answers and not question.answers
            else question
            for question in assembly.questions
        )
        logger.debug(
            f"📋 Догружены ответы для {len(window)} вопросов [{start}:{end}) "
            f"сессии {assembly.session_id}"
        )
        return assembly.model_copy(update={"questions": questions})

    async def _load_partition(
        self,
        question_type: QuestionType,
        question_ids: List[str],
        diagnostics: DiagnosticsCollector,
    ) -> _PartitionResult:
        started = time.perf_counter()
        spec = get_type_spec(question_type)

        cached = await self._read_cached_batch(question_type, question_ids, diagnostics)
        if cached is not None and all(qid in cached for qid in question_ids):
            logger.debug(
                f"✅ Ответы {question_type.value} из кэша ({len(question_ids)} вопросов)"
            )
            return _PartitionResult(
                {qid: cached[qid] for qid in question_ids},
                StepSource.CACHE,
                _elapsed_ms(started),
            )

        answers = await self._fetch_partition(spec, question_ids)
        await self._write_cached_batch(question_type, question_ids, answers, diagnostics)

        logger.debug(
            f"✅ Ответы {question_type.value} из БД: {len(question_ids)} вопросов"
        )
        return _PartitionResult(answers, StepSource.DATABASE, _elapsed_ms(started))

    async def _read_cached_batch(
        self,
        question_type: QuestionType,
        question_ids: List[str],
        diagnostics: DiagnosticsCollector,
    ) -> Optional[AnswerBatch]:
        if self._cache is None:
            return None
        try:
            return await with_timeout(
                self._cache.get_answer_batch(question_type, question_ids),
                self._cache_timeout,
                f"cache_lookup:{question_type.value}",
            )
        except Exception as e:
            # Недоступный кэш эквивалентен промаху
            logger.warning(f"⚠️ Ошибка чтения кэша ответов {question_type.value}: {e}")
            diagnostics.warn(f"Кэш ответов недоступен: {type(e).__name__}", question_ids)
            return None

    async def _write_cached_batch(
        self,
        question_type: QuestionType,
        question_ids: List[str],
        answers: AnswerBatch,
        diagnostics: DiagnosticsCollector,
    ) -> None:
        if self._cache is None:
            return
        try:
            await with_timeout(
                self._cache.put_answer_batch(question_type, question_ids, answers),
                self._cache_timeout,
                f"cache_write:{question_type.value}",
            )
        except Exception as e:
            # Ответы уже прочитаны из БД, партиция считается успешной
            logger.warning(f"⚠️ Ошибка записи ответов {question_type.value} в кэш: {e}")
            diagnostics.warn(f"Ответы не записаны в кэш: {type(e).__name__}", question_ids)

    async def _fetch_partition(
        self, spec: QuestionTypeSpec, question_ids: List[str]
    ) -> AnswerBatch:
        stage = f"fetch_answers:{spec.type.value}"
        try:
            rows = await with_timeout(
                self._store.get_answer_rows_by_question_ids(
                    spec.relation, question_ids, spec.order_by, spec.filter_key
                ),
                self._timeout,
                stage,
            )
            grouped: Dict[str, list] = {qid: [] for qid in question_ids}
            for row in rows:
                bucket = grouped.get(row.get(spec.filter_key))
                if bucket is not None:
                    bucket.append(row)
            return {qid: spec.decode(grouped[qid]) for qid in question_ids}
        except (AssemblyError, UnknownQuestionType):
            raise
        except Exception as e:
            raise AnswerPartitionUnavailable(
                spec.type.value, f"{type(e).__name__}: {e}"
            ) from e


class _QuestionRef(NamedTuple):
    id: str
    type: QuestionType


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 3)
