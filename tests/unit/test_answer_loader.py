# -*- coding: utf-8 -*-
"""
Unit тесты для пакетного загрузчика ответов
"""

import pytest

from exam_assembly.domain.answers import ChoiceOption, MatchPair
from exam_assembly.domain.enums import QuestionType, StepSource
from exam_assembly.service.answer_loader import (BatchAnswerLoader,
                                                 partition_by_type)
from exam_assembly.service.cache_service import AssemblyCache, InMemoryCacheBackend
from exam_assembly.service.diagnostics import DiagnosticsCollector
from exam_assembly.utils.exceptions import UnknownQuestionType

from tests.fixtures import (FakeRecordStore, choice_rows, make_question,
                            sequence_rows)


class _ReadOnlyBackend(InMemoryCacheBackend):
    """Кэш, который не принимает запись."""

    async def set(self, key, value, ttl=None):
        raise ConnectionError("cache is read-only")


class TestPartitionByType:
    """Тесты разбиения вопросов на партиции"""

    def test_partitions_keep_order_and_drop_duplicates(self):
        questions = [
            make_question("q1", "single-choice"),
            make_question("q2", "matching"),
            make_question("q3", "single_choice"),
            make_question("q1", "single-choice"),
        ]

        partitions = partition_by_type(questions)

        assert partitions == {
            QuestionType.SINGLE_CHOICE: ["q1", "q3"],
            QuestionType.MATCHING: ["q2"],
        }

    def test_unknown_type_raises(self):
        with pytest.raises(UnknownQuestionType):
            partition_by_type([make_question("q1", "essay")])


class TestBatchAnswerLoader:
    """Тесты пакетной загрузки ответов"""

    @pytest.mark.asyncio
    async def test_one_call_per_partition(self):
        # Arrange - 50 single-choice вопросов
        ids = [f"q{i}" for i in range(50)]
        rows = [row for qid in ids for row in choice_rows(qid, ["A", "B"], 0)]
        store = FakeRecordStore(answer_rows={"answers": rows})
        loader = BatchAnswerLoader(store, cache=None)

        # Act
        answers = await loader.load([make_question(qid) for qid in ids])

        # Assert
        assert store.calls["answers"] == 1
        assert set(answers) == set(ids)
        assert all(len(answer_set) == 2 for answer_set in answers.values())

    @pytest.mark.asyncio
    async def test_answers_are_grouped_by_question(self, store):
        loader = BatchAnswerLoader(store, cache=None)

        answers = await loader.load(store.questions["test-1"])

        assert [a.text for a in answers["q1"]] == ["let", "var", "const"]
        assert [a.text for a in answers["q2"]] == ["==", "==="]
        assert all(isinstance(a, ChoiceOption) for a in answers["q1"] + answers["q2"])
        assert len(answers["q3"]) == 3
        assert all(isinstance(a, MatchPair) for a in answers["q3"])
        assert sorted(relation for relation, _ in store.answer_calls) == ["answers", "match_items"]

    @pytest.mark.asyncio
    async def test_failed_partition_does_not_affect_others(self, store):
        # Arrange
        store.fail("match_items")
        loader = BatchAnswerLoader(store, cache=None)
        diagnostics = DiagnosticsCollector()

        # Act
        answers = await loader.load(store.questions["test-1"], diagnostics)

        # Assert
        assert answers["q3"] == ()
        assert len(answers["q1"]) == 3
        assert len(answers["q2"]) == 2
        report = diagnostics.report
        assert [error.step for error in report.errors] == ["fetch_answers:matching"]
        assert report.errors[0].kind == "AnswerPartitionUnavailable"
        steps = {step.name: step.success for step in report.steps}
        assert steps == {"fetch_answers:single-choice": True, "fetch_answers:matching": False}

    @pytest.mark.asyncio
    async def test_slow_partition_times_out(self, store):
        store.delays["match_items"] = 1.0
        loader = BatchAnswerLoader(store, cache=None, timeout=0.05)
        diagnostics = DiagnosticsCollector()

        answers = await loader.load(store.questions["test-1"], diagnostics)

        assert answers["q3"] == ()
        assert len(answers["q1"]) == 3
        assert diagnostics.report.errors[0].kind == "AssemblyTimeout"

    @pytest.mark.asyncio
    async def test_question_without_rows_gets_empty_answers(self):
        store = FakeRecordStore(answer_rows={"sequence_items": sequence_rows("q1", ["A", "B"])})
        loader = BatchAnswerLoader(store, cache=None)

        answers = await loader.load(
            [make_question("q1", "sequence"), make_question("q2", "sequence")]
        )

        assert [step.correct_position for step in answers["q1"]] == [1, 2]
        assert answers["q2"] == ()

    @pytest.mark.asyncio
    async def test_cache_reuse_for_same_id_set(self, store, cache):
        # Arrange
        loader = BatchAnswerLoader(store, cache)
        questions = store.questions["test-1"]
        await loader.load(questions)
        diagnostics = DiagnosticsCollector()

        # Act - тот же набор вопросов в другом порядке
        answers = await loader.load(list(reversed(questions)), diagnostics)

        # Assert
        assert store.calls["answers"] == 1
        assert store.calls["match_items"] == 1
        assert len(answers["q3"]) == 3
        assert {step.source for step in diagnostics.report.steps} == {StepSource.CACHE}

    @pytest.mark.asyncio
    async def test_failed_partition_is_not_cached(self, store, cache):
        store.fail("match_items")
        loader = BatchAnswerLoader(store, cache)
        await loader.load(store.questions["test-1"])

        store.failures.clear()
        answers = await loader.load(store.questions["test-1"])

        assert store.calls["match_items"] == 2
        assert len(answers["q3"]) == 3

    @pytest.mark.asyncio
    async def test_load_for_question(self, store):
        loader = BatchAnswerLoader(store, cache=None)

        answers = await loader.load_for_question("q2", "single_choice")

        assert [a.text for a in answers] == ["==", "==="]
        assert store.answer_calls == [("answers", ("q2",))]

    @pytest.mark.asyncio
    async def test_load_for_question_failure_returns_empty(self, store):
        store.fail("answers")
        loader = BatchAnswerLoader(store, cache=None)

        assert await loader.load_for_question("q1", QuestionType.SINGLE_CHOICE) == ()

    @pytest.mark.asyncio
    async def test_cache_write_failure_keeps_fetched_answers(self, store):
        # Arrange
        cache = AssemblyCache(_ReadOnlyBackend())
        loader = BatchAnswerLoader(store, cache)
        diagnostics = DiagnosticsCollector()

        # Act
        answers = await loader.load(store.questions["test-1"], diagnostics)

        # Assert
        assert [a.text for a in answers["q2"]] == ["==", "==="]
        assert len(answers["q3"]) == 3
        assert all(step.success for step in diagnostics.report.steps)
        assert diagnostics.report.errors == []
        messages = {w.message for w in diagnostics.report.warnings}
        assert messages == {"Ответы не записаны в кэш: ConnectionError"}
