# -*- coding: utf-8 -*-
"""
Unit тесты для параллельного запуска обращений
"""

import asyncio

import pytest

from exam_assembly.service.task_group import gather_settled, with_timeout
from exam_assembly.utils.exceptions import AssemblyTimeout, UnknownQuestionType


async def _value(value, delay: float = 0.0):
    await asyncio.sleep(delay)
    return value


async def _fail(error: BaseException, delay: float = 0.0):
    await asyncio.sleep(delay)
    raise error


class TestGatherSettled:
    """Тесты барьера ожидания с ошибками как данными"""

    @pytest.mark.asyncio
    async def test_failure_does_not_cancel_siblings(self):
        # Arrange
        finished = []

        async def slow():
            await asyncio.sleep(0.05)
            finished.append("slow")
            return "done"

        # Act
        outcomes = await gather_settled(
            {"fail": _fail(ConnectionError("boom")), "slow": slow()}
        )

        # Assert
        assert not outcomes["fail"].ok
        assert isinstance(outcomes["fail"].error, ConnectionError)
        assert outcomes["slow"].ok
        assert outcomes["slow"].value == "done"
        assert finished == ["slow"]

    @pytest.mark.asyncio
    async def test_tasks_run_concurrently(self):
        loop = asyncio.get_running_loop()
        started = loop.time()

        outcomes = await gather_settled({i: _value(i, 0.1) for i in range(5)})

        assert [outcome.value for outcome in outcomes.values()] == [0, 1, 2, 3, 4]
        assert loop.time() - started < 0.4

    @pytest.mark.asyncio
    async def test_empty_input(self):
        assert await gather_settled({}) == {}

    @pytest.mark.asyncio
    async def test_unknown_question_type_propagates(self):
        with pytest.raises(UnknownQuestionType):
            await gather_settled(
                {"ok": _value(1), "bad": _fail(UnknownQuestionType("essay"))}
            )


    @pytest.mark.asyncio
    async def test_unknown_question_type_cancels_siblings(self):
        # Arrange
        cancelled = []

        async def slow():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.append("slow")
                raise

        # Act
        with pytest.raises(UnknownQuestionType):
            await gather_settled(
                {"slow": slow(), "bad": _fail(UnknownQuestionType("essay"), 0.01)}
            )

        # Assert
        assert cancelled == ["slow"]


class TestWithTimeout:
    """Тесты таймаута обращения"""

    @pytest.mark.asyncio
    async def test_timeout_is_reported_with_stage(self):
        with pytest.raises(AssemblyTimeout) as exc_info:
            await with_timeout(_value(1, 1.0), 0.01, "fetch_test_metadata")

        assert exc_info.value.stage == "fetch_test_metadata"
        assert exc_info.value.timeout == 0.01

    @pytest.mark.asyncio
    async def test_no_timeout(self):
        assert await with_timeout(_value("x"), None, "stage") == "x"
