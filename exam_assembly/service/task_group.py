# -*- coding: utf-8 -*-
"""
Параллельный запуск независимых обращений к хранилищу.

gather_settled дожидается завершения всех задач (барьер) и возвращает ошибку
каждой задачи как данные, не отменяя соседние задачи. Исключение:
UnknownQuestionType, при котором соседние задачи отменяются.
"""

import asyncio
from typing import Any, Awaitable, Dict, Generic, Hashable, Mapping, Optional, TypeVar

from exam_assembly.utils.exceptions import AssemblyTimeout, UnknownQuestionType

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")


class TaskOutcome(Generic[T]):
    """Результат одной задачи: значение либо ошибка."""

    __slots__ = ("value", "error")

    def __init__(self, value: Optional[T] = None, error: Optional[BaseException] = None):
        self.value = value
        self.error = error

    @property
    def ok(self) -> bool:
        return self.error is None

    def __repr__(self) -> str:
        if self.ok:
            return f"TaskOutcome(value={self.value!r})"
        return f"TaskOutcome(error={self.error!r})"


async def with_timeout(awaitable: Awaitable[T], timeout: Optional[float], stage: str) -> T:
    """
    Выполнить обращение с таймаутом.

    Raises:
        AssemblyTimeout: если обращение не уложилось в timeout секунд
    """
    if not timeout:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except asyncio.TimeoutError:
        raise AssemblyTimeout(stage, timeout) from None


async def _settle(awaitable: Awaitable[Any]) -> TaskOutcome[Any]:
    try:
        return TaskOutcome(value=await awaitable)
    except UnknownQuestionType:
        # Дефект конфигурации не превращается в данные
        raise
    except Exception as e:
        return TaskOutcome(error=e)


async def gather_settled(tasks: Mapping[K, Awaitable[T]]) -> Dict[K, TaskOutcome[T]]:
    """
    Запустить задачи параллельно и дождаться всех.

    Если задача выбросила UnknownQuestionType, остальные задачи отменяются
    и дожидаются завершения до того, как исключение уйдёт наружу.

    Args:
        tasks: Ключ задачи -> корутина

    Returns:
        Ключ задачи -> TaskOutcome (в порядке ключей исходного словаря)
    """
    if not tasks:
        return {}
    keys = list(tasks.keys())
    running = [asyncio.ensure_future(_settle(tasks[key])) for key in keys]
    try:
        outcomes = await asyncio.gather(*running)
    except BaseException:
        for task in running:
            task.cancel()
        await asyncio.gather(*running, return_exceptions=True)
        raise
    return dict(zip(keys, outcomes))
