# -*- coding: utf-8 -*-
"""
Сборщик диагностики для одного вызова сборки теста.

Запись только дополняется: шаги с таймингами, структурированные ошибки и
предупреждения. На ход сборки не влияет.
"""

import time
from contextlib import contextmanager
from typing import Any, Callable, Iterable, Iterator, Optional, Union

from exam_assembly.domain.diagnostics import (DiagnosticError,
                                              DiagnosticsReport,
                                              DiagnosticStep,
                                              DiagnosticWarning)
from exam_assembly.domain.enums import DegradationTier, StepSource


class DiagnosticsCollector:
    """Накопитель диагностики вызова."""

    def __init__(self, clock: Callable[[], float] = time.perf_counter):
        self._clock = clock
        self._started = clock()
        self.report = DiagnosticsReport()

    def _elapsed_ms(self, since: Optional[float] = None) -> float:
        return round((self._clock() - (self._started if since is None else since)) * 1000, 3)

    @contextmanager
    def step(
        self, name: str, source: Optional[StepSource] = None, **details: Any
    ) -> Iterator[DiagnosticStep]:
        """
        Засечь шаг сборки.

        Шаг добавляется в отчёт в момент начала; исключение внутри блока помечает
        шаг неуспешным и пробрасывается дальше.
        """
        started = self._clock()
        step = DiagnosticStep(
            name=name,
            started_ms=self._elapsed_ms(),
            source=source,
            details=dict(details),
        )
        self.report.steps.append(step)
        try:
            yield step
        except BaseException:
            step.success = False
            raise
        finally:
            step.duration_ms = self._elapsed_ms(started)

    def record_step(
        self,
        name: str,
        success: bool = True,
        source: Optional[StepSource] = None,
        duration_ms: float = 0.0,
        **details: Any,
    ) -> DiagnosticStep:
        step = DiagnosticStep(
            name=name,
            started_ms=max(0.0, round(self._elapsed_ms() - duration_ms, 3)),
            duration_ms=duration_ms,
            success=success,
            source=source,
            details=dict(details),
        )
        self.report.steps.append(step)
        return step

    def record_error(self, step: str, error: Union[BaseException, str]) -> None:
        if isinstance(error, BaseException):
            kind = type(error).__name__
            cause = str(error) or repr(error)
        else:
            kind, cause = "Error", error
        self.report.errors.append(DiagnosticError(step=step, kind=kind, cause=cause))

    def warn(self, message: str, question_ids: Iterable[str] = ()) -> None:
        self.report.warnings.append(
            DiagnosticWarning(message=message, question_ids=list(question_ids))
        )

    def mark_cache_hit(self) -> None:
        self.report.from_cache = True

    def mark_degraded(self, tier: DegradationTier) -> None:
        self.report.degradation = tier

    @property
    def has_errors(self) -> bool:
        return bool(self.report.errors)

    def finish(self, question_count: int) -> DiagnosticsReport:
        self.report.total_duration_ms = self._elapsed_ms()
        self.report.question_count = question_count
        return self.report
