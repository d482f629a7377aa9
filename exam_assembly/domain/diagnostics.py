# -*- coding: utf-8 -*-
"""
Схемы диагностики вызова сборки.

Отчёт отдаётся вызывающей стороне вместе с результатом и не влияет на ход
сборки.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from exam_assembly.domain.enums import DegradationTier, StepSource


class DiagnosticStep(BaseModel):
    name: str
    started_ms: float = Field(description="Смещение начала от старта вызова, мс")
    duration_ms: float = 0.0
    success: bool = True
    source: Optional[StepSource] = None
    details: Dict[str, Any] = Field(default_factory=dict)


class DiagnosticError(BaseModel):
    step: str
    kind: str = Field(description="Класс ошибки из таксономии сборки")
    cause: str


class DiagnosticWarning(BaseModel):
    message: str
    question_ids: List[str] = Field(default_factory=list)


class DiagnosticsReport(BaseModel):
    steps: List[DiagnosticStep] = Field(default_factory=list)
    errors: List[DiagnosticError] = Field(default_factory=list)
    warnings: List[DiagnosticWarning] = Field(default_factory=list)
    total_duration_ms: float = 0.0
    from_cache: bool = False
    degradation: Optional[DegradationTier] = None
    question_count: int = 0

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)
