# -*- coding: utf-8 -*-
"""
Варианты набора ответов (AnswerSet).

Каждый вопрос владеет списком записей одного варианта; вариант определяется
типом вопроса через реестр типов. Дискриминатор ``kind`` позволяет восстанавливать
записи из кэша без знания типа вопроса.
"""

from typing import Annotated, Dict, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from exam_assembly.domain.enums import AnswerKind


class ChoiceOption(BaseModel):
    """Вариант ответа для single-choice, multiple-choice и true-false."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[AnswerKind.CHOICE] = AnswerKind.CHOICE
    id: Optional[str] = None
    text: str
    is_correct: bool = False
    position: Optional[int] = None


class MatchPair(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal[AnswerKind.MATCH] = AnswerKind.MATCH
    id: Optional[str] = None
    left_text: str
    right_text: str


class SequenceStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal[AnswerKind.SEQUENCE] = AnswerKind.SEQUENCE
    id: Optional[str] = None
    text: str
    correct_position: int


class DragDropPiece(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal[AnswerKind.DRAG_DROP] = AnswerKind.DRAG_DROP
    id: Optional[str] = None
    content: str
    target_zone: str


AnswerEntry = Annotated[
    Union[ChoiceOption, MatchPair, SequenceStep, DragDropPiece],
    Field(discriminator="kind"),
]

AnswerSet = Tuple[AnswerEntry, ...]

# Пакет ответов партиции: question_id -> набор ответов
AnswerBatch = Dict[str, AnswerSet]

answer_batch_adapter: TypeAdapter[AnswerBatch] = TypeAdapter(AnswerBatch)
