# -*- coding: utf-8 -*-
"""
Реестр типов вопросов.

Единственное место, где тег типа вопроса сопоставляется с таблицей ответов,
ключом фильтрации и сортировки и декодером строк в вариант AnswerSet.
Добавление нового типа вопроса сводится к новой записи в QUESTION_TYPES.
"""

from typing import Any, Callable, Dict, Iterable, Mapping, Tuple, Union

from pydantic import BaseModel, ConfigDict

from exam_assembly.domain.answers import (AnswerEntry, AnswerSet, ChoiceOption,
                                          DragDropPiece, MatchPair,
                                          SequenceStep)
from exam_assembly.domain.enums import AnswerKind, QuestionType
from exam_assembly.utils.exceptions import UnknownQuestionType

Row = Mapping[str, Any]


def _pick(row: Row, *keys: str, default: Any = None) -> Any:
    """Первое непустое значение из строки по списку ключей (snake_case и camelCase)."""
    for key in keys:
        value = row.get(key)
        if value is not None:
            return value
    return default


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


def decode_choice(row: Row) -> ChoiceOption:
    return ChoiceOption(
        id=_optional_str(row.get("id")),
        text=str(_pick(row, "text", default="")),
        is_correct=bool(_pick(row, "is_correct", "isCorrect", default=False)),
        position=_pick(row, "position"),
    )


def decode_match(row: Row) -> MatchPair:
    return MatchPair(
        id=_optional_str(row.get("id")),
        left_text=str(_pick(row, "left_text", "leftText", default="")),
        right_text=str(_pick(row, "right_text", "rightText", default="")),
    )


def decode_sequence(row: Row) -> SequenceStep:
    return SequenceStep(
        id=_optional_str(row.get("id")),
        text=str(_pick(row, "text", default="")),
        correct_position=int(_pick(row, "correct_position", "correctPosition", default=0)),
    )


def decode_drag_drop(row: Row) -> DragDropPiece:
    return DragDropPiece(
        id=_optional_str(row.get("id")),
        content=str(_pick(row, "content", default="")),
        target_zone=str(_pick(row, "target_zone", "targetZone", default="")),
    )


class QuestionTypeSpec(BaseModel):
    """Описание хранения ответов для одного типа вопроса."""

    model_config = ConfigDict(frozen=True)

    type: QuestionType
    relation: str
    filter_key: str = "question_id"
    # Пустой кортеж означает, что порядок строк не определён
    order_by: Tuple[str, ...] = ()
    answer_kind: AnswerKind
    decoder: Callable[[Row], AnswerEntry]

    def decode(self, rows: Iterable[Row]) -> AnswerSet:
        return tuple(self.decoder(row) for row in rows)


_CHOICE = dict(
    relation="answers",
    order_by=("position",),
    answer_kind=AnswerKind.CHOICE,
    decoder=decode_choice,
)

QUESTION_TYPES: Dict[QuestionType, QuestionTypeSpec] = {
    QuestionType.SINGLE_CHOICE: QuestionTypeSpec(type=QuestionType.SINGLE_CHOICE, **_CHOICE),
    QuestionType.MULTIPLE_CHOICE: QuestionTypeSpec(type=QuestionType.MULTIPLE_CHOICE, **_CHOICE),
    QuestionType.TRUE_FALSE: QuestionTypeSpec(type=QuestionType.TRUE_FALSE, **_CHOICE),
    QuestionType.MATCHING: QuestionTypeSpec(
        type=QuestionType.MATCHING,
        relation="match_items",
        # Порядок вставки; правильность пар от порядка не зависит
        order_by=("created_at", "id"),
        answer_kind=AnswerKind.MATCH,
        decoder=decode_match,
    ),
    QuestionType.SEQUENCE: QuestionTypeSpec(
        type=QuestionType.SEQUENCE,
        relation="sequence_items",
        order_by=("correct_position",),
        answer_kind=AnswerKind.SEQUENCE,
        decoder=decode_sequence,
    ),
    QuestionType.DRAG_DROP: QuestionTypeSpec(
        type=QuestionType.DRAG_DROP,
        relation="drag_drop_items",
        order_by=("created_at", "id"),
        answer_kind=AnswerKind.DRAG_DROP,
        decoder=decode_drag_drop,
    ),
}

CHOICE_TYPES = frozenset(
    t for t, spec in QUESTION_TYPES.items() if spec.answer_kind == AnswerKind.CHOICE
)


def resolve_question_type(
    type_tag: Union[QuestionType, str, None], question_id: str | None = None
) -> QuestionType:
    """
    Привести тег типа к QuestionType.

    Принимает как дефисное написание ('drag-drop'), так и устаревшее
    с подчёркиванием ('drag_drop').

    Raises:
        UnknownQuestionType: если тег не зарегистрирован
    """
    if isinstance(type_tag, QuestionType):
        return type_tag
    if not isinstance(type_tag, str):
        raise UnknownQuestionType(type_tag, question_id)
    normalized = type_tag.strip().lower().replace("_", "-")
    try:
        question_type = QuestionType(normalized)
    except ValueError:
        raise UnknownQuestionType(type_tag, question_id) from None
    if question_type not in QUESTION_TYPES:
        raise UnknownQuestionType(type_tag, question_id)
    return question_type


def get_type_spec(type_tag: Union[QuestionType, str]) -> QuestionTypeSpec:
    """Получить описание типа вопроса (fail fast для неизвестных тегов)."""
    return QUESTION_TYPES[resolve_question_type(type_tag)]


def matches_shape(type_tag: Union[QuestionType, str], answers: AnswerSet) -> bool:
    """Проверить, что все записи набора ответов соответствуют типу вопроса."""
    expected = get_type_spec(type_tag).answer_kind
    return all(answer.kind == expected for answer in answers)


def has_correct_option(type_tag: Union[QuestionType, str], answers: AnswerSet) -> bool:
    """
    Проверить наличие правильного варианта у вопроса с выбором ответа.

    Для true-false без настроенного правильного варианта и для прочих типов
    проверка считается пройденной.
    """
    question_type = resolve_question_type(type_tag)
    if question_type not in CHOICE_TYPES or question_type == QuestionType.TRUE_FALSE:
        return True
    return any(getattr(answer, "is_correct", False) for answer in answers)
