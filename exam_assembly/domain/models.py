# -*- coding: utf-8 -*-
"""
exam_assembly/domain/models.py
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
ORM-модели хранилища тестов.

Таблицы принадлежат подсистеме авторинга; движок сборки только читает их.
Ответы хранятся в отдельной таблице для каждой формы набора ответов.
"""

import uuid
from datetime import datetime

from sqlalchemy import (Boolean, Column, DateTime, ForeignKey, Integer,
                        String, Text)
from sqlalchemy.orm import DeclarativeBase, relationship


def _uuid() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Базовый класс всех ORM-моделей."""


class Category(Base):
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)


class TestCategory(Base):
    __tablename__ = "test_categories"

    test_id = Column(
        String(36), ForeignKey("tests.id", ondelete="CASCADE"), primary_key=True
    )
    category_id = Column(
        String(36), ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True
    )


class Test(Base):
    __tablename__ = "tests"

    id = Column(String(36), primary_key=True, default=_uuid)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    instructions = Column(Text, nullable=True)
    time_limit = Column(Integer, nullable=True)  # в секундах
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)

    categories = relationship(
        "Category", secondary="test_categories", lazy="selectin", viewonly=True
    )


class Question(Base):
    __tablename__ = "questions"

    id = Column(String(36), primary_key=True, default=_uuid)
    text = Column(Text, nullable=False)
    type = Column(String(32), nullable=False)  # тег типа; проверяется реестром
    media_url = Column(String(1024), nullable=True)
    category_id = Column(
        String(36), ForeignKey("categories.id", ondelete="SET NULL"), nullable=True
    )
    difficulty = Column(String(16), nullable=True)
    points = Column(Integer, nullable=True)
    explanation = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)


class TestQuestion(Base):
    __tablename__ = "test_questions"

    id = Column(String(36), primary_key=True, default=_uuid)
    test_id = Column(
        String(36), ForeignKey("tests.id", ondelete="CASCADE"), nullable=False
    )
    question_id = Column(
        String(36), ForeignKey("questions.id", ondelete="CASCADE"), nullable=True
    )
    position = Column(Integer, nullable=False, default=0)


# ---------------------------------------------------------------------------
# Таблицы ответов
# ---------------------------------------------------------------------------


class Answer(Base):
    """Варианты ответа для single-choice, multiple-choice и true-false."""

    __tablename__ = "answers"

    id = Column(String(36), primary_key=True, default=_uuid)
    question_id = Column(
        String(36), ForeignKey("questions.id", ondelete="CASCADE"), index=True
    )
    text = Column(Text, nullable=False)
    is_correct = Column(Boolean, default=False, nullable=False)
    position = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class MatchItem(Base):
    __tablename__ = "match_items"

    id = Column(String(36), primary_key=True, default=_uuid)
    question_id = Column(
        String(36), ForeignKey("questions.id", ondelete="CASCADE"), index=True
    )
    left_text = Column(Text, nullable=False)
    right_text = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class SequenceItem(Base):
    __tablename__ = "sequence_items"

    id = Column(String(36), primary_key=True, default=_uuid)
    question_id = Column(
        String(36), ForeignKey("questions.id", ondelete="CASCADE"), index=True
    )
    text = Column(Text, nullable=False)
    correct_position = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class DragDropItem(Base):
    __tablename__ = "drag_drop_items"

    id = Column(String(36), primary_key=True, default=_uuid)
    question_id = Column(
        String(36), ForeignKey("questions.id", ondelete="CASCADE"), index=True
    )
    content = Column(Text, nullable=False)
    target_zone = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


# Таблицы ответов по имени отношения (используется репозиторием ответов)
ANSWER_RELATIONS = {
    Answer.__tablename__: Answer,
    MatchItem.__tablename__: MatchItem,
    SequenceItem.__tablename__: SequenceItem,
    DragDropItem.__tablename__: DragDropItem,
}
