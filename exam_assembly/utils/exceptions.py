# -*- coding: utf-8 -*-
"""
Исключения движка сборки тестов.

Ошибки сборки (AssemblyError и наследники) восстанавливаются локально уровнями
деградации и попадают в диагностику. Исключение составляет UnknownQuestionType:
это дефект конфигурации, он прерывает сборку. Исключения APIException
используются только HTTP-слоем.
"""

from enum import Enum

from fastapi import HTTPException, status


class ErrorCode(str, Enum):
    """Перечисление для уникальных кодов ошибок."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    INVALID_QUESTION_TYPE = "INVALID_QUESTION_TYPE"


# ---------------------------------------------------------------------------
# Таксономия ошибок сборки
# ---------------------------------------------------------------------------


class AssemblyError(Exception):
    """Базовый класс ошибок сборки теста."""

    def __init__(self, stage: str, detail: str = ""):
        self.stage = stage
        self.detail = detail
        message = f"{stage}: {detail}" if detail else stage
        super().__init__(message)


class MetadataUnavailable(AssemblyError):
    """Метаданные теста не получены."""

    def __init__(self, test_id: str, detail: str = ""):
        self.test_id = test_id
        super().__init__("fetch_test_metadata", detail or f"Тест {test_id} не найден")


class QuestionListUnavailable(AssemblyError):
    """Список вопросов теста не получен или пуст."""

    def __init__(self, test_id: str, detail: str = ""):
        self.test_id = test_id
        super().__init__(
            "fetch_test_questions", detail or f"Вопросы теста {test_id} не найдены"
        )


class AnswerPartitionUnavailable(AssemblyError):
    """Не удалось загрузить ответы для партиции одного типа вопросов."""

    def __init__(self, question_type: str, detail: str = ""):
        self.question_type = question_type
        super().__init__(f"fetch_answers:{question_type}", detail)


class AssemblyTimeout(AssemblyError):
    """Обращение к хранилищу не уложилось в таймаут."""

    def __init__(self, stage: str, timeout: float):
        self.timeout = timeout
        super().__init__(stage, f"превышен таймаут {timeout:g} с")


class UnknownQuestionType(ValueError):
    """Тег типа вопроса не зарегистрирован в реестре (ошибка конфигурации)."""

    def __init__(self, type_tag: object, question_id: str | None = None):
        self.type_tag = type_tag
        self.question_id = question_id
        detail = f"Неизвестный тип вопроса: {type_tag!r}"
        if question_id:
            detail = f"{detail} (вопрос {question_id})"
        super().__init__(detail)


# ---------------------------------------------------------------------------
# HTTP-исключения
# ---------------------------------------------------------------------------


class APIException(HTTPException):
    """Базовый класс для пользовательских исключений API."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: str,
        headers: dict | None = None,
    ):
        """
        Инициализирует APIException с кодом статуса, деталями и кодом ошибки.

        Args:
            status_code (int): HTTP код статуса.
            detail (str): Сообщение об ошибке.
            error_code (str): Уникальный код ошибки.
            headers (dict, optional): Дополнительные заголовки.
        """
        super().__init__(status_code=status_code, headers=headers)
        self.detail = detail
        self.error_code = error_code


class ConfigurationError(APIException):
    """Вызывается, когда данные хранилища противоречат конфигурации движка."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            error_code=ErrorCode.CONFIGURATION_ERROR,
        )


class InvalidQuestionTypeError(APIException):
    """Вызывается, когда клиент передал незарегистрированный тип вопроса."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            error_code=ErrorCode.INVALID_QUESTION_TYPE,
        )
