"""
Сервис кэширования сборок тестов.

Модуль предоставляет уровень кэша с двумя видами записей:
- вся сборка теста по ID теста;
- пакет ответов партиции по (тип вопроса, множество ID вопросов).

Хранение вынесено в подключаемые бэкенды (in-process память или Redis),
значения сериализуются в JSON-совместимый вид одинаково для обоих бэкендов.
"""

import fnmatch
import hashlib
import json
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Any, Callable, Iterable, Optional, Tuple, Union

import redis.asyncio as redis
from pydantic import ValidationError
from redis.asyncio import Redis

from exam_assembly.config.logger import configure_logger
from exam_assembly.config.redis_settings import (get_redis_connection_params,
                                                 redis_settings)
from exam_assembly.config.settings import settings
from exam_assembly.domain.answers import AnswerBatch, answer_batch_adapter
from exam_assembly.domain.assembly import TestAssembly
from exam_assembly.domain.enums import QuestionType

logger = configure_logger(__name__)


class CacheBackend(ABC):
    """Хранилище ключ-значение с TTL."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Значение по ключу или None, если ключа нет или он истёк."""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Сохранить значение; ttl в секундах."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Удалить ключ."""

    @abstractmethod
    async def invalidate_pattern(self, pattern: str) -> int:
        """Удалить все ключи, соответствующие glob-паттерну."""

    @abstractmethod
    async def stats(self) -> dict:
        """Статистика бэкенда."""

    async def close(self) -> None:
        return None


class InMemoryCacheBackend(CacheBackend):
    """
    Кэш в памяти процесса с TTL и опциональным вытеснением LRU.

    Часы передаются извне, чтобы TTL можно было проверять в тестах без ожидания.
    Чтение и запись выполняются в одном потоке event loop и не требуют блокировок;
    при конкурентной записи одного ключа побеждает последний писатель.
    """

    def __init__(
        self,
        max_entries: Optional[int] = None,
        default_ttl: int = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._entries: "OrderedDict[str, Tuple[Any, float]]" = OrderedDict()
        self._max_entries = max_entries
        self._default_ttl = default_ttl
        self._clock = clock
        self.hits = 0
        self.misses = 0

    async def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None

        value, expires_at = entry
        if self._clock() >= expires_at:
            # Истёкшая запись молча отбрасывается
            self._entries.pop(key, None)
            self.misses += 1
            return None

        self._entries.move_to_end(key)
        self.hits += 1
        return value

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        self._evict_expired()
        expires_at = self._clock() + (ttl or self._default_ttl)
        self._entries[key] = (value, expires_at)
        self._entries.move_to_end(key)

        if self._max_entries is not None:
            while len(self._entries) > self._max_entries:
                evicted_key, _ = self._entries.popitem(last=False)
                logger.debug(f"Вытеснена запись кэша (LRU): {evicted_key}")
        return True

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    async def invalidate_pattern(self, pattern: str) -> int:
        keys = [key for key in self._entries if fnmatch.fnmatchcase(key, pattern)]
        for key in keys:
            del self._entries[key]
        return len(keys)

    async def stats(self) -> dict:
        return {
            "backend": "memory",
            "size": len(self._entries),
            "max_size": self._max_entries,
            "hits": self.hits,
            "misses": self.misses,
        }

    def _evict_expired(self) -> None:
        now = self._clock()
        expired = [key for key, (_, expires_at) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]


class RedisCacheBackend(CacheBackend):
    """Бэкенд кэша поверх Redis с JSON-сериализацией."""

    def __init__(self, client: Optional[Redis] = None):
        self._redis: Optional[Redis] = client
        self._connection_params = get_redis_connection_params()

    async def get_redis(self) -> Redis:
        """
        Получить подключение к Redis (ленивая инициализация).

        Returns:
            Экземпляр подключения к Redis
        """
        if self._redis is None:
            try:
                self._redis = redis.Redis(**self._connection_params)
                await self._redis.ping()
                logger.info("Подключение к Redis установлено успешно")
            except Exception as e:
                self._redis = None
                logger.error(f"Ошибка подключения к Redis: {e}")
                raise

        return self._redis

    async def close(self) -> None:
        """Закрыть подключение к Redis."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None
            logger.info("Подключение к Redis закрыто")

    async def get(self, key: str) -> Optional[Any]:
        try:
            redis_client = await self.get_redis()
            data = await redis_client.get(key)
            if data is None:
                return None
            return json.loads(data)
        except Exception as e:
            # Недоступный кэш эквивалентен промаху
            logger.error(f"Ошибка получения ключа кэша '{key}': {e}")
            return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        try:
            redis_client = await self.get_redis()
            serialized_value = json.dumps(value, default=str, ensure_ascii=False)
            if ttl:
                await redis_client.setex(key, ttl, serialized_value)
            else:
                await redis_client.set(key, serialized_value)
            return True
        except Exception as e:
            logger.error(f"Ошибка установки ключа кэша '{key}': {e}")
            return False

    async def delete(self, key: str) -> bool:
        try:
            redis_client = await self.get_redis()
            return await redis_client.delete(key) > 0
        except Exception as e:
            logger.error(f"Ошибка удаления ключа кэша '{key}': {e}")
            return False

    async def invalidate_pattern(self, pattern: str) -> int:
        try:
            redis_client = await self.get_redis()
            keys = [key async for key in redis_client.scan_iter(match=pattern)]
            if keys:
                deleted = await redis_client.delete(*keys)
                logger.info(
                    f"Инвалидировано {deleted} ключей, соответствующих паттерну: {pattern}"
                )
                return deleted
            return 0
        except Exception as e:
            logger.error(f"Ошибка инвалидации паттерна '{pattern}': {e}")
            return 0

    async def stats(self) -> dict:
        try:
            redis_client = await self.get_redis()
            info = await redis_client.info()
            return {
                "backend": "redis",
                "used_memory": info.get("used_memory_human", "0B"),
                "hits": info.get("keyspace_hits", 0),
                "misses": info.get("keyspace_misses", 0),
            }
        except Exception as e:
            logger.error(f"Ошибка получения статистики кэша: {e}")
            return {"backend": "redis"}


class AssemblyCache:
    """
    Уровень кэша движка сборки.

    Ключи пакетов ответов не зависят от порядка ID вопросов: используется
    отсортированное множество ID.
    """

    def __init__(
        self,
        backend: CacheBackend,
        assembly_ttl: int = redis_settings.cache_ttl_assembly,
        answers_ttl: int = redis_settings.cache_ttl_answers,
        prefix: str = redis_settings.cache_prefix_assembly,
    ):
        self.backend = backend
        self.assembly_ttl = assembly_ttl
        self.answers_ttl = answers_ttl
        self.prefix = prefix

    def _build_key(self, *parts: str) -> str:
        return f"{self.prefix}:{':'.join(str(part) for part in parts)}"

    def assembly_key(self, test_id: str) -> str:
        return self._build_key("test", test_id)

    def batch_key(
        self, question_type: Union[QuestionType, str], question_ids: Iterable[str]
    ) -> str:
        type_tag = question_type.value if isinstance(question_type, QuestionType) else question_type
        joined = ",".join(sorted(set(question_ids)))
        digest = hashlib.sha1(joined.encode("utf-8")).hexdigest()
        return self._build_key(redis_settings.cache_prefix_answers, type_tag, digest)

    async def get_assembly(self, test_id: str) -> Optional[TestAssembly]:
        data = await self.backend.get(self.assembly_key(test_id))
        if data is None:
            return None
        try:
            return TestAssembly.model_validate(data)
        except ValidationError as e:
            logger.warning(f"⚠️ Повреждённая запись кэша сборки теста {test_id}: {e}")
            await self.backend.delete(self.assembly_key(test_id))
            return None

    async def put_assembly(
        self, test_id: str, assembly: TestAssembly, ttl: Optional[int] = None
    ) -> bool:
        return await self.backend.set(
            self.assembly_key(test_id),
            assembly.model_dump(mode="json"),
            ttl or self.assembly_ttl,
        )

    async def get_answer_batch(
        self, question_type: Union[QuestionType, str], question_ids: Iterable[str]
    ) -> Optional[AnswerBatch]:
        key = self.batch_key(question_type, question_ids)
        data = await self.backend.get(key)
        if data is None:
            return None
        try:
            return answer_batch_adapter.validate_python(data)
        except ValidationError as e:
            logger.warning(f"⚠️ Повреждённая запись кэша ответов '{key}': {e}")
            await self.backend.delete(key)
            return None

    async def put_answer_batch(
        self,
        question_type: Union[QuestionType, str],
        question_ids: Iterable[str],
        answers: AnswerBatch,
        ttl: Optional[int] = None,
    ) -> bool:
        return await self.backend.set(
            self.batch_key(question_type, question_ids),
            answer_batch_adapter.dump_python(answers, mode="json"),
            ttl or self.answers_ttl,
        )

    async def invalidate_test(self, test_id: str) -> bool:
        """
        Удалить запись сборки теста.

        Пакеты ответов не удаляются: для этого нужны ID вопросов, они истекают по TTL.
        """
        return await self.backend.delete(self.assembly_key(test_id))

    async def clear(self) -> int:
        return await self.backend.invalidate_pattern(f"{self.prefix}:*")

    async def stats(self) -> dict:
        return await self.backend.stats()

    async def close(self) -> None:
        await self.backend.close()


def create_cache_backend() -> CacheBackend:
    """Создать бэкенд кэша согласно настройкам."""
    if settings.cache_backend == "redis":
        logger.info("🗄️ Кэш сборок: Redis")
        return RedisCacheBackend()
    logger.info(f"🗄️ Кэш сборок: память процесса (макс. {settings.cache_max_entries} записей)")
    return InMemoryCacheBackend(max_entries=settings.cache_max_entries)


def create_assembly_cache() -> AssemblyCache:
    return AssemblyCache(create_cache_backend())
