"""
Настройки конфигурации Redis для кэша сборки тестов.

Этот модуль предоставляет настройки подключения к Redis и конфигурации TTL кэша.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RedisSettings(BaseSettings):
    """Настройки конфигурации Redis."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Настройки подключения
    redis_host: str = Field(default="localhost")
    redis_port: int = Field(default=6379)
    redis_password: Optional[str] = Field(default=None)
    redis_db: int = Field(default=0)

    # Настройки пула подключений
    redis_max_connections: int = Field(default=10)
    redis_retry_on_timeout: bool = Field(default=True)
    redis_socket_keepalive: bool = Field(default=True)
    redis_socket_timeout: float = Field(default=2.0)
    redis_socket_connect_timeout: float = Field(default=2.0)

    # Настройки TTL кэша (в секундах)
    cache_ttl_assembly: int = Field(default=600)  # 10 минут
    cache_ttl_answers: int = Field(default=1200)  # 20 минут

    # Префиксы ключей кэша
    cache_prefix_assembly: str = "assembly"
    cache_prefix_answers: str = "answers"


# Глобальный экземпляр настроек Redis
redis_settings = RedisSettings()


def get_redis_connection_params() -> dict:
    """
    Получить параметры подключения к Redis для redis-py.

    Returns:
        Словарь с параметрами подключения
    """
    params = {
        "host": redis_settings.redis_host,
        "port": redis_settings.redis_port,
        "db": redis_settings.redis_db,
        "max_connections": redis_settings.redis_max_connections,
        "retry_on_timeout": redis_settings.redis_retry_on_timeout,
        "socket_keepalive": redis_settings.redis_socket_keepalive,
        "socket_timeout": redis_settings.redis_socket_timeout,
        "socket_connect_timeout": redis_settings.redis_socket_connect_timeout,
        "decode_responses": True,
    }

    if redis_settings.redis_password:
        params["password"] = redis_settings.redis_password

    return params
