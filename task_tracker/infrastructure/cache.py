import json
import redis
from typing import Optional, Any
from ..config import settings

_redis_client: Optional[redis.Redis] = None

STATS_CACHE_KEY = "admin:stats"


def get_redis() -> redis.Redis:
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True
        )
    return _redis_client


def get_cache(key: str) -> Optional[Any]:
    """Получить значение из кэша"""
    if not settings.CACHE_ENABLED:
        return None
    try:
        value = get_redis().get(key)
        if value:
            return json.loads(value)
    except (redis.RedisError, ValueError):
        # Redis недоступен или мусор в ключе: считаем промахом
        pass
    return None


def set_cache(key: str, value: Any, ttl: int | None = None) -> bool:
    """Сохранить значение в кэш"""
    if not settings.CACHE_ENABLED:
        return False
    try:
        get_redis().setex(key, ttl or settings.CACHE_TTL, json.dumps(value, ensure_ascii=False))
        return True
    except redis.RedisError:
        return False


def delete_cache(key: str) -> bool:
    """Удалить значение из кэша"""
    if not settings.CACHE_ENABLED:
        return False
    try:
        get_redis().delete(key)
        return True
    except redis.RedisError:
        return False
