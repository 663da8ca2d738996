import asyncio
import json
import time
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Dict

import redis.asyncio as redis

from app.core.config import settings

logger = logging.getLogger(__name__)

CURRICULUM_KEY = "curriculum:course:{}"


class CacheBackend(ABC):
    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        pass

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        pass


class MemoryCacheBackend(CacheBackend):
    def __init__(self):
        self._cache: Dict[str, Dict] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[Any]:
        async with self._lock:
            item = self._cache.get(key)
            if item is None:
                return None
            if item["expiry"] and time.time() >= item["expiry"]:
                del self._cache[key]
                return None
            return item["value"]

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        async with self._lock:
            if ttl is None:
                ttl = settings.CACHE_TTL
            self._cache[key] = {
                "value": value,
                "expiry": time.time() + ttl if ttl else 0,
            }
            return True

    async def delete(self, key: str) -> bool:
        async with self._lock:
            return self._cache.pop(key, None) is not None


class RedisCacheBackend(CacheBackend):
    def __init__(self, redis_url: str):
        self.redis = redis.from_url(redis_url, decode_responses=True)

    async def get(self, key: str) -> Optional[Any]:
        try:
            value = await self.redis.get(key)
            return json.loads(value) if value else None
        except (redis.RedisError, json.JSONDecodeError) as e:
            logger.error(f"Redis GET error for key {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        try:
            serialized = json.dumps(value, default=str)
            if ttl is None:
                ttl = settings.CACHE_TTL
            if ttl == 0:
                await self.redis.set(key, serialized)
            else:
                await self.redis.setex(key, ttl, serialized)
            return True
        except redis.RedisError as e:
            logger.error(f"Redis SET error for key {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        try:
            return await self.redis.delete(key) > 0
        except redis.RedisError as e:
            logger.error(f"Redis DELETE error for key {key}: {e}")
            return False


def create_cache_backend() -> CacheBackend:
    if settings.REDIS_URL:
        logger.info("Initializing Redis cache backend")
        return RedisCacheBackend(settings.REDIS_URL)
    logger.info("Using in-memory cache backend")
    return MemoryCacheBackend()


class CacheManager:
    def __init__(self, backend: CacheBackend, enabled: bool = True):
        self.backend = backend
        self.enabled = enabled

    async def get(self, key: str) -> Optional[Any]:
        if not self.enabled:
            return None
        return await self.backend.get(key)

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        if not self.enabled:
            return False
        return await self.backend.set(key, value, ttl)

    async def delete(self, key: str) -> bool:
        return await self.backend.delete(key)

    async def get_curriculum(self, course_id: int) -> Optional[dict]:
        return await self.get(CURRICULUM_KEY.format(course_id))

    async def set_curriculum(self, course_id: int, tree: dict) -> bool:
        return await self.set(CURRICULUM_KEY.format(course_id), tree)

    async def invalidate_curriculum(self, *course_ids: int) -> None:
        for course_id in course_ids:
            if course_id is None:
                continue
            deleted = await self.delete(CURRICULUM_KEY.format(course_id))
            if deleted:
                logger.info(f"Invalidated curriculum cache for course {course_id}")


cache = CacheManager(create_cache_backend(), enabled=settings.CACHE_ENABLED)
