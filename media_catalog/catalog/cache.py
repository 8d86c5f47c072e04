"""
Point-lookup cache.

Cache-aside only: the service reads through it on get-by-id and fills it on a
miss. Only families flagged cacheable use it; child rows are hard-deleted and
always read from the database. Writes never invalidate, so an entry can be
stale for up to CACHE_TTL_SECONDS.

Redis errors are logged and treated as a miss; the cache never fails a
request.
"""

from typing import Optional, Protocol
from uuid import UUID

from redis.asyncio import Redis

from media_catalog.core.config import settings
from media_catalog.core.logging import get_logger
from media_catalog.schemas.common import CatalogSchema

logger = get_logger(__name__)


class DTOCache(Protocol):
    async def get(self, prefix: str, media_id: UUID, schema: type[CatalogSchema]) -> Optional[CatalogSchema]:
        ...

    async def set(self, prefix: str, media_id: UUID, dto: CatalogSchema) -> None:
        ...


def cache_key(prefix: str, media_id: UUID) -> str:
    return f"{prefix}:{media_id}"


class RedisCache:
    def __init__(self, redis: Redis, ttl_seconds: int = settings.CACHE_TTL_SECONDS):
        self.redis = redis
        self.ttl_seconds = ttl_seconds

    async def get(self, prefix: str, media_id: UUID, schema: type[CatalogSchema]) -> Optional[CatalogSchema]:
        """Retrieve a DTO from cache"""
        key = cache_key(prefix, media_id)
        try:
            cached_data = await self.redis.get(key)
        except Exception as e:
            logger.error("cache_read_failed", key=key, error=str(e))
            return None

        if cached_data:
            try:
                return schema.model_validate_json(cached_data)
            except Exception as e:
                logger.error("cache_deserialize_failed", key=key, error=str(e))
        return None

    async def set(self, prefix: str, media_id: UUID, dto: CatalogSchema) -> None:
        """Store a DTO in cache"""
        key = cache_key(prefix, media_id)
        try:
            await self.redis.set(
                key,
                dto.model_dump_json(by_alias=True),
                ex=self.ttl_seconds,
            )
        except Exception as e:
            logger.error("cache_write_failed", key=key, error=str(e))


class NullCache:
    """Used when CACHE_ENABLED is false: every read is a miss."""

    async def get(self, prefix: str, media_id: UUID, schema: type[CatalogSchema]) -> Optional[CatalogSchema]:
        return None

    async def set(self, prefix: str, media_id: UUID, dto: CatalogSchema) -> None:
        return None
