"""
Route dependencies for the catalog API.

    @router.get("/{media_id}")
    async def get_media(media_id: UUID, service: CatalogService = Depends(service_dependency(MOVIES))):
        ...

Tests override get_db and get_cache through app.dependency_overrides.
"""

import inspect
from typing import Any, Callable, Optional

from fastapi import Depends, Query

from media_catalog.catalog.cache import DTOCache, NullCache, RedisCache
from media_catalog.catalog.family import EntityFamily
from media_catalog.catalog.service import CatalogService
from media_catalog.core.config import settings
from media_catalog.db.deps import DBSession
from media_catalog.db.redis import get_redis


async def get_cache() -> DTOCache:
    """Redis-backed cache, or a no-op cache when caching is disabled."""
    if not settings.CACHE_ENABLED:
        return NullCache()
    return RedisCache(await get_redis())


def service_dependency(family: EntityFamily) -> Callable[..., Any]:
    """Dependency factory: a CatalogService for `family` bound to the request session."""

    async def _get_service(db: DBSession, cache: DTOCache = Depends(get_cache)) -> CatalogService:
        return CatalogService(family, db, cache)

    return _get_service


def filters_dependency(family: EntityFamily) -> Callable[..., dict[str, Any]]:
    """
    Dependency factory: the family's advanced-search filters as query params.

    The parameter list differs per family, so the signature is built from
    family.filters and handed to FastAPI through __signature__.
    """

    def _filters(**filters: Any) -> dict[str, Any]:
        return filters

    _filters.__signature__ = inspect.Signature(
        [
            inspect.Parameter(
                spec.param,
                inspect.Parameter.KEYWORD_ONLY,
                default=Query(None),
                annotation=Optional[spec.python_type],
            )
            for spec in family.filters
        ]
    )
    return _filters
