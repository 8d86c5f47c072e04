"""
Catalog service: orchestration on top of the query layer.

Responsibilities:
- Run the validation gate before every write
- Check that a child's parent exists before writing the child
- Assign identity and timestamps (id, created_at, updated_at, is_deleted)
- Cache-aside point lookups
- Route search and bulk operations through their resilience policies
- Commit write transactions

Usage:
    service = CatalogService(MOVIES, session, cache)
    movie = await service.create({"title": "Dune", "year": 2021, "magnet": "..."})
"""

from datetime import datetime
from typing import Any, Iterable, Optional, Sequence
from uuid import UUID, uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from media_catalog.catalog.cache import DTOCache, NullCache
from media_catalog.catalog.families import get_family
from media_catalog.catalog.family import EntityFamily, Lookup
from media_catalog.catalog.mapper import count_rows, to_dto, to_row
from media_catalog.catalog.repository import CatalogRepository
from media_catalog.core.config import settings
from media_catalog.core.exceptions import MediaNotFoundError, ParentNotFoundError, ValidationFailed
from media_catalog.core.logging import get_logger
from media_catalog.core.resilience import get_policy
from media_catalog.core.validation import extract_hash_from_magnet, validate_payload
from media_catalog.db.base import utcnow
from media_catalog.schemas.common import CatalogSchema

logger = get_logger(__name__)

Sort = Optional[Sequence[tuple[str, str]]]


class CatalogService:
    def __init__(
        self,
        family: EntityFamily,
        session: AsyncSession,
        cache: Optional[DTOCache] = None,
        repository: Optional[CatalogRepository] = None,
    ):
        self.family = family
        self.session = session
        self.cache = cache or NullCache()
        self.repository = repository or CatalogRepository(family)

    def _dtos(self, rows: Iterable[Any]) -> list[CatalogSchema]:
        return [to_dto(self.family, row) for row in rows]

    # ========================================
    # Point lookup
    # ========================================

    async def get(self, media_id: UUID) -> CatalogSchema:
        """
        Fetch by id, soft-deleted rows included.
        Child families bypass the cache.

        Raises:
            MediaNotFoundError: no row with this id
        """
        prefix = self.family.cache_prefix
        if self.family.cacheable:
            cached = await self.cache.get(prefix, media_id, self.family.schema)
            if cached is not None:
                return cached

        row = await self.repository.get_by_id(self.session, media_id)
        if row is None:
            raise MediaNotFoundError(self.family.label, media_id)

        dto = to_dto(self.family, row)
        if self.family.cacheable:
            await self.cache.set(prefix, media_id, dto)
        return dto

    # ========================================
    # Listing and search
    # ========================================

    async def list_page(self, page: int, size: int, sort: Sort = None) -> list[CatalogSchema]:
        rows = await self.repository.list_page(self.session, page, size, sort)
        return self._dtos(rows)

    async def search(self, term: str, page: int, size: int, sort: Sort = None) -> list[CatalogSchema]:
        """Keyword search. Degrades to [] when the search policy rejects or fails."""
        policy = get_policy(f"{self.family.name}.search", settings.SEARCH_MAX_CONCURRENT)

        async def run() -> list[CatalogSchema]:
            rows = await self.repository.search(self.session, term, page, size, sort)
            return self._dtos(rows)

        return await policy.call(run, fallback=list)

    async def advanced_search(
        self,
        filters: dict[str, Any],
        page: int,
        size: int,
        sort: Sort = None,
    ) -> list[CatalogSchema]:
        rows = await self.repository.advanced_search(self.session, filters, page, size, sort)
        return self._dtos(rows)

    async def find_by(self, lookup: Lookup, value: Any, page: int, size: int) -> list[CatalogSchema]:
        rows = await self.repository.find_by(
            self.session, lookup.column, lookup.mode, value, page, size
        )
        return self._dtos(rows)

    async def find_by_external_id(self, lookup: Lookup, value: Any) -> list[CatalogSchema]:
        rows = await self.repository.find_by_external_id(self.session, lookup.column, value)
        return self._dtos(rows)

    async def updated_since(self, since: datetime, page: int, size: int) -> list[CatalogSchema]:
        rows = await self.repository.updated_since(self.session, since, page, size)
        return self._dtos(rows)

    # ========================================
    # Aggregates
    # ========================================

    async def count(self) -> int:
        return await self.repository.count(self.session)

    async def count_by_year(self, year: int) -> int:
        return await self.repository.count_by_year(self.session, year)

    async def top(self, dimension_name: str, limit: int) -> list[dict[str, Any]]:
        dimension = self.family.dimension(dimension_name)
        rows = await self.repository.top(self.session, dimension, limit)
        return count_rows(dimension.name, rows)

    async def year_counts(self, limit: int) -> list[dict[str, Any]]:
        rows = await self.repository.year_counts(self.session, limit)
        return count_rows("year", rows)

    # ========================================
    # Writes
    # ========================================

    async def _check_parent(self, dto: CatalogSchema) -> None:
        parent = self.family.parent
        if parent is None:
            return

        parent_id = getattr(dto, parent.column)
        parent_repository = CatalogRepository(get_family(parent.family))
        if not await parent_repository.exists(self.session, parent_id):
            logger.warning(
                "parent_not_found",
                family=self.family.name,
                parent_family=parent.family,
                parent_id=str(parent_id),
            )
            raise ParentNotFoundError(parent.label, parent.column, parent_id)

    def _log_info_hash(self, dto: CatalogSchema, media_id: UUID) -> None:
        magnet = getattr(dto, "magnet", None)
        if magnet is None:
            return
        info_hash = extract_hash_from_magnet(magnet)
        if info_hash:
            logger.debug("magnet_info_hash", family=self.family.name, id=str(media_id), info_hash=info_hash)

    async def _write_new(self, dto: CatalogSchema) -> Any:
        media_id = dto.id or uuid4()
        now = utcnow()
        values = to_row(self.family, dto, media_id, created_at=now, updated_at=now, is_deleted=False)
        self._log_info_hash(dto, media_id)
        return await self.repository.upsert(self.session, values)

    async def _write_existing(self, existing: Any, dto: CatalogSchema) -> Any:
        is_deleted = None
        if self.family.soft_delete:
            is_deleted = dto.is_deleted if dto.is_deleted is not None else existing.is_deleted
        values = to_row(
            self.family,
            dto,
            existing.id,
            created_at=existing.created_at,
            updated_at=utcnow(),
            is_deleted=is_deleted,
        )
        self._log_info_hash(dto, existing.id)
        if self.family.conflict_columns == ("id",):
            return await self.repository.upsert(self.session, values)
        return await self.repository.update_by_id(self.session, existing.id, values)

    def _key_conflict(self, media_id: Optional[UUID]) -> ValidationFailed:
        fields = self.family.schema.model_fields
        names = [
            getattr(fields.get(column), "alias", None) or column
            for column in self.family.conflict_columns
        ]
        logger.warning("unique_key_conflict", family=self.family.name, id=str(media_id), key=names)
        return ValidationFailed(
            [(names[-1], f"Another {self.family.label} already has this {', '.join(names)}")],
            media_id,
        )

    async def create(self, payload: Any) -> CatalogSchema:
        """
        Validate and insert. Server assigns id (when absent) and timestamps.

        Raises:
            ValidationFailed: payload breaks a field rule or collides with
                another row on the family's unique key
            ParentNotFoundError: child whose parent does not exist
        """
        dto = validate_payload(self.family, payload)
        await self._check_parent(dto)

        try:
            row = await self._write_new(dto)
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise self._key_conflict(dto.id) from e

        logger.info("media_created", family=self.family.name, id=str(row.id))
        return to_dto(self.family, row)

    async def update(self, media_id: UUID, payload: Any) -> CatalogSchema:
        """
        Validate and overwrite an existing row, preserving created_at.

        Raises:
            ValidationFailed: payload breaks a field rule or collides with
                another row on the family's unique key
            MediaNotFoundError: no row with this id
            ParentNotFoundError: child whose parent does not exist
        """
        dto = validate_payload(self.family, payload, media_id)

        existing = await self.repository.get_by_id(self.session, media_id)
        if existing is None:
            raise MediaNotFoundError(self.family.label, media_id)
        await self._check_parent(dto)

        try:
            row = await self._write_existing(existing, dto)
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise self._key_conflict(media_id) from e

        logger.info("media_updated", family=self.family.name, id=str(media_id))
        return to_dto(self.family, row)

    async def create_or_update(self, payload: Any) -> CatalogSchema:
        """Update when the payload carries an id, create otherwise."""
        dto = validate_payload(self.family, payload)
        if dto.id is not None:
            return await self.update(dto.id, payload)
        return await self.create(payload)

    async def bulk_update(self, payloads: Any) -> list[CatalogSchema]:
        """
        Save every payload: update when its id exists, insert otherwise.

        All payloads are validated (and parents checked) before anything is
        written, so a bad item fails the whole call with 400. The writes
        themselves run through the bulk_update policy and degrade to [].
        """
        if not isinstance(payloads, list):
            payloads = [payloads]
        dtos = [validate_payload(self.family, payload) for payload in payloads]
        for dto in dtos:
            await self._check_parent(dto)

        policy = get_policy(f"{self.family.name}.bulk_update", settings.BULK_MAX_CONCURRENT)

        async def run() -> list[CatalogSchema]:
            try:
                rows = []
                for dto in dtos:
                    existing = None
                    if dto.id is not None:
                        existing = await self.repository.get_by_id(self.session, dto.id)
                    if existing is None:
                        rows.append(await self._write_new(dto))
                    else:
                        rows.append(await self._write_existing(existing, dto))
                await self.session.commit()
            except Exception:
                await self.session.rollback()
                raise

            logger.info("media_bulk_updated", family=self.family.name, count=len(rows))
            return self._dtos(rows)

        return await policy.call(run, fallback=list)

    async def delete(self, media_id: UUID) -> None:
        """
        Soft delete (parent families) or remove (child families) one row.

        Raises:
            MediaNotFoundError: no row with this id
        """
        deleted = await self.repository.delete_one(self.session, media_id)
        if not deleted:
            raise MediaNotFoundError(self.family.label, media_id)
        await self.session.commit()
        logger.info(
            "media_deleted",
            family=self.family.name,
            id=str(media_id),
            soft=self.family.soft_delete,
        )

    async def bulk_delete(self, ids: Sequence[UUID]) -> Optional[int]:
        """Delete many ids through the bulk_delete policy; None on fallback."""
        policy = get_policy(f"{self.family.name}.bulk_delete", settings.BULK_MAX_CONCURRENT)

        async def run() -> int:
            try:
                count = await self.repository.delete_many(self.session, ids)
                await self.session.commit()
            except Exception:
                await self.session.rollback()
                raise

            logger.info(
                "media_bulk_deleted",
                family=self.family.name,
                requested=len(ids),
                matched=count,
                soft=self.family.soft_delete,
            )
            return count

        return await policy.call(run, fallback=lambda: None)

    # ========================================
    # Child families
    # ========================================

    async def list_by_parent(self, parent_id: UUID) -> list[CatalogSchema]:
        rows = await self.repository.list_by_parent(self.session, parent_id)
        return self._dtos(rows)

    async def list_by_parent_and_season(self, parent_id: UUID, season: int) -> list[CatalogSchema]:
        rows = await self.repository.list_by_parent_and_season(self.session, parent_id, season)
        return self._dtos(rows)

    async def count_by_parent(self, parent_id: UUID) -> int:
        return await self.repository.count_by_parent(self.session, parent_id)

    async def max_season(self, parent_id: UUID) -> Optional[int]:
        return await self.repository.max_season(self.session, parent_id)

    async def delete_by_parent(self, parent_id: UUID) -> int:
        count = await self.repository.delete_by_parent(self.session, parent_id)
        await self.session.commit()
        logger.info(
            "children_deleted_by_parent",
            family=self.family.name,
            parent_id=str(parent_id),
            count=count,
        )
        return count
