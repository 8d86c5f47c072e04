"""
Generic query layer for every catalog family.

Statement builders (`*_statement` methods) are pure: they return SQLAlchemy
Core/ORM statements and never touch a session, so they can be compiled and
inspected in tests. The async methods execute them against an AsyncSession.

Soft delete
-----------
Rows with is_deleted = true are invisible to every read below except
get_by_id. NULL is treated as false. Child families have no flag, so their
"live" filter is empty.

Search
------
    is live
    AND (search_vector @@ plainto_tsquery('english', :term)
         OR lower(col) LIKE '%term%'        -- each text column
         OR EXISTS (SELECT FROM unnest(arr) WHERE lower(element) LIKE '%term%')
         OR CAST(year AS VARCHAR) = :term)
    ORDER BY ts_rank(search_vector, query) DESC, updated_at DESC

The substring branches keep short or stop-word-only terms matching even when
the full-text query is empty.
"""

from datetime import datetime
from typing import Any, Iterable, Optional, Sequence
from uuid import UUID

from sqlalchemy import String, Select, cast, delete, func, literal, or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from media_catalog.catalog.family import Dimension, EntityFamily, MatchMode
from media_catalog.db.base import utcnow

# Columns the application never writes through an upsert SET clause.
IMMUTABLE_COLUMNS = ("id", "created_at", "search_vector")


def page_bounds(page: int, size: int) -> tuple[int, int]:
    """0-based page number and size -> (offset, limit)."""
    return page * size, size


class CatalogRepository:
    """
    Query contract for one family.

    Usage:
        repo = CatalogRepository(MOVIES)
        rows = await repo.search(session, "dune", page=0, size=20)
    """

    def __init__(self, family: EntityFamily):
        self.family = family
        self.model = family.model

    # ================================
    # Expression helpers
    # ================================

    def column(self, name: str) -> Any:
        return getattr(self.model, name)

    def live(self) -> list[Any]:
        """WHERE conditions selecting non-deleted rows."""
        if not self.family.soft_delete:
            return []
        return [or_(self.model.is_deleted.is_(False), self.model.is_deleted.is_(None))]

    def match(self, column_name: str, mode: MatchMode, value: Any) -> Any:
        column = self.column(column_name)
        if mode is MatchMode.SUBSTRING:
            return func.lower(column).contains(str(value).lower(), autoescape=True)
        if mode is MatchMode.EXACT_CI:
            return func.lower(column) == str(value).lower()
        if mode is MatchMode.ANY:
            return column.any(value)
        return column == value

    def _array_contains_substring(self, column_name: str, term: str) -> Any:
        element = func.unnest(self.column(column_name)).column_valued("element")
        return (
            select(literal(1))
            .where(func.lower(element).contains(term.lower(), autoescape=True))
            .exists()
        )

    def default_order(self) -> list[Any]:
        return [self.model.updated_at.desc(), self.model.id]

    def _paginate(self, stmt: Select, page: int, size: int) -> Select:
        offset, limit = page_bounds(page, size)
        return stmt.offset(offset).limit(limit)

    def _ordering(self, sort: Optional[Sequence[tuple[str, str]]]) -> list[Any]:
        if not sort:
            return self.default_order()
        ordering = []
        for name, direction in sort:
            column = self.column(name)
            ordering.append(column.desc() if direction == "desc" else column.asc())
        # id keeps pages stable when the sort keys tie
        ordering.append(self.model.id)
        return ordering

    # ================================
    # Statement builders
    # ================================

    def get_statement(self, media_id: UUID) -> Select:
        return select(self.model).where(self.model.id == media_id)

    def list_statement(
        self,
        page: int,
        size: int,
        sort: Optional[Sequence[tuple[str, str]]] = None,
    ) -> Select:
        stmt = select(self.model).where(*self.live()).order_by(*self._ordering(sort))
        return self._paginate(stmt, page, size)

    def search_statement(
        self,
        term: str,
        page: int,
        size: int,
        sort: Optional[Sequence[tuple[str, str]]] = None,
    ) -> Select:
        family = self.family
        conditions = [self.match(name, MatchMode.SUBSTRING, term) for name in family.text_columns]
        conditions += [self._array_contains_substring(name, term) for name in family.array_text_columns]
        if family.has_year:
            conditions.append(cast(self.model.year, String) == term)

        ordering: list[Any] = []
        if family.full_text:
            query = func.plainto_tsquery("english", term)
            conditions.insert(0, self.model.search_vector.op("@@")(query))
            ordering.append(func.ts_rank(self.model.search_vector, query).desc())
        ordering += self._ordering(sort)

        stmt = (
            select(self.model)
            .where(*self.live(), or_(*conditions))
            .order_by(*ordering)
        )
        return self._paginate(stmt, page, size)

    def advanced_search_statement(
        self,
        filters: dict[str, Any],
        page: int,
        size: int,
        sort: Optional[Sequence[tuple[str, str]]] = None,
    ) -> Select:
        """Only filters whose value is not None constrain the result."""
        conditions = [
            self.match(spec.column, spec.mode, filters[spec.param])
            for spec in self.family.filters
            if filters.get(spec.param) is not None
        ]
        stmt = (
            select(self.model)
            .where(*self.live(), *conditions)
            .order_by(*self._ordering(sort))
        )
        return self._paginate(stmt, page, size)

    def find_by_statement(
        self,
        column_name: str,
        mode: MatchMode,
        value: Any,
        page: int,
        size: int,
    ) -> Select:
        stmt = (
            select(self.model)
            .where(*self.live(), self.match(column_name, mode, value))
            .order_by(*self.default_order())
        )
        return self._paginate(stmt, page, size)

    def updated_since_statement(self, since: datetime, page: int, size: int) -> Select:
        stmt = (
            select(self.model)
            .where(*self.live(), self.model.updated_at > since)
            .order_by(self.model.updated_at.asc(), self.model.id)
        )
        return self._paginate(stmt, page, size)

    def count_statement(self, *conditions: Any) -> Select:
        return select(func.count()).select_from(self.model).where(*self.live(), *conditions)

    def top_statement(self, dimension: Dimension, limit: int) -> Select:
        """
        Grouped count over one dimension, most frequent first.

        Array dimensions are unnested in a subquery so each element forms its
        own group.
        """
        column = self.column(dimension.column)
        if dimension.is_array:
            elements = (
                select(func.unnest(column).label("value"))
                .where(*self.live())
                .subquery()
            )
            value = elements.c.value
            stmt = select(value.label(dimension.name), func.count().label("count"))
        else:
            value = column
            stmt = select(value.label(dimension.name), func.count().label("count")).where(*self.live())

        return (
            stmt.where(value.is_not(None))
            .group_by(value)
            .order_by(func.count().desc(), value.asc())
            .limit(limit)
        )

    def year_counts_statement(self, limit: int) -> Select:
        year = self.model.year
        return (
            select(year.label("year"), func.count().label("count"))
            .where(*self.live(), year.is_not(None))
            .group_by(year)
            .order_by(year.desc())
            .limit(limit)
        )

    def upsert_statement(self, values: dict[str, Any]):
        """
        INSERT ... ON CONFLICT (<conflict columns>) DO UPDATE.

        Every supplied column except id/created_at is overwritten from
        EXCLUDED, so created_at survives updates. Versioned families bump
        their version counter on every conflicting write.
        """
        stmt = pg_insert(self.model).values(**values)
        set_ = {
            name: stmt.excluded[name]
            for name in values
            if name not in IMMUTABLE_COLUMNS and name not in self.family.conflict_columns
        }
        if self.family.versioned:
            set_["version"] = self.model.version + 1

        return (
            stmt.on_conflict_do_update(
                index_elements=list(self.family.conflict_columns),
                set_=set_,
            )
            .returning(self.model)
            .execution_options(populate_existing=True)
        )

    def update_statement(self, media_id: UUID, values: dict[str, Any]):
        """
        UPDATE ... WHERE id = :id RETURNING.

        Used for existing rows of families that upsert on a natural key, so a
        change to that key rewrites the row instead of colliding with it.
        """
        set_ = {name: value for name, value in values.items() if name not in IMMUTABLE_COLUMNS}
        if self.family.versioned:
            set_["version"] = self.model.version + 1

        return (
            update(self.model)
            .where(self.model.id == media_id)
            .values(**set_)
            .returning(self.model)
            .execution_options(populate_existing=True, synchronize_session=False)
        )

    def delete_statement(self, ids: Iterable[UUID]):
        """Soft delete (flag + updated_at) or row removal for child families."""
        ids = list(ids)
        if self.family.soft_delete:
            return (
                update(self.model)
                .where(self.model.id.in_(ids))
                .values(is_deleted=True, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
        return (
            delete(self.model)
            .where(self.model.id.in_(ids))
            .execution_options(synchronize_session=False)
        )

    # ================================
    # Reads
    # ================================

    async def get_by_id(self, session: AsyncSession, media_id: UUID) -> Optional[Any]:
        """Point lookup. Not filtered by is_deleted."""
        result = await session.execute(self.get_statement(media_id))
        return result.scalar_one_or_none()

    async def exists(self, session: AsyncSession, media_id: UUID) -> bool:
        result = await session.execute(
            select(literal(1)).where(self.model.id == media_id).limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def list_page(
        self,
        session: AsyncSession,
        page: int,
        size: int,
        sort: Optional[Sequence[tuple[str, str]]] = None,
    ) -> list[Any]:
        result = await session.execute(self.list_statement(page, size, sort))
        return list(result.scalars().all())

    async def search(
        self,
        session: AsyncSession,
        term: str,
        page: int,
        size: int,
        sort: Optional[Sequence[tuple[str, str]]] = None,
    ) -> list[Any]:
        result = await session.execute(self.search_statement(term, page, size, sort))
        return list(result.scalars().all())

    async def advanced_search(
        self,
        session: AsyncSession,
        filters: dict[str, Any],
        page: int,
        size: int,
        sort: Optional[Sequence[tuple[str, str]]] = None,
    ) -> list[Any]:
        result = await session.execute(self.advanced_search_statement(filters, page, size, sort))
        return list(result.scalars().all())

    async def find_by(
        self,
        session: AsyncSession,
        column_name: str,
        mode: MatchMode,
        value: Any,
        page: int,
        size: int,
    ) -> list[Any]:
        result = await session.execute(
            self.find_by_statement(column_name, mode, value, page, size)
        )
        return list(result.scalars().all())

    async def find_by_external_id(
        self,
        session: AsyncSession,
        column_name: str,
        value: Any,
    ) -> list[Any]:
        stmt = (
            select(self.model)
            .where(*self.live(), self.column(column_name) == value)
            .order_by(*self.default_order())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def updated_since(
        self,
        session: AsyncSession,
        since: datetime,
        page: int,
        size: int,
    ) -> list[Any]:
        result = await session.execute(self.updated_since_statement(since, page, size))
        return list(result.scalars().all())

    # ================================
    # Aggregates
    # ================================

    async def count(self, session: AsyncSession) -> int:
        result = await session.execute(self.count_statement())
        return result.scalar_one()

    async def count_by_year(self, session: AsyncSession, year: int) -> int:
        result = await session.execute(self.count_statement(self.model.year == year))
        return result.scalar_one()

    async def top(self, session: AsyncSession, dimension: Dimension, limit: int) -> list[tuple[Any, int]]:
        result = await session.execute(self.top_statement(dimension, limit))
        return [tuple(row) for row in result.all()]

    async def year_counts(self, session: AsyncSession, limit: int) -> list[tuple[Any, int]]:
        result = await session.execute(self.year_counts_statement(limit))
        return [tuple(row) for row in result.all()]

    # ================================
    # Writes
    # ================================

    async def upsert(self, session: AsyncSession, values: dict[str, Any]) -> Any:
        result = await session.execute(self.upsert_statement(values))
        return result.scalar_one()

    async def update_by_id(self, session: AsyncSession, media_id: UUID, values: dict[str, Any]) -> Any:
        result = await session.execute(self.update_statement(media_id, values))
        return result.scalar_one()

    async def delete_one(self, session: AsyncSession, media_id: UUID) -> bool:
        result = await session.execute(self.delete_statement([media_id]))
        return result.rowcount > 0

    async def delete_many(self, session: AsyncSession, ids: Iterable[UUID]) -> int:
        ids = list(ids)
        if not ids:
            return 0
        result = await session.execute(self.delete_statement(ids))
        return result.rowcount

    # ================================
    # Child helpers
    # ================================

    def _parent_column(self) -> Any:
        return self.column(self.family.parent.column)

    def list_by_parent_statement(self, parent_id: UUID, season: Optional[int] = None) -> Select:
        parent = self.family.parent
        stmt = select(self.model).where(self._parent_column() == parent_id)
        if season is not None:
            stmt = stmt.where(self.column(parent.season_column) == season)
        return stmt.order_by(*(self.column(name) for name in parent.order_by))

    async def list_by_parent(self, session: AsyncSession, parent_id: UUID) -> list[Any]:
        result = await session.execute(self.list_by_parent_statement(parent_id))
        return list(result.scalars().all())

    async def list_by_parent_and_season(
        self,
        session: AsyncSession,
        parent_id: UUID,
        season: int,
    ) -> list[Any]:
        result = await session.execute(self.list_by_parent_statement(parent_id, season))
        return list(result.scalars().all())

    async def count_by_parent(self, session: AsyncSession, parent_id: UUID) -> int:
        result = await session.execute(self.count_statement(self._parent_column() == parent_id))
        return result.scalar_one()

    async def max_season(self, session: AsyncSession, parent_id: UUID) -> Optional[int]:
        season = self.column(self.family.parent.season_column)
        result = await session.execute(
            select(func.max(season)).where(self._parent_column() == parent_id)
        )
        return result.scalar_one()

    async def delete_by_parent(self, session: AsyncSession, parent_id: UUID) -> int:
        result = await session.execute(
            delete(self.model)
            .where(self._parent_column() == parent_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
