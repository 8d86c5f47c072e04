"""
Pytest configuration and fixtures.

This file is automatically discovered by pytest and provides
shared fixtures for all test modules.

No database is needed: HTTP tests swap CatalogRepository for the in-memory
FakeRepository below, and get_db for a mock session. Repository SQL is
tested separately by compiling statements against the PostgreSQL dialect.

References:
-----------
- Pytest Fixtures: https://docs.pytest.org/en/stable/fixture.html
- FastAPI Testing: https://fastapi.tiangolo.com/advanced/async-tests/
"""

import os

# Settings are read at import time
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("CACHE_ENABLED", "false")
os.environ.setdefault("LOG_FORMAT", "text")

from collections import Counter as TallyCounter
from types import SimpleNamespace
from typing import Any, AsyncGenerator, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import IntegrityError

from media_catalog.api.deps import get_cache
from media_catalog.catalog import service as service_module
from media_catalog.catalog.cache import NullCache
from media_catalog.catalog.family import EntityFamily, MatchMode
from media_catalog.core.resilience import reset_policies
from media_catalog.db.deps import get_db, get_db_override
from media_catalog.main import app


MAGNET = "magnet:?xt=urn:btih:AAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA&dn=Dune&tr=udp://x"


# ================================
# In-memory repository
# ================================

class FakeRepository:
    """
    Dict-backed stand-in for CatalogRepository.

    Mirrors the query contract closely enough for HTTP tests: soft-delete
    filtering, conflict-resolving upsert (created_at and id survive),
    hard delete for child families and grouped counts.
    """

    def __init__(self, family: EntityFamily, store: dict[str, dict]):
        self.family = family
        self.rows = store.setdefault(family.name, {})

    def _live(self) -> list[Any]:
        rows = list(self.rows.values())
        if self.family.soft_delete:
            rows = [row for row in rows if not row.is_deleted]
        return rows

    @staticmethod
    def _newest_first(rows: list[Any]) -> list[Any]:
        return sorted(rows, key=lambda row: row.updated_at, reverse=True)

    @staticmethod
    def _page(rows: list[Any], page: int, size: int) -> list[Any]:
        return rows[page * size:(page + 1) * size]

    def _matches(self, row: Any, column: str, mode: MatchMode, value: Any) -> bool:
        current = getattr(row, column)
        if current is None:
            return False
        if mode is MatchMode.SUBSTRING:
            return str(value).lower() in str(current).lower()
        if mode is MatchMode.EXACT_CI:
            return str(current).lower() == str(value).lower()
        if mode is MatchMode.ANY:
            return value in current
        return current == value

    async def get_by_id(self, session, media_id):
        return self.rows.get(media_id)

    async def exists(self, session, media_id):
        return media_id in self.rows

    async def list_page(self, session, page, size, sort=None):
        rows = self._newest_first(self._live())
        for column, direction in reversed(sort or []):
            rows.sort(key=lambda row: getattr(row, column), reverse=direction == "desc")
        return self._page(rows, page, size)

    async def search(self, session, term, page, size, sort=None):
        def hit(row):
            if any(self._matches(row, c, MatchMode.SUBSTRING, term) for c in self.family.text_columns):
                return True
            return self.family.has_year and str(row.year) == term

        return self._page(self._newest_first([r for r in self._live() if hit(r)]), page, size)

    async def advanced_search(self, session, filters, page, size, sort=None):
        rows = self._live()
        for spec in self.family.filters:
            value = filters.get(spec.param)
            if value is not None:
                rows = [row for row in rows if self._matches(row, spec.column, spec.mode, value)]
        return self._page(self._newest_first(rows), page, size)

    async def find_by(self, session, column, mode, value, page, size):
        rows = [row for row in self._live() if self._matches(row, column, mode, value)]
        return self._page(self._newest_first(rows), page, size)

    async def find_by_external_id(self, session, column, value):
        return [row for row in self._live() if getattr(row, column) == value]

    async def updated_since(self, session, since, page, size):
        rows = sorted((r for r in self._live() if r.updated_at > since), key=lambda r: r.updated_at)
        return self._page(rows, page, size)

    async def count(self, session):
        return len(self._live())

    async def count_by_year(self, session, year):
        return sum(1 for row in self._live() if row.year == year)

    async def top(self, session, dimension, limit):
        tally: TallyCounter = TallyCounter()
        for row in self._live():
            value = getattr(row, dimension.column)
            values = value if dimension.is_array else [value]
            tally.update(v for v in values or [] if v is not None)
        return sorted(tally.items(), key=lambda item: (-item[1], item[0]))[:limit]

    async def year_counts(self, session, limit):
        tally = TallyCounter(row.year for row in self._live() if row.year is not None)
        return sorted(tally.items(), reverse=True)[:limit]

    def _conflicting(self, values: dict) -> Optional[Any]:
        for row in self.rows.values():
            if all(getattr(row, c) == values[c] for c in self.family.conflict_columns):
                return row
        return None

    async def upsert(self, session, values):
        existing = self._conflicting(values)
        if existing is not None:
            for name, value in values.items():
                if name not in ("id", "created_at"):
                    setattr(existing, name, value)
            if self.family.versioned:
                existing.version += 1
            return existing

        row = SimpleNamespace(**{name: None for name in self.family.dto_fields})
        for name, value in values.items():
            setattr(row, name, value)
        if self.family.versioned:
            row.version = 0
        self.rows[row.id] = row
        return row

    async def update_by_id(self, session, media_id, values):
        clash = self._conflicting(values)
        if clash is not None and clash.id != media_id:
            raise IntegrityError("UPDATE", values, Exception("duplicate key"))
        row = self.rows[media_id]
        for name, value in values.items():
            if name not in ("id", "created_at"):
                setattr(row, name, value)
        if self.family.versioned:
            row.version += 1
        return row

    async def delete_one(self, session, media_id):
        return await self.delete_many(session, [media_id]) > 0

    async def delete_many(self, session, ids):
        matched = 0
        for media_id in ids:
            if media_id not in self.rows:
                continue
            matched += 1
            if self.family.soft_delete:
                self.rows[media_id].is_deleted = True
            else:
                del self.rows[media_id]
        return matched

    def _children(self, parent_id):
        column = self.family.parent.column
        rows = [row for row in self.rows.values() if getattr(row, column) == parent_id]
        return sorted(rows, key=lambda row: tuple(getattr(row, c) for c in self.family.parent.order_by))

    async def list_by_parent(self, session, parent_id):
        return self._children(parent_id)

    async def list_by_parent_and_season(self, session, parent_id, season):
        season_column = self.family.parent.season_column
        return [row for row in self._children(parent_id) if getattr(row, season_column) == season]

    async def count_by_parent(self, session, parent_id):
        return len(self._children(parent_id))

    async def max_season(self, session, parent_id):
        seasons = [getattr(row, self.family.parent.season_column) for row in self._children(parent_id)]
        return max(seasons) if seasons else None

    async def delete_by_parent(self, session, parent_id):
        children = self._children(parent_id)
        for row in children:
            del self.rows[row.id]
        return len(children)


# ================================
# Fixtures
# ================================

@pytest.fixture(autouse=True)
def fresh_policies():
    """Circuit breakers and limiters are process-global; isolate each test."""
    reset_policies()
    yield
    reset_policies()


@pytest.fixture
def store() -> dict[str, dict]:
    """Backing dict for FakeRepository, keyed by family name then id."""
    return {}


@pytest.fixture
def fake_repositories(store, monkeypatch):
    """Route every CatalogRepository the service builds to the in-memory fake."""
    monkeypatch.setattr(
        service_module,
        "CatalogRepository",
        lambda family: FakeRepository(family, store),
    )
    return store


@pytest.fixture
def mock_session() -> MagicMock:
    """AsyncSession stand-in: commit/rollback are awaitable no-ops."""
    session = MagicMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.execute = AsyncMock()
    return session


@pytest_asyncio.fixture
async def client(fake_repositories, mock_session) -> AsyncGenerator[AsyncClient, None]:
    """
    Async HTTP client for the catalog API.

    Usage:
        async def test_something(client: AsyncClient):
            response = await client.get("/v1/movies")
            assert response.status_code == 200
    """
    async def override_get_cache():
        return NullCache()

    app.dependency_overrides[get_db] = get_db_override(mock_session)
    app.dependency_overrides[get_cache] = override_get_cache

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def movie_payload() -> dict[str, Any]:
    return {"title": "Dune", "year": 2021, "magnet": MAGNET}
