"""
Database Dependencies for FastAPI Routes

Routes never open sessions themselves; they declare what they need and
FastAPI provides it:

    @router.get("/{media_id}")
    async def get_media(media_id: UUID, db: DBSession):
        ...

Tests swap the real session for a fake one through
app.dependency_overrides[get_db] (see get_db_override).

Learning Resources:
- FastAPI Dependencies: https://fastapi.tiangolo.com/tutorial/dependencies/
"""

from collections.abc import AsyncGenerator
from typing import Annotated, Any, Callable

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from media_catalog.db.session import get_session


# ================================
# Database Session Dependency
# ================================

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session.

    Thin wrapper around get_session() so tests have a single override point.

    Yields:
        AsyncSession: Database session for the current request
    """
    async for session in get_session():
        yield session


# Route signatures use this instead of `db: AsyncSession = Depends(get_db)`
DBSession = Annotated[AsyncSession, Depends(get_db)]


# ================================
# Testing Helpers
# ================================

def get_db_override(session: Any) -> Callable[[], AsyncGenerator[Any, None]]:
    """
    Create a dependency override for testing.

    Usage in Tests:
    ---------------
        app.dependency_overrides[get_db] = get_db_override(fake_session)

    Args:
        session: The session (or mock) to use instead of the real one

    Returns:
        A function that yields the given session
    """
    async def _override() -> AsyncGenerator[Any, None]:
        yield session

    return _override


__all__ = [
    "get_db",
    "DBSession",
    "get_db_override",
]
