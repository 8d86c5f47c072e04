"""Database utilities and session management."""

from media_catalog.db.base import (
    Base,
    CommonTableAttributes,
    SearchableMixin,
    SoftDeleteMixin,
    String20,
    String50,
    String100,
    String255,
    String1000,
)
from media_catalog.db.deps import DBSession, get_db, get_db_override
from media_catalog.db.session import (
    AsyncSessionLocal,
    check_db_health,
    close_db,
    engine,
    get_session,
    init_db,
)

__all__ = [
    # Base classes
    "Base",
    "CommonTableAttributes",
    "SoftDeleteMixin",
    "SearchableMixin",
    # String types
    "String20",
    "String50",
    "String100",
    "String255",
    "String1000",
    # Session management
    "engine",
    "AsyncSessionLocal",
    "get_session",
    "init_db",
    "close_db",
    "check_db_health",
    # Dependencies
    "get_db",
    "DBSession",
    "get_db_override",
]
