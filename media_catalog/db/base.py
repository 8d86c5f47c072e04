"""
Database Base Classes and Common Utilities

This module provides the foundation for all catalog tables.

Key Concepts:
--------------
1. DeclarativeBase: SQLAlchemy's base class that enables ORM functionality
2. CommonTableAttributes: id / created_at / updated_at shared by every table
3. SoftDeleteMixin: is_deleted flag for the parent media families
4. SearchableMixin: trigger-maintained tsvector column for full-text search

Learning Resources:
- SQLAlchemy Declarative Base: https://docs.sqlalchemy.org/en/20/orm/declarative_config.html
- PostgreSQL text search: https://www.postgresql.org/docs/current/textsearch-controls.html
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import Boolean, DateTime, MetaData, String, Uuid
from sqlalchemy.dialects.postgresql import TSVECTOR
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, registry


def utcnow() -> datetime:
    """Timezone-aware 'now' used for every server-assigned timestamp."""
    return datetime.now(timezone.utc)


# ================================
# Naming Convention for Constraints
# ================================
# Consistent constraint names so Alembic can track them:
# - ix_movies_title: Index on 'movies' table, 'title' column
# - uq_music_tracks_album_id: Unique constraint
# - fk_music_tracks_album_id_music: Foreign key from music_tracks.album_id to music
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

orm_registry = registry(metadata=metadata)


# ================================
# Base DeclarativeBase Class
# ================================
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Usage:
        class Movie(Base, CommonTableAttributes):
            __tablename__ = "movies"
            title: Mapped[str] = mapped_column(String255)
    """

    registry = orm_registry
    metadata = metadata

    __tablename__: str


# ================================
# Common Table Attributes Mixin
# ================================
class CommonTableAttributes:
    """
    Mixin that provides the identity and lifecycle columns to every table.

    Common Fields Added:
    --------------------
    - id: UUID primary key, generated by the application when absent
    - created_at: set once on create, never overwritten by an upsert
    - updated_at: refreshed on every write

    Both timestamps are assigned by the service layer before the upsert;
    the column defaults only cover rows inserted outside the service.
    """

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Opaque unique identifier",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        comment="Timestamp when record was created (UTC)",
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        index=True,
        comment="Timestamp when record was last written (UTC)",
    )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self.id})"


class SoftDeleteMixin:
    """
    Soft-delete flag.

    Tri-state on purpose: NULL is treated exactly like false by every read
    path (see CatalogRepository.live).
    """

    is_deleted: Mapped[Optional[bool]] = mapped_column(
        Boolean,
        default=False,
        nullable=True,
        comment="Soft-delete flag (NULL counts as false)",
    )


class SearchableMixin:
    """
    Full-text search column.

    Maintained by a BEFORE INSERT OR UPDATE trigger (see db.search); the
    application never writes it, so it is excluded from every upsert.
    """

    search_vector: Mapped[Optional[Any]] = mapped_column(
        TSVECTOR,
        nullable=True,
        comment="Derived tsvector, database maintained",
    )


# ================================
# String Length Constraints
# ================================
String10 = String(10)  # ratings
String20 = String(20)  # quality, file type
String50 = String(50)  # language, status
String64 = String(64)  # sha256 hex digest
String100 = String(100)  # network, category, label
String255 = String(255)  # titles, paths, URLs
String1000 = String(1000)  # overview
