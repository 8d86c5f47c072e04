"""
Parent media families: movies, series, music, videos, video games.

All five share identity/lifecycle columns (CommonTableAttributes), the
soft-delete flag and a trigger-maintained search vector. List-valued fields
(genres, tags, platform, ...) are native PostgreSQL arrays so they can be
unnested for grouped counts and matched with = ANY(...).
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import BigInteger, Boolean, DateTime, Integer, String, Text
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.orm import Mapped, mapped_column

from media_catalog.db.base import (
    Base,
    CommonTableAttributes,
    SearchableMixin,
    SoftDeleteMixin,
    String10,
    String20,
    String50,
    String64,
    String100,
    String255,
    String1000,
)
from media_catalog.db.search import install_search_trigger


class MediaBase(Base, CommonTableAttributes, SoftDeleteMixin, SearchableMixin):
    """Abstract base for the soft-deletable, full-text searchable families."""

    __abstract__ = True


class Movie(MediaBase):
    __tablename__ = "movies"

    title: Mapped[str] = mapped_column(String255, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    magnet: Mapped[str] = mapped_column(Text, nullable=False)
    tmdb_id: Mapped[Optional[int]] = mapped_column(Integer, index=True)
    imdb_id: Mapped[Optional[str]] = mapped_column(String(10), index=True)
    language: Mapped[Optional[str]] = mapped_column(String50)
    original_language: Mapped[Optional[str]] = mapped_column(String50)
    quality: Mapped[Optional[str]] = mapped_column(String20)
    file_type: Mapped[Optional[str]] = mapped_column(String20)
    sha256_hash: Mapped[Optional[str]] = mapped_column(String64)
    overview: Mapped[Optional[str]] = mapped_column(String1000)
    poster_path: Mapped[Optional[str]] = mapped_column(String255)
    genres: Mapped[Optional[list[str]]] = mapped_column(ARRAY(String50))
    torrent_url: Mapped[Optional[str]] = mapped_column(String255)
    trailer_url: Mapped[Optional[str]] = mapped_column(String255)
    size: Mapped[Optional[int]] = mapped_column(BigInteger)
    seeds: Mapped[Optional[int]] = mapped_column(Integer)
    peers: Mapped[Optional[int]] = mapped_column(Integer)
    # Bumped by every upsert that hits an existing row
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class Series(MediaBase):
    __tablename__ = "series"

    title: Mapped[str] = mapped_column(String255, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    magnet: Mapped[str] = mapped_column(Text, nullable=False)
    tmdb_id: Mapped[Optional[int]] = mapped_column(Integer, index=True)
    imdb_id: Mapped[Optional[str]] = mapped_column(String(10), index=True)
    language: Mapped[Optional[str]] = mapped_column(String50)
    original_language: Mapped[Optional[str]] = mapped_column(String50)
    quality: Mapped[Optional[str]] = mapped_column(String20)
    file_type: Mapped[Optional[str]] = mapped_column(String20)
    sha256_hash: Mapped[Optional[str]] = mapped_column(String64)
    overview: Mapped[Optional[str]] = mapped_column(String1000)
    poster_path: Mapped[Optional[str]] = mapped_column(String255)
    genres: Mapped[Optional[list[str]]] = mapped_column(ARRAY(String50))
    torrent_url: Mapped[Optional[str]] = mapped_column(String255)
    trailer_url: Mapped[Optional[str]] = mapped_column(String255)
    size: Mapped[Optional[int]] = mapped_column(BigInteger)
    seeds: Mapped[Optional[int]] = mapped_column(Integer)
    peers: Mapped[Optional[int]] = mapped_column(Integer)
    seasons: Mapped[Optional[int]] = mapped_column(Integer)
    episodes: Mapped[Optional[int]] = mapped_column(Integer)
    network: Mapped[Optional[str]] = mapped_column(String100)
    status: Mapped[Optional[str]] = mapped_column(String50)
    episode_runtime: Mapped[Optional[int]] = mapped_column(Integer)


class Music(MediaBase):
    __tablename__ = "music"

    title: Mapped[str] = mapped_column(String255, nullable=False)
    artist: Mapped[str] = mapped_column(String255, nullable=False)
    album: Mapped[Optional[str]] = mapped_column(String255)
    year: Mapped[Optional[int]] = mapped_column(Integer, index=True)
    genre: Mapped[Optional[str]] = mapped_column(String100)
    track_count: Mapped[Optional[int]] = mapped_column(Integer)
    magnet: Mapped[str] = mapped_column(Text, nullable=False)
    quality: Mapped[Optional[str]] = mapped_column(String50)
    file_type: Mapped[Optional[str]] = mapped_column(String20)
    size: Mapped[Optional[int]] = mapped_column(BigInteger)
    sha256_hash: Mapped[Optional[str]] = mapped_column(String64)
    seeds: Mapped[Optional[int]] = mapped_column(Integer)
    peers: Mapped[Optional[int]] = mapped_column(Integer)
    cover_path: Mapped[Optional[str]] = mapped_column(String255)
    description: Mapped[Optional[str]] = mapped_column(Text)
    label: Mapped[Optional[str]] = mapped_column(String100)
    release_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    torrent_url: Mapped[Optional[str]] = mapped_column(String255)


class Video(MediaBase):
    __tablename__ = "videos"

    title: Mapped[str] = mapped_column(String255, nullable=False)
    creator: Mapped[Optional[str]] = mapped_column(String255)
    year: Mapped[Optional[int]] = mapped_column(Integer, index=True)
    duration: Mapped[Optional[int]] = mapped_column(Integer)
    category: Mapped[Optional[str]] = mapped_column(String100)
    magnet: Mapped[str] = mapped_column(Text, nullable=False)
    quality: Mapped[Optional[str]] = mapped_column(String50)
    file_type: Mapped[Optional[str]] = mapped_column(String20)
    size: Mapped[Optional[int]] = mapped_column(BigInteger)
    sha256_hash: Mapped[Optional[str]] = mapped_column(String64)
    seeds: Mapped[Optional[int]] = mapped_column(Integer)
    peers: Mapped[Optional[int]] = mapped_column(Integer)
    thumbnail_path: Mapped[Optional[str]] = mapped_column(String255)
    description: Mapped[Optional[str]] = mapped_column(Text)
    tags: Mapped[Optional[list[str]]] = mapped_column(ARRAY(String50))
    torrent_url: Mapped[Optional[str]] = mapped_column(String255)
    source: Mapped[Optional[str]] = mapped_column(String100)


class VideoGame(MediaBase):
    __tablename__ = "video_games"

    title: Mapped[str] = mapped_column(String255, nullable=False)
    year: Mapped[Optional[int]] = mapped_column(Integer, index=True)
    developer: Mapped[Optional[str]] = mapped_column(String255)
    publisher: Mapped[Optional[str]] = mapped_column(String255)
    platform: Mapped[list[str]] = mapped_column(ARRAY(String50), nullable=False)
    magnet: Mapped[str] = mapped_column(Text, nullable=False)
    quality: Mapped[Optional[str]] = mapped_column(String50)
    file_type: Mapped[Optional[str]] = mapped_column(String20)
    size: Mapped[Optional[int]] = mapped_column(BigInteger)
    sha256_hash: Mapped[Optional[str]] = mapped_column(String64)
    seeds: Mapped[Optional[int]] = mapped_column(Integer)
    peers: Mapped[Optional[int]] = mapped_column(Integer)
    cover_path: Mapped[Optional[str]] = mapped_column(String255)
    description: Mapped[Optional[str]] = mapped_column(Text)
    system_requirements: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONB)
    genre: Mapped[Optional[list[str]]] = mapped_column(ARRAY(String50))
    screenshot_paths: Mapped[Optional[list[str]]] = mapped_column(ARRAY(Text))
    rating: Mapped[Optional[str]] = mapped_column(String10)
    release_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    torrent_url: Mapped[Optional[str]] = mapped_column(String255)
    esrb_rating: Mapped[Optional[str]] = mapped_column(String10)
    multiplayer: Mapped[Optional[bool]] = mapped_column(Boolean)


# ================================
# Search vector documents
# ================================
# Columns concatenated into each table's tsvector. Kept here so the model,
# the create_all DDL and the migration agree on one definition.
SEARCH_DOCUMENTS: dict[str, tuple[tuple[str, ...], tuple[str, ...]]] = {
    "movies": (
        ("title", "overview", "year", "language", "original_language", "quality", "file_type"),
        ("genres",),
    ),
    "series": (
        ("title", "overview", "year", "language", "original_language", "quality", "file_type", "network"),
        ("genres",),
    ),
    "music": (
        ("title", "artist", "album", "year", "genre", "description"),
        (),
    ),
    "videos": (
        ("title", "creator", "year", "category", "description"),
        ("tags",),
    ),
    "video_games": (
        ("title", "developer", "publisher", "year", "description"),
        ("platform", "genre"),
    ),
}

for _model in (Movie, Series, Music, Video, VideoGame):
    _columns, _arrays = SEARCH_DOCUMENTS[_model.__tablename__]
    install_search_trigger(_model.__table__, _columns, _arrays)
