"""
Database Models

Import models from this module to ensure they're registered with SQLAlchemy
(and that their search-vector triggers are attached to the metadata):

    from media_catalog.models import Movie, MusicTrack

This ensures that:
1. Alembic can detect all models for migrations
2. Base.metadata.create_all creates every table and trigger
"""

from media_catalog.models.children import MusicTrack, SeriesEpisode
from media_catalog.models.media import (
    SEARCH_DOCUMENTS,
    MediaBase,
    Movie,
    Music,
    Series,
    Video,
    VideoGame,
)

__all__ = [
    "MediaBase",
    "Movie",
    "Series",
    "Music",
    "Video",
    "VideoGame",
    "MusicTrack",
    "SeriesEpisode",
    "SEARCH_DOCUMENTS",
]
