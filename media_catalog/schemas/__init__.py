"""
Pydantic schemas for request/response validation.

Import all schemas here for easy access.
"""

from media_catalog.schemas.common import CatalogSchema, MediaSchema
from media_catalog.schemas.media import (
    MovieSchema,
    MusicSchema,
    MusicTrackSchema,
    SeriesEpisodeSchema,
    SeriesSchema,
    VideoGameSchema,
    VideoSchema,
)

__all__ = [
    "CatalogSchema",
    "MediaSchema",
    "MovieSchema",
    "SeriesSchema",
    "MusicSchema",
    "MusicTrackSchema",
    "VideoSchema",
    "VideoGameSchema",
    "SeriesEpisodeSchema",
]
