"""
The seven catalog families.

Five parent families (soft delete, full-text search, grouped counts) and
two child families (hard delete, parent existence guard).
"""

from uuid import UUID

from media_catalog.catalog.family import (
    Dimension,
    EntityFamily,
    FilterSpec,
    Lookup,
    MatchMode,
    ParentLink,
)
from media_catalog.models import Movie, Music, MusicTrack, Series, SeriesEpisode, Video, VideoGame
from media_catalog.schemas import (
    MovieSchema,
    MusicSchema,
    MusicTrackSchema,
    SeriesEpisodeSchema,
    SeriesSchema,
    VideoGameSchema,
    VideoSchema,
)

# ================================
# Shared pieces
# ================================

TITLE_FILTER = FilterSpec("title", "title", MatchMode.SUBSTRING)
YEAR_FILTER = FilterSpec("year", "year", MatchMode.EQUALS, int)
LANGUAGE_FILTER = FilterSpec("language", "language", MatchMode.EXACT_CI)
QUALITY_FILTER = FilterSpec("quality", "quality", MatchMode.EXACT_CI)
FILE_TYPE_FILTER = FilterSpec("fileType", "file_type", MatchMode.EXACT_CI)

YEAR_LOOKUP = Lookup("year", "year", MatchMode.EQUALS, int)
LANGUAGE_LOOKUP = Lookup("language", "language", MatchMode.EXACT_CI)

EXTERNAL_IDS = (
    Lookup("tmdb", "tmdb_id", MatchMode.EQUALS, int),
    Lookup("imdb", "imdb_id", MatchMode.EQUALS),
)

LANGUAGE_DIMENSION = Dimension("language", "language", "top-languages")

FILM_FIELDS = (
    "title",
    "year",
    "magnet",
    "tmdb_id",
    "imdb_id",
    "language",
    "original_language",
    "quality",
    "file_type",
    "sha256_hash",
    "overview",
    "poster_path",
    "genres",
    "torrent_url",
    "trailer_url",
    "size",
    "seeds",
    "peers",
)


# ================================
# Parent families
# ================================

MOVIES = EntityFamily(
    name="movies",
    label="Movie",
    model=Movie,
    schema=MovieSchema,
    fields=FILM_FIELDS,
    text_columns=("title", "language", "original_language", "quality", "file_type"),
    filters=(TITLE_FILTER, YEAR_FILTER, LANGUAGE_FILTER, QUALITY_FILTER, FILE_TYPE_FILTER),
    lookups=(YEAR_LOOKUP, LANGUAGE_LOOKUP),
    external_ids=EXTERNAL_IDS,
    dimensions=(LANGUAGE_DIMENSION,),
    versioned=True,
)

SERIES = EntityFamily(
    name="series",
    label="Series",
    model=Series,
    schema=SeriesSchema,
    fields=FILM_FIELDS + ("seasons", "episodes", "network", "status", "episode_runtime"),
    text_columns=("title", "language", "original_language", "quality", "network", "file_type"),
    filters=(
        TITLE_FILTER,
        YEAR_FILTER,
        LANGUAGE_FILTER,
        QUALITY_FILTER,
        FilterSpec("network", "network", MatchMode.SUBSTRING),
        FILE_TYPE_FILTER,
    ),
    lookups=(
        YEAR_LOOKUP,
        LANGUAGE_LOOKUP,
        Lookup("network", "network", MatchMode.EXACT_CI),
    ),
    external_ids=EXTERNAL_IDS,
    dimensions=(
        LANGUAGE_DIMENSION,
        Dimension("network", "network", "top-networks"),
    ),
)

MUSIC = EntityFamily(
    name="music",
    label="Music",
    model=Music,
    schema=MusicSchema,
    fields=(
        "title",
        "artist",
        "album",
        "year",
        "genre",
        "track_count",
        "magnet",
        "quality",
        "file_type",
        "size",
        "sha256_hash",
        "seeds",
        "peers",
        "cover_path",
        "description",
        "label",
        "release_date",
        "torrent_url",
    ),
    text_columns=("title", "artist", "album", "genre"),
    filters=(
        TITLE_FILTER,
        FilterSpec("artist", "artist", MatchMode.SUBSTRING),
        FilterSpec("album", "album", MatchMode.SUBSTRING),
        YEAR_FILTER,
        FilterSpec("genre", "genre", MatchMode.SUBSTRING),
    ),
    lookups=(
        YEAR_LOOKUP,
        Lookup("artist", "artist", MatchMode.SUBSTRING),
        Lookup("album", "album", MatchMode.SUBSTRING),
        Lookup("genre", "genre", MatchMode.EXACT_CI),
    ),
    dimensions=(
        Dimension("genre", "genre", "top-genres"),
        Dimension("artist", "artist", "top-artists"),
    ),
)

VIDEOS = EntityFamily(
    name="videos",
    label="Video",
    model=Video,
    schema=VideoSchema,
    fields=(
        "title",
        "creator",
        "year",
        "duration",
        "category",
        "magnet",
        "quality",
        "file_type",
        "size",
        "sha256_hash",
        "seeds",
        "peers",
        "thumbnail_path",
        "description",
        "tags",
        "torrent_url",
        "source",
    ),
    text_columns=("title", "creator", "category"),
    array_text_columns=("tags",),
    filters=(
        TITLE_FILTER,
        FilterSpec("creator", "creator", MatchMode.SUBSTRING),
        YEAR_FILTER,
        FilterSpec("category", "category", MatchMode.EXACT_CI),
        FilterSpec("tag", "tags", MatchMode.ANY),
        QUALITY_FILTER,
    ),
    lookups=(
        YEAR_LOOKUP,
        Lookup("creator", "creator", MatchMode.SUBSTRING),
        Lookup("category", "category", MatchMode.EXACT_CI),
        Lookup("tag", "tags", MatchMode.ANY),
    ),
    dimensions=(
        Dimension("category", "category", "top-categories"),
        Dimension("tag", "tags", "top-tags", is_array=True),
    ),
)

VIDEO_GAMES = EntityFamily(
    name="videogames",
    label="VideoGame",
    model=VideoGame,
    schema=VideoGameSchema,
    fields=(
        "title",
        "year",
        "developer",
        "publisher",
        "platform",
        "magnet",
        "quality",
        "file_type",
        "size",
        "sha256_hash",
        "seeds",
        "peers",
        "cover_path",
        "description",
        "system_requirements",
        "genre",
        "screenshot_paths",
        "rating",
        "release_date",
        "torrent_url",
        "esrb_rating",
        "multiplayer",
    ),
    text_columns=("title", "developer", "publisher"),
    array_text_columns=("platform", "genre"),
    filters=(
        TITLE_FILTER,
        FilterSpec("developer", "developer", MatchMode.SUBSTRING),
        FilterSpec("publisher", "publisher", MatchMode.SUBSTRING),
        YEAR_FILTER,
        FilterSpec("platform", "platform", MatchMode.ANY),
        FilterSpec("genre", "genre", MatchMode.ANY),
    ),
    lookups=(
        YEAR_LOOKUP,
        Lookup("developer", "developer", MatchMode.SUBSTRING),
        Lookup("publisher", "publisher", MatchMode.SUBSTRING),
        Lookup("platform", "platform", MatchMode.ANY),
        Lookup("genre", "genre", MatchMode.ANY),
    ),
    dimensions=(
        Dimension("genre", "genre", "top-genres", is_array=True),
        Dimension("platform", "platform", "top-platforms", is_array=True),
    ),
)


# ================================
# Child families
# ================================

MUSIC_TRACKS = EntityFamily(
    name="music-tracks",
    label="MusicTrack",
    model=MusicTrack,
    schema=MusicTrackSchema,
    fields=(
        "album_id",
        "track_number",
        "title",
        "artist",
        "duration",
        "file_path",
        "file_type",
        "sha256_hash",
    ),
    text_columns=("title", "artist"),
    filters=(
        TITLE_FILTER,
        FilterSpec("artist", "artist", MatchMode.SUBSTRING),
        FILE_TYPE_FILTER,
        FilterSpec("albumId", "album_id", MatchMode.EQUALS, UUID),
    ),
    soft_delete=False,
    cacheable=False,
    full_text=False,
    has_year=False,
    conflict_columns=("album_id", "track_number"),
    parent=ParentLink(
        family="music",
        column="album_id",
        label="Album",
        route="album",
        order_by=("track_number",),
    ),
)

EPISODES = EntityFamily(
    name="episodes",
    label="SeriesEpisode",
    model=SeriesEpisode,
    schema=SeriesEpisodeSchema,
    fields=(
        "series_id",
        "season_number",
        "episode_number",
        "title",
        "overview",
        "air_date",
        "runtime",
        "magnet",
        "quality",
        "size",
        "file_type",
        "sha256_hash",
    ),
    text_columns=("title", "overview"),
    filters=(
        TITLE_FILTER,
        FilterSpec("seasonNumber", "season_number", MatchMode.EQUALS, int),
        QUALITY_FILTER,
        FILE_TYPE_FILTER,
        FilterSpec("seriesId", "series_id", MatchMode.EQUALS, UUID),
    ),
    soft_delete=False,
    cacheable=False,
    full_text=False,
    has_year=False,
    conflict_columns=("series_id", "season_number", "episode_number"),
    parent=ParentLink(
        family="series",
        column="series_id",
        label="Series",
        route="series",
        order_by=("season_number", "episode_number"),
        season_column="season_number",
    ),
)


FAMILIES: dict[str, EntityFamily] = {
    family.name: family
    for family in (MOVIES, SERIES, MUSIC, VIDEOS, VIDEO_GAMES, MUSIC_TRACKS, EPISODES)
}


def get_family(name: str) -> EntityFamily:
    """Look up a family by name (its path segment)."""
    return FAMILIES[name]
