"""
Pydantic DTOs for the catalog families.

These are the validation gate's rule tables: every constraint a write must
satisfy is declared here, next to the field it applies to.
"""

from datetime import datetime
from typing import Annotated, Any, Dict, List, Optional
from uuid import UUID

from media_catalog.schemas.common import (
    IMDB_PATTERN,
    MAGNET_PATTERN,
    SHA256_PATTERN,
    CatalogSchema,
    MediaSchema,
    each_max_length,
    lowercase,
    matches,
    max_length,
    not_negative,
    required_text,
    required_value,
    year_between,
)

# ========================================
# Shared field types
# ========================================

Title = Annotated[Optional[str], required_text("Title", 255)]
Magnet = Annotated[
    Optional[str],
    matches(MAGNET_PATTERN, "Invalid magnet link format", required_message="Magnet link is required"),
]
OptionalMagnet = Annotated[Optional[str], matches(MAGNET_PATTERN, "Invalid magnet link format")]
Sha256Hash = Annotated[Optional[str], matches(SHA256_PATTERN, "Invalid SHA256 hash"), lowercase]
ImdbId = Annotated[Optional[str], matches(IMDB_PATTERN, "Invalid IMDB ID format")]

FilmYear = Annotated[Optional[int], year_between(1888, 2100)]
RequiredFilmYear = Annotated[Optional[int], year_between(1888, 2100, required=True)]
GameYear = Annotated[Optional[int], year_between(1950, 2100)]

Size = Annotated[Optional[int], not_negative("Size")]
Seeds = Annotated[Optional[int], not_negative("Seeds")]
Peers = Annotated[Optional[int], not_negative("Peers")]

FileType = Annotated[Optional[str], max_length("File type", 20)]
TorrentUrl = Annotated[Optional[str], max_length("Torrent URL", 255)]


# ========================================
# Film / TV
# ========================================

class MovieSchema(MediaSchema):
    title: Title = None
    year: RequiredFilmYear = None
    magnet: Magnet = None
    tmdb_id: Optional[int] = None
    imdb_id: ImdbId = None
    language: Annotated[Optional[str], max_length("Language", 50)] = None
    original_language: Annotated[Optional[str], max_length("Original language", 50)] = None
    quality: Annotated[Optional[str], max_length("Quality", 20)] = None
    file_type: FileType = None
    sha256_hash: Sha256Hash = None
    overview: Annotated[Optional[str], max_length("Overview", 1000)] = None
    poster_path: Annotated[Optional[str], max_length("Poster path", 255)] = None
    genres: Annotated[Optional[List[str]], each_max_length("genre", 50)] = None
    torrent_url: TorrentUrl = None
    trailer_url: Annotated[Optional[str], max_length("Trailer URL", 255)] = None
    size: Size = None
    seeds: Seeds = None
    peers: Peers = None


class SeriesSchema(MovieSchema):
    seasons: Annotated[Optional[int], not_negative("Seasons")] = None
    episodes: Annotated[Optional[int], not_negative("Episodes")] = None
    network: Annotated[Optional[str], max_length("Network", 100)] = None
    status: Annotated[Optional[str], max_length("Status", 50)] = None
    episode_runtime: Annotated[Optional[int], not_negative("Episode runtime")] = None


# ========================================
# Music
# ========================================

class MusicSchema(MediaSchema):
    title: Title = None
    artist: Annotated[Optional[str], required_text("Artist", 255)] = None
    album: Annotated[Optional[str], max_length("Album", 255)] = None
    year: FilmYear = None
    genre: Annotated[Optional[str], max_length("Genre", 100)] = None
    track_count: Annotated[Optional[int], not_negative("Track count")] = None
    magnet: Magnet = None
    quality: Annotated[Optional[str], max_length("Quality", 50)] = None
    file_type: FileType = None
    size: Size = None
    sha256_hash: Sha256Hash = None
    seeds: Seeds = None
    peers: Peers = None
    cover_path: Annotated[Optional[str], max_length("Cover path", 255)] = None
    description: Optional[str] = None
    label: Annotated[Optional[str], max_length("Label", 100)] = None
    release_date: Optional[datetime] = None
    torrent_url: TorrentUrl = None


class MusicTrackSchema(CatalogSchema):
    album_id: Annotated[Optional[UUID], required_value("Album ID is required")] = None
    track_number: Annotated[
        Optional[int],
        required_value("Track number is required"),
        not_negative("Track number"),
    ] = None
    title: Title = None
    artist: Annotated[Optional[str], max_length("Artist", 255)] = None
    duration: Annotated[Optional[int], not_negative("Duration")] = None
    file_path: Optional[str] = None
    file_type: FileType = None
    sha256_hash: Sha256Hash = None


# ========================================
# Video
# ========================================

class VideoSchema(MediaSchema):
    title: Title = None
    creator: Annotated[Optional[str], max_length("Creator", 255)] = None
    year: FilmYear = None
    duration: Annotated[Optional[int], not_negative("Duration")] = None
    category: Annotated[Optional[str], max_length("Category", 100)] = None
    magnet: Magnet = None
    quality: Annotated[Optional[str], max_length("Quality", 50)] = None
    file_type: FileType = None
    size: Size = None
    sha256_hash: Sha256Hash = None
    seeds: Seeds = None
    peers: Peers = None
    thumbnail_path: Annotated[Optional[str], max_length("Thumbnail path", 255)] = None
    description: Optional[str] = None
    tags: Annotated[Optional[List[str]], each_max_length("tag", 50)] = None
    torrent_url: TorrentUrl = None
    source: Annotated[Optional[str], max_length("Source", 100)] = None


# ========================================
# Video games
# ========================================

class VideoGameSchema(MediaSchema):
    title: Title = None
    year: GameYear = None
    developer: Annotated[Optional[str], max_length("Developer", 255)] = None
    publisher: Annotated[Optional[str], max_length("Publisher", 255)] = None
    platform: Annotated[
        Optional[List[str]],
        required_value("Platform is required"),
        each_max_length("platform", 50),
    ] = None
    magnet: Magnet = None
    quality: Annotated[Optional[str], max_length("Quality", 50)] = None
    file_type: FileType = None
    size: Size = None
    sha256_hash: Sha256Hash = None
    seeds: Seeds = None
    peers: Peers = None
    cover_path: Annotated[Optional[str], max_length("Cover path", 255)] = None
    description: Optional[str] = None
    system_requirements: Optional[Dict[str, Any]] = None
    genre: Annotated[Optional[List[str]], each_max_length("genre", 50)] = None
    screenshot_paths: Optional[List[str]] = None
    rating: Annotated[Optional[str], max_length("Rating", 10)] = None
    release_date: Optional[datetime] = None
    torrent_url: TorrentUrl = None
    esrb_rating: Annotated[Optional[str], max_length("ESRB rating", 10)] = None
    multiplayer: Optional[bool] = None


# ========================================
# Series episodes
# ========================================

class SeriesEpisodeSchema(CatalogSchema):
    series_id: Annotated[Optional[UUID], required_value("Series ID is required")] = None
    season_number: Annotated[
        Optional[int],
        required_value("Season number is required"),
        not_negative("Season number"),
    ] = None
    episode_number: Annotated[
        Optional[int],
        required_value("Episode number is required"),
        not_negative("Episode number"),
    ] = None
    title: Annotated[Optional[str], max_length("Title", 255)] = None
    overview: Optional[str] = None
    air_date: Optional[datetime] = None
    runtime: Annotated[Optional[int], not_negative("Runtime")] = None
    magnet: OptionalMagnet = None
    quality: Annotated[Optional[str], max_length("Quality", 20)] = None
    size: Size = None
    file_type: FileType = None
    sha256_hash: Sha256Hash = None
