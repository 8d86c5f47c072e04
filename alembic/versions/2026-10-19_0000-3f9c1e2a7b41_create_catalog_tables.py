"""create_catalog_tables

Revision ID: 3f9c1e2a7b41
Revises:
Create Date: 2026-10-19 00:00:00.000000+00:00

Creates the five parent media tables (movies, series, music, videos,
video_games) and the two child tables (music_tracks, series_episodes).
Parent tables get a search_vector column kept current by a
BEFORE INSERT OR UPDATE trigger, plus a GIN index over it.
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, TSVECTOR

from media_catalog.db.search import (
    create_search_trigger_sql,
    drop_search_trigger_sql,
    search_document,
)
from media_catalog.models.media import SEARCH_DOCUMENTS


# revision identifiers, used by Alembic.
revision = '3f9c1e2a7b41'
down_revision = None
branch_labels = None
depends_on = None

PARENT_TABLES = ('movies', 'series', 'music', 'videos', 'video_games')


def _common_columns() -> list:
    return [
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def _media_columns() -> list:
    return _common_columns() + [
        sa.Column('is_deleted', sa.Boolean(), nullable=True),
        sa.Column('search_vector', TSVECTOR(), nullable=True),
    ]


def _torrent_columns(quality_length: int) -> list:
    return [
        sa.Column('magnet', sa.Text(), nullable=False),
        sa.Column('quality', sa.String(quality_length), nullable=True),
        sa.Column('file_type', sa.String(20), nullable=True),
        sa.Column('size', sa.BigInteger(), nullable=True),
        sa.Column('sha256_hash', sa.String(64), nullable=True),
        sa.Column('seeds', sa.Integer(), nullable=True),
        sa.Column('peers', sa.Integer(), nullable=True),
        sa.Column('torrent_url', sa.String(255), nullable=True),
    ]


def _film_columns() -> list:
    return [
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('tmdb_id', sa.Integer(), nullable=True),
        sa.Column('imdb_id', sa.String(10), nullable=True),
        sa.Column('language', sa.String(50), nullable=True),
        sa.Column('original_language', sa.String(50), nullable=True),
        sa.Column('overview', sa.String(1000), nullable=True),
        sa.Column('poster_path', sa.String(255), nullable=True),
        sa.Column('genres', ARRAY(sa.String(50)), nullable=True),
        sa.Column('trailer_url', sa.String(255), nullable=True),
    ] + _torrent_columns(20)


def _index_common(table: str, *columns: str) -> None:
    op.create_index(f'ix_{table}_updated_at', table, ['updated_at'])
    for column in columns:
        op.create_index(f'ix_{table}_{column}', table, [column])


def upgrade() -> None:
    """Create catalog tables, indexes and search triggers."""
    op.create_table(
        'movies',
        *_media_columns(),
        *_film_columns(),
        sa.Column('version', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id', name='pk_movies'),
    )
    _index_common('movies', 'year', 'tmdb_id', 'imdb_id')

    op.create_table(
        'series',
        *_media_columns(),
        *_film_columns(),
        sa.Column('seasons', sa.Integer(), nullable=True),
        sa.Column('episodes', sa.Integer(), nullable=True),
        sa.Column('network', sa.String(100), nullable=True),
        sa.Column('status', sa.String(50), nullable=True),
        sa.Column('episode_runtime', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_series'),
    )
    _index_common('series', 'year', 'tmdb_id', 'imdb_id')

    op.create_table(
        'music',
        *_media_columns(),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('artist', sa.String(255), nullable=False),
        sa.Column('album', sa.String(255), nullable=True),
        sa.Column('year', sa.Integer(), nullable=True),
        sa.Column('genre', sa.String(100), nullable=True),
        sa.Column('track_count', sa.Integer(), nullable=True),
        *_torrent_columns(50),
        sa.Column('cover_path', sa.String(255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('label', sa.String(100), nullable=True),
        sa.Column('release_date', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_music'),
    )
    _index_common('music', 'year')

    op.create_table(
        'videos',
        *_media_columns(),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('creator', sa.String(255), nullable=True),
        sa.Column('year', sa.Integer(), nullable=True),
        sa.Column('duration', sa.Integer(), nullable=True),
        sa.Column('category', sa.String(100), nullable=True),
        *_torrent_columns(50),
        sa.Column('thumbnail_path', sa.String(255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('tags', ARRAY(sa.String(50)), nullable=True),
        sa.Column('source', sa.String(100), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_videos'),
    )
    _index_common('videos', 'year')

    op.create_table(
        'video_games',
        *_media_columns(),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('year', sa.Integer(), nullable=True),
        sa.Column('developer', sa.String(255), nullable=True),
        sa.Column('publisher', sa.String(255), nullable=True),
        sa.Column('platform', ARRAY(sa.String(50)), nullable=False),
        *_torrent_columns(50),
        sa.Column('cover_path', sa.String(255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('system_requirements', JSONB(), nullable=True),
        sa.Column('genre', ARRAY(sa.String(50)), nullable=True),
        sa.Column('screenshot_paths', ARRAY(sa.Text()), nullable=True),
        sa.Column('rating', sa.String(10), nullable=True),
        sa.Column('release_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('esrb_rating', sa.String(10), nullable=True),
        sa.Column('multiplayer', sa.Boolean(), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_video_games'),
    )
    _index_common('video_games', 'year')

    op.create_table(
        'music_tracks',
        *_common_columns(),
        sa.Column('album_id', sa.Uuid(), nullable=False),
        sa.Column('track_number', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('artist', sa.String(255), nullable=True),
        sa.Column('duration', sa.Integer(), nullable=True),
        sa.Column('file_path', sa.Text(), nullable=True),
        sa.Column('file_type', sa.String(20), nullable=True),
        sa.Column('sha256_hash', sa.String(64), nullable=True),
        sa.ForeignKeyConstraint(
            ['album_id'], ['music.id'],
            name='fk_music_tracks_album_id_music',
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_music_tracks'),
        sa.UniqueConstraint('album_id', 'track_number', name='uq_music_tracks_album_id_track_number'),
    )
    _index_common('music_tracks', 'album_id')

    op.create_table(
        'series_episodes',
        *_common_columns(),
        sa.Column('series_id', sa.Uuid(), nullable=False),
        sa.Column('season_number', sa.Integer(), nullable=False),
        sa.Column('episode_number', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(255), nullable=True),
        sa.Column('overview', sa.Text(), nullable=True),
        sa.Column('air_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('runtime', sa.Integer(), nullable=True),
        sa.Column('magnet', sa.Text(), nullable=True),
        sa.Column('quality', sa.String(20), nullable=True),
        sa.Column('size', sa.BigInteger(), nullable=True),
        sa.Column('file_type', sa.String(20), nullable=True),
        sa.Column('sha256_hash', sa.String(64), nullable=True),
        sa.ForeignKeyConstraint(
            ['series_id'], ['series.id'],
            name='fk_series_episodes_series_id_series',
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_series_episodes'),
        sa.UniqueConstraint(
            'series_id', 'season_number', 'episode_number',
            name='uq_series_episodes_series_id_season_episode',
        ),
    )
    _index_common('series_episodes', 'series_id')

    # Full-text search: trigger function, trigger and GIN index per parent table
    for table in PARENT_TABLES:
        columns, arrays = SEARCH_DOCUMENTS[table]
        for statement in create_search_trigger_sql(table, search_document(columns, arrays)):
            op.execute(statement)


def downgrade() -> None:
    """Drop search triggers and every catalog table."""
    for table in PARENT_TABLES:
        for statement in drop_search_trigger_sql(table):
            op.execute(statement)

    op.drop_table('series_episodes')
    op.drop_table('music_tracks')
    for table in reversed(PARENT_TABLES):
        op.drop_table(table)
