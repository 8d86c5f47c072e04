"""
Tests for the repository statement builders.

Statements are compiled against the PostgreSQL dialect and inspected as SQL
text; no database connection is needed.
"""

from datetime import datetime, timezone
from uuid import uuid4

import pytest
from sqlalchemy.dialects import postgresql

from media_catalog.catalog.families import EPISODES, MOVIES, MUSIC_TRACKS, VIDEO_GAMES, VIDEOS
from media_catalog.catalog.repository import CatalogRepository, page_bounds


def sql(stmt) -> str:
    return str(stmt.compile(dialect=postgresql.dialect()))


NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def movie_values() -> dict:
    return {
        "id": uuid4(),
        "title": "Dune",
        "year": 2021,
        "magnet": "magnet:?xt=urn:btih:abc&dn=Dune&tr=x",
        "created_at": NOW,
        "updated_at": NOW,
        "is_deleted": False,
    }


class TestPageBounds:
    @pytest.mark.parametrize("page, size, expected", [(0, 20, (0, 20)), (3, 10, (30, 10))])
    def test_offset_and_limit(self, page, size, expected):
        assert page_bounds(page, size) == expected


class TestReads:
    def test_list_excludes_soft_deleted(self):
        text = sql(CatalogRepository(MOVIES).list_statement(0, 20))

        assert "movies.is_deleted IS false OR movies.is_deleted IS NULL" in text
        assert "ORDER BY movies.updated_at DESC, movies.id" in text
        assert "LIMIT" in text and "OFFSET" in text

    def test_list_sort_replaces_default_order(self):
        text = sql(CatalogRepository(MOVIES).list_statement(0, 20, [("year", "desc"), ("title", "asc")]))

        assert "ORDER BY movies.year DESC, movies.title ASC, movies.id" in text
        assert "updated_at DESC" not in text

    def test_get_is_not_filtered_by_deletion(self):
        text = sql(CatalogRepository(MOVIES).get_statement(uuid4()))

        where = text.split("WHERE", 1)[1]
        assert "is_deleted" not in where

    def test_child_list_has_no_deletion_filter(self):
        text = sql(CatalogRepository(MUSIC_TRACKS).list_statement(0, 20))

        assert "is_deleted" not in text


class TestSearch:
    def test_parent_search_combines_full_text_and_substring(self):
        text = sql(CatalogRepository(MOVIES).search_statement("dune", 0, 20))

        assert "movies.search_vector @@ plainto_tsquery(" in text
        assert "lower(movies.title) LIKE" in text
        assert "lower(movies.file_type) LIKE" in text
        assert "CAST(movies.year AS VARCHAR) =" in text
        assert "ORDER BY ts_rank(movies.search_vector, plainto_tsquery(" in text
        assert "movies.is_deleted IS false" in text

    def test_array_columns_are_unnested(self):
        text = sql(CatalogRepository(VIDEOS).search_statement("tutorial", 0, 20))

        assert "unnest(videos.tags)" in text
        assert "EXISTS" in text

    def test_sort_follows_rank(self):
        text = sql(CatalogRepository(MOVIES).search_statement("dune", 0, 20, [("year", "asc")]))

        rank = text.index("ts_rank(")
        year = text.index("movies.year ASC")
        assert rank < year

    def test_child_search_is_substring_only(self):
        text = sql(CatalogRepository(EPISODES).search_statement("pilot", 0, 20))

        assert "plainto_tsquery" not in text
        assert "ts_rank" not in text
        assert "lower(series_episodes.title) LIKE" in text
        assert "CAST(" not in text


class TestAdvancedSearch:
    def test_none_filters_are_ignored(self):
        repo = CatalogRepository(MOVIES)

        text = sql(repo.advanced_search_statement({"title": None, "year": None}, 0, 20))

        assert "lower(movies.title)" not in text
        assert "movies.year =" not in text

    def test_filters_use_their_match_mode(self):
        repo = CatalogRepository(MOVIES)

        text = sql(repo.advanced_search_statement({"title": "dune", "year": 2021, "language": "EN"}, 0, 20))

        assert "lower(movies.title) LIKE" in text
        assert "movies.year = " in text
        assert "lower(movies.language) = " in text

    def test_array_filter_uses_any(self):
        text = sql(CatalogRepository(VIDEO_GAMES).advanced_search_statement({"platform": "PC"}, 0, 20))

        assert "= ANY (video_games.platform)" in text


class TestAggregates:
    def test_count_respects_soft_delete(self):
        text = sql(CatalogRepository(MOVIES).count_statement())

        assert "count(*)" in text
        assert "movies.is_deleted IS false" in text

    def test_array_dimension_unnests(self):
        repo = CatalogRepository(VIDEOS)

        text = sql(repo.top_statement(VIDEOS.dimension("tag"), 10))

        assert "unnest(videos.tags)" in text
        assert "GROUP BY" in text
        assert "ORDER BY count(*) DESC" in text

    def test_scalar_dimension_groups_column(self):
        repo = CatalogRepository(MOVIES)

        text = sql(repo.top_statement(MOVIES.dimension("language"), 5))

        assert "GROUP BY movies.language" in text
        assert "movies.language IS NOT NULL" in text

    def test_year_counts_newest_first(self):
        text = sql(CatalogRepository(MOVIES).year_counts_statement(10))

        assert "GROUP BY movies.year" in text
        assert "ORDER BY movies.year DESC" in text

    def test_updated_since_is_ascending(self):
        text = sql(CatalogRepository(MOVIES).updated_since_statement(NOW, 0, 100))

        assert "movies.updated_at >" in text
        assert "ORDER BY movies.updated_at ASC" in text


class TestWrites:
    def test_upsert_conflicts_on_id_and_keeps_created_at(self):
        text = sql(CatalogRepository(MOVIES).upsert_statement(movie_values()))

        assert "ON CONFLICT (id) DO UPDATE" in text
        assert "title = excluded.title" in text
        assert "excluded.created_at" not in text
        assert "RETURNING" in text

    def test_versioned_upsert_bumps_version(self):
        text = sql(CatalogRepository(MOVIES).upsert_statement(movie_values()))

        assert "movies.version +" in text

    def test_child_upsert_conflicts_on_natural_key(self):
        values = {
            "id": uuid4(),
            "album_id": uuid4(),
            "track_number": 1,
            "title": "Intro",
            "created_at": NOW,
            "updated_at": NOW,
        }

        text = sql(CatalogRepository(MUSIC_TRACKS).upsert_statement(values))

        assert "ON CONFLICT (album_id, track_number) DO UPDATE" in text
        assert "version" not in text

    def test_child_update_targets_primary_key(self):
        values = {
            "id": uuid4(),
            "album_id": uuid4(),
            "track_number": 2,
            "title": "Intro",
            "created_at": NOW,
            "updated_at": NOW,
        }

        text = sql(CatalogRepository(MUSIC_TRACKS).update_statement(values["id"], values))
        set_clause = text.split(" WHERE ")[0]

        assert text.startswith("UPDATE music_tracks SET")
        assert "WHERE music_tracks.id = " in text
        assert "track_number" in set_clause
        assert "created_at" not in set_clause
        assert "ON CONFLICT" not in text
        assert "RETURNING" in text

    def test_parent_delete_is_soft(self):
        text = sql(CatalogRepository(MOVIES).delete_statement([uuid4()]))

        assert text.startswith("UPDATE movies SET")
        assert "is_deleted" in text
        assert "updated_at" in text

    def test_child_delete_is_hard(self):
        text = sql(CatalogRepository(EPISODES).delete_statement([uuid4()]))

        assert text.startswith("DELETE FROM series_episodes")


class TestChildListing:
    def test_episodes_ordered_by_season_then_episode(self):
        text = sql(CatalogRepository(EPISODES).list_by_parent_statement(uuid4()))

        assert "ORDER BY series_episodes.season_number, series_episodes.episode_number" in text

    def test_season_filter(self):
        text = sql(CatalogRepository(EPISODES).list_by_parent_statement(uuid4(), season=2))

        assert "series_episodes.season_number = " in text
