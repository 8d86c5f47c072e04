"""
Tests for the family registry, row/DTO mapping and the point-lookup cache.
"""

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from media_catalog.catalog import FAMILIES, get_family
from media_catalog.catalog.cache import RedisCache, cache_key
from media_catalog.catalog.families import EPISODES, MOVIES, MUSIC_TRACKS, VIDEOS
from media_catalog.catalog.mapper import count_rows, error_body, to_dto, to_json, to_row

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class TestRegistry:
    def test_seven_families(self):
        assert set(FAMILIES) == {
            "movies",
            "series",
            "music",
            "videos",
            "videogames",
            "music-tracks",
            "episodes",
        }

    def test_unknown_family(self):
        with pytest.raises(KeyError):
            get_family("podcasts")

    def test_children_are_hard_deleted(self):
        for family in (MUSIC_TRACKS, EPISODES):
            assert not family.soft_delete
            assert family.parent is not None
            assert "is_deleted" not in family.dto_fields

    def test_every_field_is_a_model_column(self):
        for family in FAMILIES.values():
            columns = family.model.__table__.c
            for name in family.dto_fields:
                assert name in columns, f"{family.name}.{name}"

    def test_sortable_fields_accept_both_spellings(self):
        sortable = MOVIES.sortable_fields

        assert sortable["createdAt"] == "created_at"
        assert sortable["created_at"] == "created_at"
        assert sortable["year"] == "year"

    def test_array_columns_are_not_sortable(self):
        assert "genres" not in MOVIES.sortable_fields
        assert "tags" not in VIDEOS.sortable_fields

    def test_only_parent_families_are_cached(self):
        cached = {name for name, family in FAMILIES.items() if family.cacheable}

        assert cached == {"movies", "series", "music", "videos", "videogames"}

    def test_unknown_dimension(self):
        with pytest.raises(KeyError):
            MOVIES.dimension("network")


class TestMapper:
    def test_to_row_takes_identity_from_caller(self):
        dto = MOVIES.schema.model_construct(id=uuid4(), title="Dune", year=2021, is_deleted=True)
        media_id = uuid4()

        values = to_row(MOVIES, dto, media_id, created_at=NOW, updated_at=NOW, is_deleted=False)

        assert values["id"] == media_id
        assert values["created_at"] == NOW
        assert values["is_deleted"] is False
        assert values["title"] == "Dune"

    def test_to_row_child_has_no_deletion_flag(self):
        dto = MUSIC_TRACKS.schema.model_construct(album_id=uuid4(), track_number=1, title="Intro")

        values = to_row(MUSIC_TRACKS, dto, uuid4(), created_at=NOW, updated_at=NOW)

        assert "is_deleted" not in values

    def test_to_json_is_camel_case(self):
        row = SimpleNamespace(**{name: None for name in MOVIES.dto_fields})
        row.id = uuid4()
        row.title = "Dune"
        row.sha256_hash = "a" * 64
        row.created_at = NOW

        body = to_json(to_dto(MOVIES, row))

        assert body["title"] == "Dune"
        assert body["sha256Hash"] == "a" * 64
        assert body["createdAt"] == "2024-05-01T12:00:00Z"
        assert body["id"] == str(row.id)

    def test_error_body_is_dto_shaped(self):
        media_id = uuid4()

        body = error_body(MOVIES, "year: Year must be 1888 or later", media_id)

        assert body["title"] == "year: Year must be 1888 or later"
        assert body["id"] == str(media_id)
        assert body["magnet"] is None
        assert body["year"] is None

    def test_count_rows(self):
        assert count_rows("tag", [("howto", 3), ("music", 1)]) == [
            {"tag": "howto", "count": 3},
            {"tag": "music", "count": 1},
        ]


class TestRedisCache:
    def test_key_format(self):
        media_id = uuid4()

        assert cache_key("movies", media_id) == f"movies:{media_id}"

    @pytest.mark.asyncio
    async def test_set_stores_camel_case_json_with_ttl(self):
        redis = MagicMock()
        redis.set = AsyncMock()
        cache = RedisCache(redis, ttl_seconds=60)
        media_id = uuid4()
        dto = MOVIES.schema.model_construct(id=media_id, title="Dune", sha256_hash="b" * 64)

        await cache.set("movies", media_id, dto)

        key, payload = redis.set.await_args.args
        assert key == f"movies:{media_id}"
        assert '"sha256Hash"' in payload
        assert redis.set.await_args.kwargs["ex"] == 60

    @pytest.mark.asyncio
    async def test_redis_errors_are_a_miss(self):
        redis = MagicMock()
        redis.get = AsyncMock(side_effect=ConnectionError("redis down"))
        cache = RedisCache(redis)

        assert await cache.get("movies", uuid4(), MOVIES.schema) is None

    @pytest.mark.asyncio
    async def test_round_trips_through_redis(self):
        stored = {}

        async def fake_set(key, value, ex=None):
            stored[key] = value

        async def fake_get(key):
            return stored.get(key)

        redis = MagicMock()
        redis.set = fake_set
        redis.get = fake_get
        cache = RedisCache(redis)
        media_id = uuid4()
        dto = MOVIES.schema.model_validate({
            "id": str(media_id),
            "title": "Dune",
            "year": 2021,
            "magnet": "magnet:?xt=urn:btih:" + "b" * 40 + "&dn=Dune&tr=udp://x",
        })

        await cache.set("movies", media_id, dto)
        cached = await cache.get("movies", media_id, MOVIES.schema)

        assert cached.model_dump() == dto.model_dump()
