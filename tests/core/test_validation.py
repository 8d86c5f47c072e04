"""
Tests for the validation gate and magnet hash extraction.
"""

import pytest
from prometheus_client import REGISTRY

from media_catalog.catalog.families import EPISODES, MOVIES, MUSIC_TRACKS, VIDEO_GAMES
from media_catalog.core.exceptions import ValidationFailed
from media_catalog.core.validation import extract_hash_from_magnet, validate_payload

MAGNET = "magnet:?xt=urn:btih:AAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA&dn=Dune&tr=udp://x"
SHA256 = "ABCDEF" + "0" * 58


def _counter(name: str, **labels) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


def _messages(exc: ValidationFailed) -> dict[str, str]:
    return dict(exc.errors)


class TestMovieValidation:
    def test_valid_movie_passes(self):
        dto = validate_payload(MOVIES, {"title": "Dune", "year": 2021, "magnet": MAGNET})

        assert dto.title == "Dune"
        assert dto.year == 2021
        assert dto.id is None

    def test_bad_magnet_names_magnet_field(self):
        with pytest.raises(ValidationFailed) as exc_info:
            validate_payload(MOVIES, {"title": "Dune", "year": 2021, "magnet": "not-a-magnet-link"})

        assert _messages(exc_info.value) == {"magnet": "Invalid magnet link format"}

    def test_year_too_early_names_year_field(self):
        with pytest.raises(ValidationFailed) as exc_info:
            validate_payload(MOVIES, {"title": "Dune", "year": 1000, "magnet": MAGNET})

        assert _messages(exc_info.value) == {"year": "Year must be 1888 or later"}

    def test_every_violation_is_reported(self):
        with pytest.raises(ValidationFailed) as exc_info:
            validate_payload(MOVIES, {"title": "Dune", "year": 1000, "magnet": "not-a-magnet-link"})

        exc = exc_info.value
        assert set(exc.fields) == {"year", "magnet"}
        assert "Year must be 1888 or later" in exc.message
        assert "Invalid magnet link format" in exc.message

    def test_missing_required_fields(self):
        with pytest.raises(ValidationFailed) as exc_info:
            validate_payload(MOVIES, {})

        messages = _messages(exc_info.value)
        assert messages["title"] == "Title is required"
        assert messages["year"] == "Year is required"
        assert messages["magnet"] == "Magnet link is required"

    def test_blank_title_rejected(self):
        with pytest.raises(ValidationFailed) as exc_info:
            validate_payload(MOVIES, {"title": "   ", "year": 2021, "magnet": MAGNET})

        assert _messages(exc_info.value)["title"] == "Title is required"

    def test_title_too_long(self):
        with pytest.raises(ValidationFailed) as exc_info:
            validate_payload(MOVIES, {"title": "x" * 256, "year": 2021, "magnet": MAGNET})

        assert _messages(exc_info.value)["title"] == "Title must be between 1 and 255 characters"

    def test_negative_counts_rejected(self):
        payload = {"title": "Dune", "year": 2021, "magnet": MAGNET, "seeds": -1}

        with pytest.raises(ValidationFailed) as exc_info:
            validate_payload(MOVIES, payload)

        assert _messages(exc_info.value)["seeds"] == "Seeds must be a positive number or zero"

    def test_imdb_id_format(self):
        payload = {"title": "Dune", "year": 2021, "magnet": MAGNET, "imdbId": "1160419"}

        with pytest.raises(ValidationFailed) as exc_info:
            validate_payload(MOVIES, payload)

        assert _messages(exc_info.value)["imdbId"] == "Invalid IMDB ID format"

    def test_each_genre_is_length_checked(self):
        payload = {"title": "Dune", "year": 2021, "magnet": MAGNET, "genres": ["Sci-Fi", "x" * 51]}

        with pytest.raises(ValidationFailed) as exc_info:
            validate_payload(MOVIES, payload)

        assert _messages(exc_info.value)["genres"] == "Each genre must be 50 characters or less"

    def test_non_object_body_rejected(self):
        with pytest.raises(ValidationFailed) as exc_info:
            validate_payload(MOVIES, ["not", "an", "object"])

        assert exc_info.value.fields == ["body"]

    def test_path_id_is_carried_on_failure(self):
        with pytest.raises(ValidationFailed) as exc_info:
            validate_payload(MOVIES, {}, media_id="abc")

        assert exc_info.value.media_id == "abc"


class TestSha256:
    def test_mixed_case_hash_is_accepted_and_lowercased(self):
        payload = {"title": "Dune", "year": 2021, "magnet": MAGNET, "sha256Hash": SHA256}

        dto = validate_payload(MOVIES, payload)

        assert dto.sha256_hash == SHA256.lower()

    def test_bad_hash_increments_counter(self):
        before = _counter("hash_validation_failures_total", family="movies")
        payload = {"title": "Dune", "year": 2021, "magnet": MAGNET, "sha256Hash": "xyz"}

        with pytest.raises(ValidationFailed) as exc_info:
            validate_payload(MOVIES, payload)

        assert _messages(exc_info.value)["sha256Hash"] == "Invalid SHA256 hash"
        assert _counter("hash_validation_failures_total", family="movies") == before + 1


class TestOtherFamilies:
    def test_video_game_requires_platform(self):
        with pytest.raises(ValidationFailed) as exc_info:
            validate_payload(VIDEO_GAMES, {"title": "Doom", "magnet": MAGNET})

        assert _messages(exc_info.value)["platform"] == "Platform is required"

    def test_video_game_year_lower_bound(self):
        payload = {"title": "Pong", "magnet": MAGNET, "platform": ["Arcade"], "year": 1949}

        with pytest.raises(ValidationFailed) as exc_info:
            validate_payload(VIDEO_GAMES, payload)

        assert _messages(exc_info.value)["year"] == "Year must be 1950 or later"

    def test_track_requires_album_and_number(self):
        with pytest.raises(ValidationFailed) as exc_info:
            validate_payload(MUSIC_TRACKS, {"title": "Intro"})

        messages = _messages(exc_info.value)
        assert messages["albumId"] == "Album ID is required"
        assert messages["trackNumber"] == "Track number is required"

    def test_episode_magnet_is_optional(self):
        payload = {
            "seriesId": "7d4a6c1e-2f7b-4a8e-9d0c-3b5e6f7a8b9c",
            "seasonNumber": 1,
            "episodeNumber": 2,
        }

        dto = validate_payload(EPISODES, payload)

        assert dto.magnet is None
        assert dto.episode_number == 2


class TestExtractHashFromMagnet:
    def test_extracts_lowercased_hash(self):
        assert extract_hash_from_magnet(MAGNET) == "a" * 40

    @pytest.mark.parametrize(
        "magnet, reason",
        [
            (None, "null_or_empty"),
            ("", "null_or_empty"),
            ("magnet:?xt=urn:sha1:abc&dn=x", "no_btih_prefix"),
            ("magnet:?xt=urn:btih:&dn=x", "parsing_error"),
        ],
    )
    def test_unusable_links_are_counted(self, magnet, reason):
        before = _counter("magnet_links_invalid_total", reason=reason)

        assert extract_hash_from_magnet(magnet) is None
        assert _counter("magnet_links_invalid_total", reason=reason) == before + 1
