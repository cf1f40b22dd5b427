from __future__ import annotations

import pytest

from media_tracker.errors import UpstreamError, ValidationError
from media_tracker.integrations.tmdb.client import TmdbClientError
from media_tracker.metadata import gateway as mod
from media_tracker.metadata.gateway import (
    MetadataGateway,
    build_poster_url,
    derive_year,
    detail_record_from_payload,
    detail_record_to_payload,
    normalize_search_item,
    parse_movie_details,
    parse_show_details,
    search_result_from_payload,
    search_result_to_payload,
)
from media_tracker.models.media import MediaKind, MovieDetails, ShowDetails

RAW_SEARCH_RESULTS = [
    {
        "id": 268,
        "media_type": "movie",
        "title": "Batman",
        "release_date": "1989-06-21",
        "poster_path": "/cij4dd21v2Rk2YtUQbV5kW69WB2.jpg",
        "overview": "The Dark Knight of Gotham City begins his war on crime.",
        "vote_average": 7.2,
    },
    {"id": 3894, "media_type": "person", "name": "Adam West", "profile_path": "/x.jpg"},
    {
        "id": 2098,
        "media_type": "tv",
        "name": "Batman: The Animated Series",
        "first_air_date": "1992-09-05",
        "poster_path": None,
        "overview": "",
    },
    {"id": 5, "media_type": "collection", "name": "Batman Collection"},
]

RAW_MOVIE_DETAILS = {
    "id": 268,
    "runtime": 126,
    "budget": 35000000,
    "revenue": 411348924,
    "release_date": "1989-06-21",
    "genres": [{"id": 14, "name": "Fantasy"}, {"id": 28, "name": "Action"}],
    "vote_average": 7.2,
    "original_language": "en",
    "credits": {
        "cast": [{"name": "Michael Keaton", "character": "Batman"}, {"name": "Jack Nicholson"}],
        "crew": [{"name": "Tim Burton", "job": "Director"}, {"name": "Danny Elfman", "job": "Original Music Composer"}],
    },
}

RAW_TV_DETAILS = {
    "id": 2098,
    "number_of_episodes": 85,
    "number_of_seasons": 4,
    "status": "Ended",
    "first_air_date": "1992-09-05",
    "genres": [{"id": 16, "name": "Animation"}],
    "vote_average": 8.5,
    "original_language": "en",
    "credits": {"cast": [{"name": "Kevin Conroy"}], "crew": []},
}


def test_search_keeps_only_movies_and_shows(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(mod, "search_multi", lambda *args, **kwargs: RAW_SEARCH_RESULTS)

    results = MetadataGateway(api_key="k").search("batman")

    assert [r.external_id for r in results] == [268, 2098]
    assert {r.media_kind for r in results} == {MediaKind.MOVIE, MediaKind.SHOW}
    movie, show = results
    assert movie.title == "Batman"
    assert movie.year == 1989
    assert movie.poster_url == "https://image.tmdb.org/t/p/w500/cij4dd21v2Rk2YtUQbV5kW69WB2.jpg"
    assert movie.overview.startswith("The Dark Knight")
    assert show.title == "Batman: The Animated Series"
    assert show.year == 1992
    assert show.poster_url is None
    assert show.overview is None


def test_search_preserves_upstream_order(monkeypatch: pytest.MonkeyPatch) -> None:
    raw = [
        {"id": 3, "media_type": "tv", "name": "C"},
        {"id": 1, "media_type": "movie", "title": "A"},
        {"id": 2, "media_type": "movie", "title": "B"},
    ]
    monkeypatch.setattr(mod, "search_multi", lambda *args, **kwargs: raw)

    assert [r.external_id for r in MetadataGateway(api_key="k").search("x")] == [3, 1, 2]


@pytest.mark.parametrize("query", ["", "   ", "\n\t"])
def test_search_rejects_blank_query(monkeypatch: pytest.MonkeyPatch, query: str) -> None:
    def _should_not_run(*args, **kwargs):  # noqa: ANN002, ANN003
        raise AssertionError("Blank queries must not reach TMDb.")

    monkeypatch.setattr(mod, "search_multi", _should_not_run)
    with pytest.raises(ValidationError):
        MetadataGateway(api_key="k").search(query)


def test_search_wraps_tmdb_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    def _fail(*args, **kwargs):  # noqa: ANN002, ANN003
        raise TmdbClientError("TMDb request failed with HTTP 401.", status_code=401, body_snippet="bad key")

    monkeypatch.setattr(mod, "search_multi", _fail)
    with pytest.raises(UpstreamError) as excinfo:
        MetadataGateway(api_key="k").search("batman")
    assert excinfo.value.status_code == 401


def test_missing_api_key_is_upstream_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TMDB_API_KEY", raising=False)
    with pytest.raises(UpstreamError, match="TMDB API key not configured"):
        MetadataGateway().search("batman")


def test_derive_year_prefers_release_date_and_handles_missing() -> None:
    assert derive_year({"release_date": "2008-07-16", "first_air_date": "2010-01-01"}) == 2008
    assert derive_year({"release_date": "", "first_air_date": "2010-01-01"}) == 2010
    assert derive_year({"title": "No dates"}) is None
    assert derive_year({"release_date": "", "first_air_date": None}) is None
    assert derive_year({"release_date": "unknown"}) is None


def test_build_poster_url() -> None:
    assert build_poster_url("/abc.jpg", image_base_url="https://cdn.example/w500") == "https://cdn.example/w500/abc.jpg"
    assert build_poster_url(None) is None
    assert build_poster_url("") is None


def test_image_base_url_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TMDB_IMAGE_BASE_URL", "https://img.example/w342/")
    assert build_poster_url("/p.jpg") == "https://img.example/w342/p.jpg"


def test_normalize_search_item_requires_title() -> None:
    assert normalize_search_item({"id": 1, "media_type": "movie"}) is None


def test_fetch_details_movie(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[int] = []

    def _movie(movie_id, **kwargs):  # noqa: ANN001, ANN003
        calls.append(movie_id)
        return RAW_MOVIE_DETAILS

    monkeypatch.setattr(mod, "fetch_movie_details", _movie)
    monkeypatch.setattr(
        mod, "fetch_tv_details", lambda *a, **k: (_ for _ in ()).throw(AssertionError("wrong endpoint"))
    )

    details = MetadataGateway(api_key="k").fetch_details(268, MediaKind.MOVIE)

    assert calls == [268]
    assert isinstance(details, MovieDetails)
    assert details.runtime == 126
    assert details.budget == 35000000
    assert details.revenue == 411348924
    assert details.genres == ("Fantasy", "Action")
    assert details.cast[0].name == "Michael Keaton"
    assert details.crew[0].job == "Director"


def test_fetch_details_show_accepts_tv_string(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(mod, "fetch_tv_details", lambda *args, **kwargs: RAW_TV_DETAILS)

    details = MetadataGateway(api_key="k").fetch_details(2098, "tv")

    assert isinstance(details, ShowDetails)
    assert details.total_episodes == 85
    assert details.total_seasons == 4
    assert details.status == "Ended"
    assert not hasattr(details, "runtime")


def test_fetch_details_failure_is_upstream_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def _fail(*args, **kwargs):  # noqa: ANN002, ANN003
        raise TmdbClientError("TMDb request failed with HTTP 404.", status_code=404)

    monkeypatch.setattr(mod, "fetch_tv_details", _fail)
    with pytest.raises(UpstreamError, match="Failed to fetch TV show details"):
        MetadataGateway(api_key="k").fetch_details(1, MediaKind.SHOW)


def test_fetch_details_rejects_unknown_kind() -> None:
    with pytest.raises(ValidationError):
        MetadataGateway(api_key="k").fetch_details(1, "person")


def test_detail_payload_is_tagged_by_kind() -> None:
    movie_payload = detail_record_to_payload(parse_movie_details(RAW_MOVIE_DETAILS))
    show_payload = detail_record_to_payload(parse_show_details(RAW_TV_DETAILS))

    assert movie_payload["media_type"] == "movie"
    assert "total_episodes" not in movie_payload
    assert show_payload["media_type"] == "tv"
    assert show_payload["total_episodes"] == 85
    assert "runtime" not in show_payload and "budget" not in show_payload

    assert detail_record_from_payload(movie_payload, MediaKind.MOVIE) == parse_movie_details(RAW_MOVIE_DETAILS)
    assert detail_record_from_payload(show_payload, MediaKind.SHOW) == parse_show_details(RAW_TV_DETAILS)


def test_search_result_payload_matches_wire_names() -> None:
    result = normalize_search_item(RAW_SEARCH_RESULTS[0])
    payload = search_result_to_payload(result)

    assert payload == {
        "id": 268,
        "title": "Batman",
        "media_type": "movie",
        "year": 1989,
        "poster_path": "https://image.tmdb.org/t/p/w500/cij4dd21v2Rk2YtUQbV5kW69WB2.jpg",
        "overview": "The Dark Knight of Gotham City begins his war on crime.",
    }
    assert search_result_from_payload(payload) == result
