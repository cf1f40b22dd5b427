"""
Metadata Gateway.

Translates free-text search and detail-by-id lookups into TMDb calls and
reshapes the responses into `SearchResult` stubs and `MovieDetails` /
`ShowDetails` records. Nothing is cached; every call re-queries TMDb.

The `*_to_payload` / `*_from_payload` helpers define the JSON wire format of
the `/search-media` HTTP surface so the server and `http_client` agree on it.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Mapping, Protocol

import requests

from media_tracker.errors import UpstreamError, ValidationError
from media_tracker.integrations.tmdb.client import (
    TmdbClientError,
    fetch_movie_details,
    fetch_tv_details,
    resolve_api_key,
    search_multi,
)
from media_tracker.models.media import (
    CastMember,
    CrewMember,
    DetailRecord,
    MediaKind,
    MovieDetails,
    SearchResult,
    ShowDetails,
)
from media_tracker.utils.env import env_str

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_BASE_URL = "https://image.tmdb.org/t/p/w500"
MISSING_API_KEY_MESSAGE = "TMDB API key not configured. Please set TMDB_API_KEY in your server environment."

_YEAR_RE = re.compile(r"^\s*(\d{4})")


class MetadataSource(Protocol):
    def search(self, query: str) -> list[SearchResult]: ...

    def fetch_details(self, external_id: int, media_kind: MediaKind) -> DetailRecord: ...


def get_image_base_url() -> str:
    return (env_str("TMDB_IMAGE_BASE_URL") or DEFAULT_IMAGE_BASE_URL).rstrip("/")


def build_poster_url(poster_path: Any, *, image_base_url: str | None = None) -> str | None:
    if not isinstance(poster_path, str) or not poster_path.strip():
        return None
    path = poster_path.strip()
    if path.startswith(("http://", "https://")):
        return path
    if not path.startswith("/"):
        path = f"/{path}"
    return f"{image_base_url or get_image_base_url()}{path}"


def derive_year(item: Mapping[str, Any]) -> int | None:
    """Year of `release_date`, else of `first_air_date`; None when neither is usable."""

    for key in ("release_date", "first_air_date"):
        value = item.get(key)
        if not isinstance(value, str) or not value.strip():
            continue
        match = _YEAR_RE.match(value)
        if match:
            return int(match.group(1))
    return None


def _str_or_none(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _int_or_none(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _float_or_none(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None


def normalize_search_item(item: Mapping[str, Any], *, image_base_url: str | None = None) -> SearchResult | None:
    """Map one raw `/search/multi` result; None for people and any other non-title kinds."""

    media_type = item.get("media_type")
    if media_type not in ("movie", "tv"):
        return None
    external_id = _int_or_none(item.get("id"))
    if external_id is None:
        return None
    title = _str_or_none(item.get("title")) or _str_or_none(item.get("name"))
    if title is None:
        return None
    return SearchResult(
        external_id=external_id,
        title=title,
        media_kind=MediaKind(media_type),
        year=derive_year(item),
        poster_url=build_poster_url(item.get("poster_path"), image_base_url=image_base_url),
        overview=_str_or_none(item.get("overview")),
    )


def _parse_genres(payload: Mapping[str, Any]) -> tuple[str, ...]:
    genres = payload.get("genres")
    if not isinstance(genres, list):
        return ()
    names = []
    for genre in genres:
        if isinstance(genre, Mapping) and _str_or_none(genre.get("name")):
            names.append(genre["name"])
        elif isinstance(genre, str) and genre.strip():
            names.append(genre)
    return tuple(names)


def _parse_credits(payload: Mapping[str, Any]) -> tuple[tuple[CastMember, ...], tuple[CrewMember, ...]]:
    credits = payload.get("credits")
    if not isinstance(credits, Mapping):
        return (), ()
    cast = tuple(
        CastMember(name=entry["name"], character=_str_or_none(entry.get("character")))
        for entry in credits.get("cast") or []
        if isinstance(entry, Mapping) and _str_or_none(entry.get("name"))
    )
    crew = tuple(
        CrewMember(name=entry["name"], job=_str_or_none(entry.get("job")))
        for entry in credits.get("crew") or []
        if isinstance(entry, Mapping) and _str_or_none(entry.get("name"))
    )
    return cast, crew


def parse_movie_details(payload: Mapping[str, Any]) -> MovieDetails:
    cast, crew = _parse_credits(payload)
    return MovieDetails(
        runtime=_int_or_none(payload.get("runtime")),
        budget=_int_or_none(payload.get("budget")),
        revenue=_int_or_none(payload.get("revenue")),
        release_date=_str_or_none(payload.get("release_date")),
        genres=_parse_genres(payload),
        vote_average=_float_or_none(payload.get("vote_average")),
        original_language=_str_or_none(payload.get("original_language")),
        cast=cast,
        crew=crew,
    )


def parse_show_details(payload: Mapping[str, Any]) -> ShowDetails:
    cast, crew = _parse_credits(payload)
    # Raw TMDb payloads use number_of_*; the gateway wire format uses total_*.
    episodes = payload.get("number_of_episodes", payload.get("total_episodes"))
    seasons = payload.get("number_of_seasons", payload.get("total_seasons"))
    return ShowDetails(
        total_episodes=_int_or_none(episodes),
        total_seasons=_int_or_none(seasons),
        status=_str_or_none(payload.get("status")),
        first_air_date=_str_or_none(payload.get("first_air_date")),
        genres=_parse_genres(payload),
        vote_average=_float_or_none(payload.get("vote_average")),
        original_language=_str_or_none(payload.get("original_language")),
        cast=cast,
        crew=crew,
    )


class MetadataGateway:
    """
    In-process gateway against TMDb.

    The TMDb API key is a server-held secret; it is resolved from `TMDB_API_KEY` when not passed.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        session: requests.Session | None = None,
        image_base_url: str | None = None,
    ) -> None:
        self._api_key = api_key
        self._session = session or requests.Session()
        self._image_base_url = image_base_url

    def _resolve_api_key(self) -> str:
        api_key = resolve_api_key(self._api_key)
        if api_key is None:
            raise UpstreamError(MISSING_API_KEY_MESSAGE)
        return api_key

    def search(self, query: str) -> list[SearchResult]:
        if not isinstance(query, str) or not query.strip():
            raise ValidationError("Query parameter is required")
        api_key = self._resolve_api_key()
        try:
            raw_results = search_multi(query, api_key=api_key, session=self._session)
        except TmdbClientError as exc:
            logger.warning(f"TMDb search failed for {query!r}: {exc}")
            raise UpstreamError(
                "Failed to search TMDB",
                status_code=exc.status_code,
                body_snippet=exc.body_snippet,
            ) from exc

        results: list[SearchResult] = []
        for item in raw_results:
            normalized = normalize_search_item(item, image_base_url=self._image_base_url)
            if normalized is not None:
                results.append(normalized)
        return results

    def fetch_details(self, external_id: int, media_kind: MediaKind | str) -> DetailRecord:
        try:
            kind = MediaKind.parse(media_kind)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        api_key = self._resolve_api_key()
        try:
            if kind is MediaKind.SHOW:
                payload = fetch_tv_details(external_id, api_key=api_key, session=self._session)
                return parse_show_details(payload)
            payload = fetch_movie_details(external_id, api_key=api_key, session=self._session)
            return parse_movie_details(payload)
        except TmdbClientError as exc:
            label = "TV show" if kind is MediaKind.SHOW else "movie"
            logger.warning(f"TMDb {label} details failed for id={external_id}: {exc}")
            raise UpstreamError(
                f"Failed to fetch {label} details",
                status_code=exc.status_code,
                body_snippet=exc.body_snippet,
            ) from exc


# --- Wire format of the /search-media surface ---


def search_result_to_payload(result: SearchResult) -> dict[str, Any]:
    return {
        "id": result.external_id,
        "title": result.title,
        "media_type": result.media_kind.value,
        "year": result.year,
        "poster_path": result.poster_url,
        "overview": result.overview,
    }


def search_result_from_payload(payload: Mapping[str, Any]) -> SearchResult:
    external_id = _int_or_none(payload.get("id"))
    title = _str_or_none(payload.get("title"))
    if external_id is None or title is None:
        raise ValueError(f"Search result payload is missing id/title: {dict(payload)!r}")
    return SearchResult(
        external_id=external_id,
        title=title,
        media_kind=MediaKind.parse(payload.get("media_type")),
        year=_int_or_none(payload.get("year")),
        poster_url=_str_or_none(payload.get("poster_path")),
        overview=_str_or_none(payload.get("overview")),
    )


def _credits_payload(details: DetailRecord) -> dict[str, Any]:
    return {
        "cast": [{"name": c.name, "character": c.character} for c in details.cast],
        "crew": [{"name": c.name, "job": c.job} for c in details.crew],
    }


def detail_record_to_payload(details: DetailRecord) -> dict[str, Any]:
    shared = {
        "genres": [{"name": name} for name in details.genres],
        "vote_average": details.vote_average,
        "original_language": details.original_language,
        "credits": _credits_payload(details),
    }
    if isinstance(details, ShowDetails):
        return {
            "media_type": MediaKind.SHOW.value,
            "total_episodes": details.total_episodes,
            "total_seasons": details.total_seasons,
            "status": details.status,
            "first_air_date": details.first_air_date,
            **shared,
        }
    if isinstance(details, MovieDetails):
        return {
            "media_type": MediaKind.MOVIE.value,
            "runtime": details.runtime,
            "budget": details.budget,
            "revenue": details.revenue,
            "release_date": details.release_date,
            **shared,
        }
    raise TypeError(f"Unsupported detail record: {type(details).__name__}")


def detail_record_from_payload(payload: Mapping[str, Any], media_kind: MediaKind | str) -> DetailRecord:
    kind = MediaKind.parse(payload.get("media_type") or media_kind)
    if kind is MediaKind.SHOW:
        return parse_show_details(payload)
    return parse_movie_details(payload)
