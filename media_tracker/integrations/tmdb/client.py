"""
Thin TMDb v3 client for multi-search and title details.

Every call is a single HTTP attempt with the transport's default timeout;
callers decide what a failure means for them.
"""

from __future__ import annotations

from typing import Any, Iterable

import requests

from media_tracker.utils.env import env_str

TMDB_API_BASE_URL = "https://api.themoviedb.org/3"

DEFAULT_APPEND = ("credits",)
_SNIPPET_CHARS = 400
_HEADERS = {
    "accept": "application/json",
    "user-agent": "media-tracker/0.1",
}


class TmdbClientError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None, body_snippet: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body_snippet = body_snippet


def resolve_api_key(api_key: str | None = None) -> str | None:
    """Explicit key first, then `TMDB_API_KEY`. None when neither is usable."""

    explicit = (api_key or "").strip()
    return explicit or env_str("TMDB_API_KEY")


def _auth_params(api_key: str | None, **extra: Any) -> dict[str, Any]:
    key = resolve_api_key(api_key)
    if key is None:
        raise RuntimeError("TMDB_API_KEY is not set.")
    return {"api_key": key, **extra}


def _snippet(resp: requests.Response) -> str:
    return (resp.text or "")[:_SNIPPET_CHARS]


def _get_object(session: requests.Session, path: str, params: dict[str, Any]) -> dict[str, Any]:
    try:
        resp = session.get(f"{TMDB_API_BASE_URL}{path}", params=params, headers=_HEADERS, timeout=None)
    except requests.RequestException as exc:
        raise TmdbClientError(f"TMDb request failed: {exc}") from exc

    if resp.status_code != 200:
        raise TmdbClientError(
            f"TMDb request failed with HTTP {resp.status_code}.",
            status_code=resp.status_code,
            body_snippet=_snippet(resp),
        )
    try:
        body = resp.json()
    except ValueError as exc:
        raise TmdbClientError(
            f"TMDb returned non-JSON response for {path}.",
            status_code=resp.status_code,
            body_snippet=_snippet(resp),
        ) from exc
    if not isinstance(body, dict):
        raise TmdbClientError(f"TMDb returned a {type(body).__name__} for {path}, expected an object.")
    return body


def search_multi(
    query: str,
    *,
    api_key: str | None = None,
    session: requests.Session | None = None,
) -> list[dict[str, Any]]:
    """
    First page of `/search/multi` as raw dicts.

    People are mixed in with movies and TV shows; callers filter on `media_type`.
    """

    params = _auth_params(api_key, query=query)
    body = _get_object(session or requests.Session(), "/search/multi", params)
    results = body.get("results")
    if not isinstance(results, list):
        return []
    return [item for item in results if isinstance(item, dict)]


def _fetch_title(
    segment: str,
    title_id: int,
    *,
    api_key: str | None,
    session: requests.Session | None,
    append_to_response: Iterable[str] | None,
) -> dict[str, Any]:
    params = _auth_params(api_key)
    append = DEFAULT_APPEND if append_to_response is None else tuple(append_to_response)
    if append:
        params["append_to_response"] = ",".join(append)
    return _get_object(session or requests.Session(), f"/{segment}/{int(title_id)}", params)


def fetch_movie_details(
    movie_id: int,
    *,
    api_key: str | None = None,
    session: requests.Session | None = None,
    append_to_response: Iterable[str] | None = None,
) -> dict[str, Any]:
    return _fetch_title(
        "movie", movie_id, api_key=api_key, session=session, append_to_response=append_to_response
    )


def fetch_tv_details(
    tv_id: int,
    *,
    api_key: str | None = None,
    session: requests.Session | None = None,
    append_to_response: Iterable[str] | None = None,
) -> dict[str, Any]:
    return _fetch_title("tv", tv_id, api_key=api_key, session=session, append_to_response=append_to_response)
