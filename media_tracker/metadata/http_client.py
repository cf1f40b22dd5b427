"""
Client for the `/search-media` HTTP surface.

Authenticates with the basic client credential (the Supabase anon key) as a
bearer token, not with an end-user session.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

import requests

from media_tracker.errors import UpstreamError, ValidationError
from media_tracker.metadata.gateway import detail_record_from_payload, search_result_from_payload
from media_tracker.models.media import DetailRecord, MediaKind, SearchResult
from media_tracker.utils.env import env_str

logger = logging.getLogger(__name__)


def get_gateway_base_url() -> str:
    explicit = env_str("MEDIA_GATEWAY_URL")
    if explicit:
        return explicit.rstrip("/")
    supabase_url = env_str("SUPABASE_URL")
    if not supabase_url:
        raise RuntimeError("MEDIA_GATEWAY_URL or SUPABASE_URL environment variable must be set")
    return f"{supabase_url.rstrip('/')}/functions/v1"


class SearchMediaClient:
    def __init__(
        self,
        *,
        base_url: str | None = None,
        client_key: str | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = (base_url or get_gateway_base_url()).rstrip("/")
        self._client_key = client_key or env_str("SUPABASE_ANON_KEY") or ""
        if not self._client_key:
            raise RuntimeError("SUPABASE_ANON_KEY environment variable is not set")
        self._session = session or requests.Session()

    def _get(self, params: Mapping[str, Any]) -> dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {self._client_key}",
            "Content-Type": "application/json",
        }
        try:
            resp = self._session.get(f"{self._base_url}/search-media", params=params, headers=headers)
        except requests.RequestException as exc:
            raise UpstreamError(f"search-media request failed: {exc}") from exc

        if resp.status_code == 400:
            raise ValidationError(_error_message(resp) or "Query parameter is required")
        if resp.status_code != 200:
            raise UpstreamError(
                _error_message(resp) or f"search-media failed with HTTP {resp.status_code}",
                status_code=resp.status_code,
                body_snippet=(resp.text or "")[:400],
            )
        try:
            payload = resp.json()
        except ValueError as exc:
            raise UpstreamError("search-media returned non-JSON response.", status_code=resp.status_code) from exc
        if not isinstance(payload, dict):
            raise UpstreamError("search-media returned unexpected JSON shape (not an object).")
        return payload

    def search(self, query: str) -> list[SearchResult]:
        if not isinstance(query, str) or not query.strip():
            raise ValidationError("Query parameter is required")
        payload = self._get({"query": query})
        results = []
        for item in payload.get("results") or []:
            try:
                results.append(search_result_from_payload(item))
            except ValueError as exc:
                logger.warning(f"Skipping malformed search result: {exc}")
        return results

    def fetch_details(self, external_id: int, media_kind: MediaKind | str) -> DetailRecord:
        kind = MediaKind.parse(media_kind)
        payload = self._get({"id": int(external_id), "type": kind.value})
        return detail_record_from_payload(payload, kind)


def _error_message(resp: requests.Response) -> str | None:
    try:
        body = resp.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        message = body.get("error") or body.get("detail")
        if isinstance(message, str):
            return message
    return None
