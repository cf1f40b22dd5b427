"""
Metadata gateway HTTP surface.

`GET /search-media?query=...` searches movies and TV shows;
`GET /search-media?id=...&type=movie|tv` returns details for one title.

Callers present the basic client credential as a bearer token; it is checked at
the hosting edge, not here, and no per-user authorization happens in this router.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from api.deps import MetadataGatewayDep
from media_tracker.errors import UpstreamError, ValidationError
from media_tracker.metadata.gateway import detail_record_to_payload, search_result_to_payload
from media_tracker.models.media import MediaKind

logger = logging.getLogger(__name__)

router = APIRouter(tags=["search-media"])


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _parse_id(raw: str) -> int | None:
    try:
        value = int(raw.strip())
    except ValueError:
        return None
    return value if value > 0 else None


@router.get("/search-media")
def search_media(
    gateway: MetadataGatewayDep,
    query: str | None = Query(default=None),
    id: str | None = Query(default=None),
    type: str | None = Query(default=None),
) -> JSONResponse:
    """Search TMDb, or fetch details for one title when both `id` and `type` are given."""
    if id is not None and type:
        try:
            kind = MediaKind.parse(type)
        except ValueError as exc:
            return _error(400, str(exc))
        external_id = _parse_id(id)
        if external_id is None:
            return _error(400, f"Invalid id: {id!r}")
        try:
            details = gateway.fetch_details(external_id, kind)
        except UpstreamError as exc:
            logger.error(f"Details lookup failed for {kind.value} {external_id}: {exc}")
            return _error(500, str(exc))
        return JSONResponse(content=detail_record_to_payload(details))

    if query is None or not query.strip():
        return _error(400, "Query parameter is required")

    try:
        results = gateway.search(query)
    except ValidationError as exc:
        return _error(400, str(exc))
    except UpstreamError as exc:
        logger.error(f"Search failed for {query!r}: {exc}")
        return _error(500, str(exc))
    return JSONResponse(content={"results": [search_result_to_payload(r) for r in results]})
