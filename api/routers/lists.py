"""
Watched / watchlist endpoints.

All endpoints require authentication. Records are always owned by the
authenticated user; request bodies never carry an owner.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field

from api.auth import CurrentOwner
from api.deps import MetadataGatewayDep, get_user_db, raise_http_error
from media_tracker.errors import MediaTrackerError
from media_tracker.models.media import Collection, MediaKind, MediaRecord, SearchResult
from media_tracker.services.lists import ListMutationService
from media_tracker.session import add_search_results

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/lists", tags=["lists"])


def get_list_service(owner: CurrentOwner) -> ListMutationService:
    return ListMutationService(get_user_db(owner.token), owner.id)


ListService = Annotated[ListMutationService, Depends(get_list_service)]


# --- Pydantic models ---


class SearchResultIn(BaseModel):
    """Search stub as returned by `/search-media`. No owner field is accepted."""

    id: int = Field(ge=1)
    title: str = Field(min_length=1)
    media_type: MediaKind
    year: int | None = None
    poster_path: str | None = None
    overview: str | None = None

    def to_search_result(self) -> SearchResult:
        return SearchResult(
            external_id=self.id,
            title=self.title,
            media_kind=self.media_type,
            year=self.year,
            poster_url=self.poster_path,
            overview=self.overview,
        )


class BatchAddRequest(BaseModel):
    items: list[SearchResultIn]


class MediaItem(BaseModel):
    id: str | None
    user_id: str
    title: str
    media_type: MediaKind
    tmdb_id: int | None = None
    year: int | None = None
    poster_url: str | None = None
    description: str | None = None
    genres: str = ""
    rating: float | None = None
    language: str = ""
    release_date: str = ""
    director: str = ""
    main_cast: str = ""
    tv_status: str = ""
    runtime: int | None = None
    budget: int | None = None
    revenue: int | None = None
    total_episodes: int = 0
    total_seasons: int = 0
    watched_at: str | None = None
    created_at: str | None = None


class AddItemResponse(BaseModel):
    item: MediaItem
    enriched: bool
    enrichment_error: str | None = None


class ItemOutcomeOut(BaseModel):
    external_id: int
    title: str
    status: str
    enriched: bool
    message: str | None = None
    record_id: str | None = None


class BatchAddResponse(BaseModel):
    attempted: int
    succeeded: int
    message: str
    results: list[ItemOutcomeOut]


class ListStatsOut(BaseModel):
    total_watched: int
    episodes_watched: int
    watchlist_count: int


def _item(record: MediaRecord) -> dict:
    return asdict(record)


# --- Endpoints ---


@router.get("/stats", response_model=ListStatsOut)
def get_stats(lists: ListService) -> dict:
    """Dashboard counters for the current user."""
    try:
        return asdict(lists.stats())
    except MediaTrackerError as exc:
        raise_http_error(exc, "loading stats")


@router.get("/{collection}", response_model=list[MediaItem])
def list_items(collection: Collection, lists: ListService) -> list[dict]:
    """List the current user's items, newest first."""
    try:
        return [_item(record) for record in lists.list_items(collection)]
    except MediaTrackerError as exc:
        raise_http_error(exc, f"listing {collection.value}")


@router.post("/{collection}", response_model=AddItemResponse, status_code=201)
def add_item(
    collection: Collection,
    payload: SearchResultIn,
    lists: ListService,
    gateway: MetadataGatewayDep,
) -> dict:
    """
    Enrich a search result with full details and add it to the collection.

    A failed detail lookup still stores the title with its search fields (`enriched: false`).
    Returns 409 when the title is already in the collection.
    """
    try:
        added = lists.add_from_search(payload.to_search_result(), collection, source=gateway)
    except MediaTrackerError as exc:
        raise_http_error(exc, f"adding to {collection.value}")
    return {
        "item": _item(added.record),
        "enriched": added.enriched,
        "enrichment_error": added.enrichment_error,
    }


@router.post("/{collection}/batch", response_model=BatchAddResponse)
def add_items_batch(
    collection: Collection,
    payload: BatchAddRequest,
    lists: ListService,
    gateway: MetadataGatewayDep,
) -> dict:
    """
    Add several search results, strictly one after another.

    Per-item failures do not abort the batch; each item's outcome is reported.
    """
    results = [item.to_search_result() for item in payload.items]
    report = add_search_results(lists, results, collection, source=gateway)
    return {
        "attempted": report.attempted,
        "succeeded": report.succeeded,
        "message": report.summary(),
        "results": [asdict(outcome) for outcome in report.outcomes],
    }


@router.delete("/{collection}/{item_id}", status_code=204)
def remove_item(collection: Collection, item_id: str, lists: ListService) -> Response:
    """Remove an item. Removing an item that does not exist is not an error."""
    try:
        lists.remove(item_id, collection)
    except MediaTrackerError as exc:
        raise_http_error(exc, f"removing from {collection.value}")
    return Response(status_code=204)


@router.post("/watchlist/{item_id}/move-to-watched", response_model=MediaItem)
def move_to_watched(item_id: str, lists: ListService) -> dict:
    """
    Move a watchlist item to watched.

    Not atomic: when the insert fails after the watchlist delete, a 500 with a distinct
    message tells the user the title has to be added again.
    """
    try:
        return _item(lists.move_to_watched_by_id(item_id))
    except MediaTrackerError as exc:
        raise_http_error(exc, "moving to watched")
