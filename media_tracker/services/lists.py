"""
List Mutation Service.

Add, remove and move-to-watched over the two collections for one owner.
The owner always comes from the authenticated session; any `user_id` on an
incoming record is overwritten.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from supabase import Client

from media_tracker.errors import DuplicateError, NotFoundError, PartialMoveError, StorageError
from media_tracker.ingestion.enrichment import resolve_media_record
from media_tracker.metadata.gateway import MetadataSource
from media_tracker.models.media import Collection, MediaRecord, SearchResult
from media_tracker.repositories.media_items import (
    delete_media_record,
    fetch_media_record,
    insert_media_record,
    list_media_records,
    now_utc_iso,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AddResult:
    record: MediaRecord
    enriched: bool
    enrichment_error: str | None = None


@dataclass(frozen=True)
class ListStats:
    total_watched: int
    episodes_watched: int
    watchlist_count: int


class ListMutationService:
    def __init__(self, db: Client, owner_id: str) -> None:
        if not owner_id:
            raise ValueError("owner_id is required.")
        self.db = db
        self.owner_id = str(owner_id)

    def add(self, record: MediaRecord, collection: Collection) -> MediaRecord:
        """Insert `record` owned by the current owner. Raises DuplicateError / StorageError."""

        owned = replace(record, user_id=self.owner_id, id=None, created_at=None)
        if collection is Collection.WATCHLIST:
            owned = replace(owned, watched_at=None)
        return insert_media_record(self.db, owned, collection)

    def add_from_search(self, stub: SearchResult, collection: Collection, *, source: MetadataSource) -> AddResult:
        """Enrich `stub` (best-effort) and insert it. Only the insert can fail."""

        enrichment = resolve_media_record(stub, owner_id=self.owner_id, source=source)
        stored = self.add(enrichment.record, collection)
        return AddResult(record=stored, enriched=enrichment.enriched, enrichment_error=enrichment.error)

    def remove(self, item_id: str, collection: Collection) -> None:
        delete_media_record(self.db, item_id, collection, user_id=self.owner_id)

    def get(self, item_id: str, collection: Collection) -> MediaRecord | None:
        return fetch_media_record(self.db, item_id, collection, user_id=self.owner_id)

    def list_items(self, collection: Collection) -> list[MediaRecord]:
        return list_media_records(self.db, collection, user_id=self.owner_id)

    def load_lists(self) -> dict[Collection, list[MediaRecord]]:
        return {collection: self.list_items(collection) for collection in Collection}

    def stats(self) -> ListStats:
        watched = self.list_items(Collection.WATCHED)
        watchlist = self.list_items(Collection.WATCHLIST)
        return ListStats(
            total_watched=len(watched),
            episodes_watched=sum(item.total_episodes or 0 for item in watched),
            watchlist_count=len(watchlist),
        )

    def move_to_watched(self, record: MediaRecord) -> MediaRecord:
        """
        Delete `record` from the watchlist, then insert it into watched stamped with the current time.

        The two steps are not atomic. If the insert fails after the delete, PartialMoveError carries the
        record so the caller can offer to re-add it. A duplicate on insert means the title is already in
        watched, so DuplicateError is raised instead.
        """

        if not record.id:
            raise ValueError("move_to_watched requires a stored watchlist record (missing id).")

        self.remove(record.id, Collection.WATCHLIST)

        watched = replace(record, watched_at=now_utc_iso())
        try:
            return self.add(watched, Collection.WATCHED)
        except DuplicateError:
            raise
        except StorageError as exc:
            logger.error(
                f"Removed {record.title!r} (tmdb {record.tmdb_id}) from watchlist but insert into watched failed: {exc}"
            )
            raise PartialMoveError(
                f"Move to watched failed after delete for {record.title!r}: {exc}",
                record=record,
            ) from exc

    def move_to_watched_by_id(self, item_id: str) -> MediaRecord:
        record = self.get(item_id, Collection.WATCHLIST)
        if record is None:
            raise NotFoundError(f"Watchlist item {item_id} not found.")
        return self.move_to_watched(record)
