from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import UTC, datetime
from typing import Any, Mapping

from supabase import Client

from media_tracker.errors import DuplicateError, StorageError
from media_tracker.models.media import Collection, MediaKind, MediaRecord

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION_CODE = "23505"

# Server-assigned columns are never sent on insert.
_SERVER_ASSIGNED = ("id", "created_at")


def now_utc_iso() -> str:
    return datetime.now(UTC).isoformat()


def is_unique_violation(error: Any) -> bool:
    """
    Check whether a PostgREST error (exception or `response.error`) is a unique constraint violation.
    """

    if error is None:
        return False
    if str(getattr(error, "code", "") or "") == UNIQUE_VIOLATION_CODE:
        return True
    if isinstance(error, Mapping) and str(error.get("code") or "") == UNIQUE_VIOLATION_CODE:
        return True
    message = str(error).casefold()
    return UNIQUE_VIOLATION_CODE in message or "duplicate key value violates unique constraint" in message


def _storage_error(error: Any, context: str) -> StorageError:
    if is_unique_violation(error):
        return DuplicateError(f"Duplicate row during {context}: {error}")
    return StorageError(f"Supabase error during {context}: {error}")


def _raise_for_supabase_error(response: Any, context: str) -> None:
    if hasattr(response, "error") and response.error:
        raise _storage_error(response.error, context)


def record_to_row(record: MediaRecord, collection: Collection) -> dict[str, Any]:
    row = asdict(record)
    row["media_type"] = record.media_type.value
    for key in _SERVER_ASSIGNED:
        if row.get(key) is None:
            row.pop(key, None)
    if collection is Collection.WATCHED:
        row["watched_at"] = row.get("watched_at") or now_utc_iso()
    else:
        row.pop("watched_at", None)
    return row


def row_to_record(row: Mapping[str, Any]) -> MediaRecord:
    return MediaRecord(
        id=str(row["id"]) if row.get("id") is not None else None,
        user_id=str(row.get("user_id") or ""),
        title=str(row.get("title") or ""),
        media_type=MediaKind.parse(row.get("media_type") or "movie"),
        tmdb_id=row.get("tmdb_id"),
        year=row.get("year"),
        poster_url=row.get("poster_url"),
        description=row.get("description"),
        genres=row.get("genres") or "",
        rating=row.get("rating"),
        language=row.get("language") or "",
        release_date=row.get("release_date") or "",
        director=row.get("director") or "",
        main_cast=row.get("main_cast") or "",
        tv_status=row.get("tv_status") or "",
        runtime=row.get("runtime"),
        budget=row.get("budget"),
        revenue=row.get("revenue"),
        total_episodes=row.get("total_episodes") or 0,
        total_seasons=row.get("total_seasons") or 0,
        watched_at=row.get("watched_at"),
        created_at=row.get("created_at"),
    )


def insert_media_record(db: Client, record: MediaRecord, collection: Collection) -> MediaRecord:
    """
    Insert a record into `collection`.

    Duplicate detection relies on the `(user_id, tmdb_id)` unique constraint of the table,
    so concurrent inserts of the same title cannot both succeed.
    """

    payload = record_to_row(record, collection)
    context = f"inserting into {collection.table}"
    try:
        response = db.table(collection.table).insert(payload).execute()
    except Exception as exc:
        error = _storage_error(exc, context)
        if isinstance(error, DuplicateError):
            logger.info(f"{record.title!r} (tmdb {record.tmdb_id}) already in {collection.table} for this user")
        else:
            logger.error(str(error))
        raise error from exc

    _raise_for_supabase_error(response, context)
    data = response.data or []
    if isinstance(data, list) and data:
        return row_to_record(data[0])
    raise StorageError(f"Supabase insert returned no data for {collection.table}.")


def delete_media_record(db: Client, item_id: str, collection: Collection, *, user_id: str | None = None) -> None:
    """Delete by id. Deleting an id that does not exist is not an error."""

    context = f"deleting from {collection.table}"
    query = db.table(collection.table).delete().eq("id", str(item_id))
    if user_id:
        query = query.eq("user_id", str(user_id))
    try:
        response = query.execute()
    except Exception as exc:
        logger.error(f"Supabase error during {context}: {exc}")
        raise StorageError(f"Supabase error during {context}: {exc}") from exc
    _raise_for_supabase_error(response, context)


def fetch_media_record(
    db: Client, item_id: str, collection: Collection, *, user_id: str | None = None
) -> MediaRecord | None:
    context = f"fetching from {collection.table}"
    query = db.table(collection.table).select("*").eq("id", str(item_id))
    if user_id:
        query = query.eq("user_id", str(user_id))
    try:
        response = query.limit(1).execute()
    except Exception as exc:
        raise StorageError(f"Supabase error during {context}: {exc}") from exc
    _raise_for_supabase_error(response, context)
    data = response.data or []
    if isinstance(data, list) and data:
        return row_to_record(data[0])
    return None


def list_media_records(db: Client, collection: Collection, *, user_id: str | None = None) -> list[MediaRecord]:
    """
    All records of `collection`, newest first (`watched_at` for watched, `created_at` for watchlist).

    With a user-scoped client RLS already limits rows to the owner; `user_id` narrows admin clients.
    """

    context = f"listing {collection.table}"
    query = db.table(collection.table).select("*")
    if user_id:
        query = query.eq("user_id", str(user_id))
    try:
        response = query.order(collection.order_column, desc=True).execute()
    except Exception as exc:
        raise StorageError(f"Supabase error during {context}: {exc}") from exc
    _raise_for_supabase_error(response, context)
    data = response.data or []
    if not isinstance(data, list):
        return []
    return [row_to_record(row) for row in data]
