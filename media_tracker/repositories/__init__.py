"""
Repository layer for DB access patterns.
"""

from media_tracker.repositories.media_items import (
    delete_media_record,
    fetch_media_record,
    insert_media_record,
    list_media_records,
)

__all__ = [
    "delete_media_record",
    "fetch_media_record",
    "insert_media_record",
    "list_media_records",
]
