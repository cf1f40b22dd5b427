"""
Error taxonomy for search, enrichment and list mutations.

Every error carries a `user_message` that is safe to show to an end user;
internal details stay in the exception message and the logs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from media_tracker.models.media import MediaRecord


class MediaTrackerError(RuntimeError):
    user_message = "Something went wrong. Please try again."


class ValidationError(MediaTrackerError):
    user_message = "Please check your input and try again."

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.user_message = message


class UpstreamError(MediaTrackerError):
    user_message = "Failed to search. Please try again."

    def __init__(self, message: str, *, status_code: int | None = None, body_snippet: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body_snippet = body_snippet


class StorageError(MediaTrackerError):
    user_message = "Failed to add media. Please try again."


class DuplicateError(StorageError):
    user_message = "This item is already in your list"


class NotFoundError(StorageError):
    user_message = "Item not found"


class PartialMoveError(StorageError):
    user_message = (
        "The title was removed from your watchlist but could not be added to watched. "
        "Please add it again."
    )

    def __init__(self, message: str, *, record: MediaRecord) -> None:
        super().__init__(message)
        self.record = record


def user_message(exc: BaseException) -> str:
    if isinstance(exc, MediaTrackerError):
        return exc.user_message
    return MediaTrackerError.user_message
