"""
TMDb integration clients.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from media_tracker.integrations.tmdb.client import (
        TmdbClientError,
        fetch_movie_details,
        fetch_tv_details,
        resolve_api_key,
        search_multi,
    )

__all__ = [
    "TmdbClientError",
    "fetch_movie_details",
    "fetch_tv_details",
    "resolve_api_key",
    "search_multi",
]


def __getattr__(name: str):
    if name in __all__:
        from media_tracker.integrations.tmdb import client

        return getattr(client, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
