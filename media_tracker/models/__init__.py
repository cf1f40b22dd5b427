"""
Domain models shared across the API, scripts and services.
"""

from media_tracker.models.media import (
    CastMember,
    Collection,
    CrewMember,
    DetailRecord,
    MediaKind,
    MediaRecord,
    MovieDetails,
    SearchResult,
    ShowDetails,
)

__all__ = [
    "CastMember",
    "Collection",
    "CrewMember",
    "DetailRecord",
    "MediaKind",
    "MediaRecord",
    "MovieDetails",
    "SearchResult",
    "ShowDetails",
]
