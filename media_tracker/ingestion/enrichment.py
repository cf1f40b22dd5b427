"""
Enrichment Resolver.

Folds a `SearchResult` stub and its TMDb details into one flat `MediaRecord`.
Enrichment is best-effort: when the detail lookup fails the record is still
built from the stub alone, with every enrichment field at its default.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Iterable

from media_tracker.errors import MediaTrackerError
from media_tracker.metadata.gateway import MetadataSource
from media_tracker.models.media import (
    CastMember,
    CrewMember,
    DetailRecord,
    MediaRecord,
    MovieDetails,
    SearchResult,
    ShowDetails,
)

logger = logging.getLogger(__name__)

MAIN_CAST_LIMIT = 5
DIRECTOR_LIMIT = 2
LIST_SEPARATOR = ", "


@dataclass(frozen=True)
class EnrichmentResult:
    record: MediaRecord
    enriched: bool
    error: str | None = None


def _join_names(names: Iterable[str], limit: int) -> str:
    picked = []
    for name in names:
        if len(picked) >= limit:
            break
        picked.append(name)
    return LIST_SEPARATOR.join(picked)


def main_cast(cast: Iterable[CastMember]) -> str:
    return _join_names((member.name for member in cast), MAIN_CAST_LIMIT)


def directors(crew: Iterable[CrewMember]) -> str:
    return _join_names((member.name for member in crew if member.job == "Director"), DIRECTOR_LIMIT)


def build_media_record(stub: SearchResult, details: DetailRecord | None, *, owner_id: str) -> MediaRecord:
    """
    Build the persistence-ready record for `owner_id`.

    `details=None` yields a stub-only record. TMDb reports unknown numbers as 0,
    so zero runtime/budget/revenue/rating are stored as None.
    """

    if not owner_id:
        raise ValueError("owner_id is required to build a media record.")

    base = MediaRecord(
        user_id=str(owner_id),
        title=stub.title,
        media_type=stub.media_kind,
        tmdb_id=stub.external_id,
        year=stub.year,
        poster_url=stub.poster_url,
        description=stub.overview,
    )
    if details is None:
        return base

    shared = {
        "genres": LIST_SEPARATOR.join(details.genres),
        "rating": details.vote_average or None,
        "language": (details.original_language or "").upper(),
        "director": directors(details.crew),
        "main_cast": main_cast(details.cast),
    }

    if isinstance(details, ShowDetails):
        return replace(
            base,
            total_episodes=details.total_episodes or 0,
            total_seasons=details.total_seasons or 0,
            tv_status=details.status or "",
            release_date=details.first_air_date or "",
            **shared,
        )
    if isinstance(details, MovieDetails):
        return replace(
            base,
            runtime=details.runtime or None,
            budget=details.budget or None,
            revenue=details.revenue or None,
            release_date=details.release_date or "",
            **shared,
        )
    raise TypeError(f"Unsupported detail record: {type(details).__name__}")


def resolve_media_record(stub: SearchResult, *, owner_id: str, source: MetadataSource) -> EnrichmentResult:
    try:
        details = source.fetch_details(stub.external_id, stub.media_kind)
    except MediaTrackerError as exc:
        logger.warning(
            f"Details lookup failed for {stub.media_kind.value} {stub.external_id} ({stub.title!r}); "
            f"storing search fields only: {exc}"
        )
        return EnrichmentResult(record=build_media_record(stub, None, owner_id=owner_id), enriched=False, error=str(exc))

    if details.kind is not stub.media_kind:
        logger.warning(
            f"Details kind {details.kind.value} does not match stub kind {stub.media_kind.value} "
            f"for id={stub.external_id}; storing search fields only."
        )
        return EnrichmentResult(
            record=build_media_record(stub, None, owner_id=owner_id),
            enriched=False,
            error="Details kind mismatch",
        )
    return EnrichmentResult(record=build_media_record(stub, details, owner_id=owner_id), enriched=True)
