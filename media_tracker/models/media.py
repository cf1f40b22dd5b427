from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class MediaKind(str, Enum):
    """Title kind, valued with the TMDb `media_type` string."""

    MOVIE = "movie"
    SHOW = "tv"

    @classmethod
    def parse(cls, value: str | MediaKind) -> MediaKind:
        if isinstance(value, MediaKind):
            return value
        raw = str(value or "").strip().casefold()
        if raw in {"tv", "show"}:
            return cls.SHOW
        if raw == "movie":
            return cls.MOVIE
        raise ValueError(f"Unsupported media kind: {value!r}")


class Collection(str, Enum):
    WATCHED = "watched"
    WATCHLIST = "watchlist"

    @property
    def table(self) -> str:
        return f"{self.value}_items"

    @property
    def order_column(self) -> str:
        return "watched_at" if self is Collection.WATCHED else "created_at"


@dataclass(frozen=True)
class SearchResult:
    """
    Search stub as returned by the gateway's free-text search.

    `poster_url` is already absolute; `year` is None when the provider has
    neither a release date nor a first-air date.
    """

    external_id: int
    title: str
    media_kind: MediaKind
    year: int | None = None
    poster_url: str | None = None
    overview: str | None = None


@dataclass(frozen=True)
class CastMember:
    name: str
    character: str | None = None


@dataclass(frozen=True)
class CrewMember:
    name: str
    job: str | None = None


@dataclass(frozen=True)
class MovieDetails:
    runtime: int | None = None
    budget: int | None = None
    revenue: int | None = None
    release_date: str | None = None
    genres: tuple[str, ...] = ()
    vote_average: float | None = None
    original_language: str | None = None
    cast: tuple[CastMember, ...] = ()
    crew: tuple[CrewMember, ...] = ()

    kind = MediaKind.MOVIE


@dataclass(frozen=True)
class ShowDetails:
    total_episodes: int | None = None
    total_seasons: int | None = None
    status: str | None = None
    first_air_date: str | None = None
    genres: tuple[str, ...] = ()
    vote_average: float | None = None
    original_language: str | None = None
    cast: tuple[CastMember, ...] = ()
    crew: tuple[CrewMember, ...] = ()

    kind = MediaKind.SHOW


DetailRecord = Union[MovieDetails, ShowDetails]


@dataclass(frozen=True)
class MediaRecord:
    """
    Persistence-ready row for `watched_items` / `watchlist_items`.

    `id` is assigned by the database on insert; `watched_at` is only set on
    rows of the watched collection.
    """

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
    id: str | None = None
    watched_at: str | None = None
    created_at: str | None = None
