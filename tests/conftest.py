"""
Shared fakes for tests that run without Supabase or TMDb.

`FakeSupabase` keeps rows in memory and enforces the `(user_id, tmdb_id)` unique
constraint the way PostgREST reports it (error code 23505).
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from itertools import count
from typing import Any
from uuid import uuid4

import pytest

from media_tracker.errors import UpstreamError
from media_tracker.models.media import (
    CastMember,
    CrewMember,
    MediaKind,
    MovieDetails,
    SearchResult,
    ShowDetails,
)

OWNER_ID = "11111111-1111-1111-1111-111111111111"
OTHER_OWNER_ID = "22222222-2222-2222-2222-222222222222"

_EPOCH = datetime(2025, 1, 1, tzinfo=timezone.utc)


class FakeAPIError(Exception):
    """Simulates postgrest.exceptions.APIError."""

    def __init__(self, message: str, code: str) -> None:
        super().__init__(message)
        self.code = code


class _FakeResponse:
    def __init__(self, data: Any = None, error: Any = None) -> None:
        self.data = data
        self.error = error


class _FakeQuery:
    def __init__(self, db: FakeSupabase, table: str) -> None:
        self._db = db
        self._table = table
        self._op: str | None = None
        self._payload: dict[str, Any] | None = None
        self._filters: list[tuple[str, Any]] = []
        self._order: tuple[str, bool] | None = None
        self._limit: int | None = None

    def select(self, *_args: Any, **_kwargs: Any) -> _FakeQuery:
        self._op = self._op or "select"
        return self

    def insert(self, payload: dict[str, Any]) -> _FakeQuery:
        self._op = "insert"
        self._payload = dict(payload)
        return self

    def delete(self) -> _FakeQuery:
        self._op = "delete"
        return self

    def eq(self, column: str, value: Any) -> _FakeQuery:
        self._filters.append((column, value))
        return self

    def order(self, column: str, desc: bool = False) -> _FakeQuery:
        self._order = (column, desc)
        return self

    def limit(self, n: int) -> _FakeQuery:
        self._limit = n
        return self

    def _matches(self, row: dict[str, Any]) -> bool:
        return all(str(row.get(column)) == str(value) for column, value in self._filters)

    def execute(self) -> _FakeResponse:
        self._db.calls.append((self._table, self._op))
        failure = self._db.fail_on.get((self._table, self._op))
        if failure is not None:
            raise failure

        rows = self._db.tables.setdefault(self._table, [])
        if self._op == "insert":
            row = dict(self._payload or {})
            for existing in rows:
                if (
                    row.get("tmdb_id") is not None
                    and existing.get("user_id") == row.get("user_id")
                    and existing.get("tmdb_id") == row.get("tmdb_id")
                ):
                    raise FakeAPIError(
                        f'duplicate key value violates unique constraint "{self._table}_user_tmdb_unique"',
                        "23505",
                    )
            row.setdefault("id", str(uuid4()))
            row.setdefault("created_at", self._db.next_timestamp())
            rows.append(row)
            return _FakeResponse([dict(row)])

        matched = [row for row in rows if self._matches(row)]
        if self._op == "delete":
            self._db.tables[self._table] = [row for row in rows if not self._matches(row)]
            return _FakeResponse([dict(row) for row in matched])

        if self._order is not None:
            column, desc = self._order
            matched.sort(key=lambda row: str(row.get(column) or ""), reverse=desc)
        if self._limit is not None:
            matched = matched[: self._limit]
        return _FakeResponse([dict(row) for row in matched])


class FakeSupabase:
    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.fail_on: dict[tuple[str, str], Exception] = {}
        self.calls: list[tuple[str, str | None]] = []
        self._clock = count(1)

    def next_timestamp(self) -> str:
        return (_EPOCH + timedelta(seconds=next(self._clock))).isoformat()

    def table(self, name: str) -> _FakeQuery:
        return _FakeQuery(self, name)


class FakeMetadataSource:
    """In-memory stand-in for the metadata gateway."""

    def __init__(
        self,
        *,
        results: dict[str, list[SearchResult]] | None = None,
        details: dict[int, Any] | None = None,
        failing_ids: set[int] | None = None,
    ) -> None:
        self.results = results or {}
        self.details = details or {}
        self.failing_ids = failing_ids or set()
        self.search_calls: list[str] = []
        self.detail_calls: list[tuple[int, MediaKind]] = []

    def search(self, query: str) -> list[SearchResult]:
        self.search_calls.append(query)
        return list(self.results.get(query, []))

    def fetch_details(self, external_id: int, media_kind: MediaKind) -> Any:
        self.detail_calls.append((external_id, media_kind))
        if external_id in self.failing_ids or external_id not in self.details:
            raise UpstreamError("Failed to fetch details", status_code=500)
        return self.details[external_id]


def make_movie_stub(external_id: int = 603, title: str = "The Matrix") -> SearchResult:
    return SearchResult(
        external_id=external_id,
        title=title,
        media_kind=MediaKind.MOVIE,
        year=1999,
        poster_url=f"https://image.tmdb.org/t/p/w500/{external_id}.jpg",
        overview="A hacker learns the truth about reality.",
    )


def make_show_stub(external_id: int = 1399, title: str = "Game of Thrones") -> SearchResult:
    return SearchResult(
        external_id=external_id,
        title=title,
        media_kind=MediaKind.SHOW,
        year=2011,
        poster_url=f"https://image.tmdb.org/t/p/w500/{external_id}.jpg",
        overview="Noble families fight for the Iron Throne.",
    )


def make_movie_details() -> MovieDetails:
    return MovieDetails(
        runtime=136,
        budget=63000000,
        revenue=463517383,
        release_date="1999-03-30",
        genres=("Action", "Science Fiction"),
        vote_average=8.2,
        original_language="en",
        cast=tuple(
            CastMember(name=name)
            for name in (
                "Keanu Reeves",
                "Laurence Fishburne",
                "Carrie-Anne Moss",
                "Hugo Weaving",
                "Joe Pantoliano",
                "Marcus Chong",
            )
        ),
        crew=(
            CrewMember(name="Lana Wachowski", job="Director"),
            CrewMember(name="Bill Pope", job="Director of Photography"),
            CrewMember(name="Lilly Wachowski", job="Director"),
            CrewMember(name="Joel Silver", job="Producer"),
        ),
    )


def make_show_details() -> ShowDetails:
    return ShowDetails(
        total_episodes=73,
        total_seasons=8,
        status="Ended",
        first_air_date="2011-04-17",
        genres=("Sci-Fi & Fantasy", "Drama"),
        vote_average=8.4,
        original_language="en",
        cast=(CastMember(name="Emilia Clarke"), CastMember(name="Kit Harington")),
        crew=(),
    )


@pytest.fixture
def fake_db() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def owner_id() -> str:
    return OWNER_ID


@pytest.fixture
def other_owner_id() -> str:
    return OTHER_OWNER_ID


@pytest.fixture
def movie_stub() -> SearchResult:
    return make_movie_stub()


@pytest.fixture
def show_stub() -> SearchResult:
    return make_show_stub()


@pytest.fixture
def movie_details() -> MovieDetails:
    return make_movie_details()


@pytest.fixture
def show_details() -> ShowDetails:
    return make_show_details()


@pytest.fixture
def make_source():
    return FakeMetadataSource


@pytest.fixture
def make_stub():
    """Factory for movie stubs with distinct ids."""
    return make_movie_stub


@pytest.fixture
def api_error():
    return FakeAPIError
