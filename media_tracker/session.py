"""
Batch Selection Controller.

One `SearchSession` per open search view. It owns the visible results, the
set of selected result ids and the set of ids already added, and applies
enrichment + insert per item.

Ordering rules:
- Typing restarts a short debounce delay before a search is issued.
- Every search carries a sequence number; a response is dropped when a newer
  search has been issued since (last query wins).
- Each applied result list starts a new generation; selections never carry
  over from one generation to the next.
- `add_batch` processes items strictly one after another.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from media_tracker.errors import DuplicateError, MediaTrackerError, user_message
from media_tracker.metadata.gateway import MetadataSource
from media_tracker.models.media import Collection, SearchResult
from media_tracker.services.lists import ListMutationService
from media_tracker.utils.env import env_str

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.3

STATUS_ADDED = "added"
STATUS_DUPLICATE = "duplicate"
STATUS_FAILED = "failed"


def get_debounce_seconds() -> float:
    raw = env_str("SEARCH_DEBOUNCE_SECONDS")
    if not raw:
        return DEFAULT_DEBOUNCE_SECONDS
    try:
        return max(0.0, float(raw))
    except ValueError:
        logger.warning(f"Ignoring invalid SEARCH_DEBOUNCE_SECONDS={raw!r}")
        return DEFAULT_DEBOUNCE_SECONDS


@dataclass(frozen=True)
class ItemOutcome:
    external_id: int
    title: str
    status: str
    enriched: bool = False
    message: str | None = None
    record_id: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == STATUS_ADDED


@dataclass(frozen=True)
class BatchReport:
    attempted: int
    succeeded: int
    outcomes: list[ItemOutcome] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return self.attempted - self.succeeded

    def summary(self) -> str:
        return f"Added {self.succeeded} of {self.attempted} items"


class SearchSession:
    def __init__(
        self,
        source: MetadataSource,
        lists: ListMutationService,
        collection: Collection,
        *,
        debounce_seconds: float | None = None,
    ) -> None:
        self.source = source
        self.lists = lists
        self.collection = collection
        self.debounce_seconds = get_debounce_seconds() if debounce_seconds is None else debounce_seconds

        self.query = ""
        self.results: list[SearchResult] = []
        self.selected: set[int] = set()
        self.added: set[int] = set()
        self.error: str | None = None
        self.generation = 0
        self.loading = False

        self._seq = 0
        self._pending: asyncio.Task | None = None
        self._closed = False

    # --- search ---

    def on_query_changed(self, query: str) -> None:
        """Restart the debounce delay for `query`. Must be called from a running event loop."""

        self.query = query
        self._cancel_pending()
        if not query.strip():
            # Supersede anything still in flight for the previous text.
            self._seq += 1
            self.loading = False
            return
        self._pending = asyncio.get_running_loop().create_task(self._debounced_search(query))

    async def _debounced_search(self, query: str) -> None:
        await asyncio.sleep(self.debounce_seconds)
        await self.search(query)

    async def settle(self) -> None:
        """Wait for a scheduled (debounced) search to finish, if any."""

        task = self._pending
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def search(self, query: str) -> list[SearchResult] | None:
        """
        Issue a search now. Returns the applied results, or None when the query failed
        or was superseded by a newer one.
        """

        self._seq += 1
        seq = self._seq
        self.selected.clear()
        self.loading = True
        try:
            results = await asyncio.to_thread(self.source.search, query)
        except MediaTrackerError as exc:
            if self._is_current(seq):
                self.loading = False
                self.error = user_message(exc)
                logger.warning(f"Search for {query!r} failed: {exc}")
            return None

        if not self._is_current(seq):
            # `loading` belongs to the current request, or was cleared when this one was superseded.
            logger.debug(f"Discarding stale results for {query!r} (seq {seq} < {self._seq})")
            return None

        self.loading = False
        self._apply_results(results)
        return results

    def _is_current(self, seq: int) -> bool:
        return not self._closed and seq == self._seq

    def _apply_results(self, results: list[SearchResult]) -> None:
        self.generation += 1
        self.results = list(results)
        self.selected = set()
        self.added = set()
        self.error = None

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    def close(self) -> None:
        """Stop applying results. In-flight requests still complete; their results are dropped."""

        self._closed = True
        self.loading = False
        self._cancel_pending()

    # --- selection ---

    def _result_ids(self) -> set[int]:
        return {result.external_id for result in self.results}

    def select(self, external_id: int) -> bool:
        if external_id not in self._result_ids() or external_id in self.added:
            return False
        self.selected.add(external_id)
        return True

    def deselect(self, external_id: int) -> bool:
        if external_id not in self.selected:
            return False
        self.selected.discard(external_id)
        return True

    def toggle(self, external_id: int) -> bool:
        if external_id in self.selected:
            return self.deselect(external_id)
        return self.select(external_id)

    def selected_results(self) -> list[SearchResult]:
        return [result for result in self.results if result.external_id in self.selected]

    # --- adding ---

    async def add_one(self, result: SearchResult) -> ItemOutcome:
        generation = self.generation
        outcome = await asyncio.to_thread(add_search_result, self.lists, result, self.collection, source=self.source)
        # Results may have been replaced while the insert was running.
        if outcome.ok and generation == self.generation:
            self.added.add(result.external_id)
            self.selected.discard(result.external_id)
        return outcome

    async def add_batch(self) -> BatchReport:
        """Add every selected result, one at a time; failures are counted and processing continues."""

        items = self.selected_results()
        outcomes: list[ItemOutcome] = []
        for result in items:
            outcomes.append(await self.add_one(result))
        return _report(self.collection, outcomes)


def add_search_result(
    lists: ListMutationService,
    result: SearchResult,
    collection: Collection,
    *,
    source: MetadataSource,
) -> ItemOutcome:
    try:
        added = lists.add_from_search(result, collection, source=source)
    except DuplicateError as exc:
        return ItemOutcome(result.external_id, result.title, STATUS_DUPLICATE, message=user_message(exc))
    except MediaTrackerError as exc:
        logger.warning(f"Adding {result.title!r} (tmdb {result.external_id}) failed: {exc}")
        return ItemOutcome(result.external_id, result.title, STATUS_FAILED, message=user_message(exc))
    return ItemOutcome(
        result.external_id,
        result.title,
        STATUS_ADDED,
        enriched=added.enriched,
        message=added.enrichment_error,
        record_id=added.record.id,
    )


def add_search_results(
    lists: ListMutationService,
    results: list[SearchResult],
    collection: Collection,
    *,
    source: MetadataSource,
) -> BatchReport:
    """Synchronous counterpart of `SearchSession.add_batch` for callers without an event loop."""

    outcomes = [add_search_result(lists, result, collection, source=source) for result in results]
    return _report(collection, outcomes)


def _report(collection: Collection, outcomes: list[ItemOutcome]) -> BatchReport:
    report = BatchReport(
        attempted=len(outcomes),
        succeeded=sum(1 for outcome in outcomes if outcome.ok),
        outcomes=outcomes,
    )
    logger.info(f"Batch add to {collection.value}: {report.succeeded}/{report.attempted} succeeded")
    return report
