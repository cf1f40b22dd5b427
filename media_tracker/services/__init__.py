"""
Owner-scoped services over the watched/watchlist collections.
"""

from media_tracker.services.lists import AddResult, ListMutationService, ListStats

__all__ = [
    "AddResult",
    "ListMutationService",
    "ListStats",
]
