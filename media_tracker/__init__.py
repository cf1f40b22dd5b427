"""
Media tracker core: TMDb lookups, enrichment, and the watched/watchlist store.

`api/` (HTTP) and `scripts/` (CLI) are thin entrypoints over this package;
nothing in here imports from them.
"""
