"""
Media Tracker API - FastAPI application.

Provides endpoints for:
- Searching movies and TV shows and fetching title details (metadata gateway)
- Managing a user's watched list and watchlist
- Dashboard counters
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from api.cors import PermissiveCORSMiddleware
from api.routers import lists, search_media

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    logger.info("Starting up Media Tracker API...")
    yield
    logger.info("Shutting down Media Tracker API...")


app = FastAPI(
    title="Media Tracker API",
    description="Search movies and TV shows and keep watched/watchlist collections",
    version="0.1.0",
    lifespan=lifespan,
)

# Any origin may call the API; every response carries the CORS headers.
app.add_middleware(PermissiveCORSMiddleware)

app.include_router(search_media.router)
app.include_router(lists.router, prefix="/api/v1")


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "media-tracker"}


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "healthy"}
