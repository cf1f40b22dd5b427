"""
Dependency injection for Supabase clients, the metadata gateway and error mapping.
"""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Annotated, NoReturn

from fastapi import Depends, HTTPException
from supabase import Client, create_client

from media_tracker.db.supabase import (
    create_supabase_user_client,
    get_supabase_anon_key,
    get_supabase_url,
)
from media_tracker.errors import (
    DuplicateError,
    MediaTrackerError,
    NotFoundError,
    PartialMoveError,
    StorageError,
    UpstreamError,
    ValidationError,
)
from media_tracker.metadata.gateway import MetadataGateway, MetadataSource
from media_tracker.utils.env import load_env

load_env()

logger = logging.getLogger(__name__)


def get_supabase_client() -> Client:
    """
    Returns a Supabase client using the anon key (used to validate user tokens).
    """
    return create_client(get_supabase_url(), get_supabase_anon_key())


def get_user_db(token: str) -> Client:
    """Supabase client scoped to an end-user access token so RLS applies."""
    return create_supabase_user_client(token)


@lru_cache
def get_metadata_gateway() -> MetadataSource:
    """Process-wide metadata gateway backed by TMDb; one HTTP session, the API key stays on the server."""
    return MetadataGateway()


# Type aliases for dependency injection
MetadataGatewayDep = Annotated[MetadataSource, Depends(get_metadata_gateway)]


def http_status_for(exc: MediaTrackerError) -> int:
    # Order matters: DuplicateError, NotFoundError and PartialMoveError are StorageErrors.
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, DuplicateError):
        return 409
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, PartialMoveError):
        return 500
    if isinstance(exc, (UpstreamError, StorageError)):
        return 502
    return 500


def raise_http_error(exc: MediaTrackerError, context: str) -> NoReturn:
    """
    Convert a domain error into an HTTPException carrying the user-facing message.

    Internal details are logged, never returned to the client.
    """
    status_code = http_status_for(exc)
    if status_code >= 500:
        logger.error(f"{type(exc).__name__} during {context}: {exc}")
    else:
        logger.info(f"{type(exc).__name__} during {context}: {exc}")
    raise HTTPException(status_code=status_code, detail=exc.user_message) from exc
