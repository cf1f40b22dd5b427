"""
Owner resolution for the list endpoints.

The bearer token is a Supabase session token. It is validated against
Supabase Auth, and the resulting user id becomes the owner of every record
the request touches.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, HTTPException

from api.deps import get_supabase_client

logger = logging.getLogger(__name__)

AUTH_REQUIRED_DETAIL = "Authentication required. Please provide a valid access token."


@dataclass(frozen=True)
class Owner:
    id: str
    token: str
    email: str | None = None


def bearer_token(authorization: str | None) -> str | None:
    """Token from an `Authorization: Bearer <token>` header value, or None."""
    scheme, _, token = (authorization or "").strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token or " " in token:
        return None
    return token


def lookup_owner(token: str) -> Owner | None:
    """Ask Supabase Auth who `token` belongs to. Invalid or expired tokens yield None."""
    try:
        response = get_supabase_client().auth.get_user(token)
    except Exception as e:
        logger.warning(f"Failed to validate token: {e}")
        return None
    user = getattr(response, "user", None)
    if user is None:
        return None
    return Owner(id=str(user.id), token=token, email=user.email)


def require_owner(authorization: Annotated[str | None, Header()] = None) -> Owner:
    """Dependency that resolves the calling owner or fails with 401."""
    token = bearer_token(authorization)
    owner = lookup_owner(token) if token else None
    if owner is None:
        raise HTTPException(
            status_code=401,
            detail=AUTH_REQUIRED_DETAIL,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return owner


CurrentOwner = Annotated[Owner, Depends(require_owner)]
