"""
Permissive cross-origin handling.

Browser clients call the API from any origin with the anon key or a user
token, so every response (errors included) carries the same CORS headers and
any OPTIONS request is answered with 200.
"""

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.responses import JSONResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, X-Client-Info, Apikey",
}


class PermissiveCORSMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=CORS_HEADERS)

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.exception(f"Unhandled error for {request.method} {request.url.path}: {exc}")
            response = JSONResponse(status_code=500, content={"error": "Internal server error"})

        for key, value in CORS_HEADERS.items():
            response.headers[key] = value
        return response
