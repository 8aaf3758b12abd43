"""Shared helpers for the storefront API routes."""
from __future__ import annotations

from typing import Any

from aiohttp import web

ALLOW_METHODS = "GET, POST, OPTIONS"
ALLOW_HEADERS = "Content-Type, X-Idempotency-Key"


def add_cors_headers(response: web.StreamResponse, origin: str) -> web.StreamResponse:
    """Add CORS headers to response."""
    response.headers["Access-Control-Allow-Origin"] = origin
    response.headers["Access-Control-Allow-Methods"] = ALLOW_METHODS
    response.headers["Access-Control-Allow-Headers"] = ALLOW_HEADERS
    if origin != "*":
        response.headers["Vary"] = "Origin"
    return response


def build_cors_preflight(origin: str):
    async def cors_preflight(request: web.Request) -> web.Response:
        """Handle CORS preflight requests."""
        response = web.Response(status=200, headers={"Access-Control-Max-Age": "86400"})
        return add_cors_headers(response, origin)

    return cors_preflight


def json_response(data: Any, origin: str, status: int = 200) -> web.Response:
    return add_cors_headers(web.json_response(data, status=status), origin)


def json_error(message: str, origin: str, status: int = 500, **extra: Any) -> web.Response:
    return json_response({"error": message, **extra}, origin, status=status)
