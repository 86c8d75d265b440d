"""
Whole-response cache for GET endpoints.

Called from inside route handlers, after authentication and authorization
dependencies have run, so a cached body is never served to a caller the route
would have refused.
"""
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from tenantdesk.core.cache import CacheService

logger = logging.getLogger(__name__)

RESPONSE_CACHE_PREFIX = "cache:"

# TTLs (seconds) per route family
ROLES_TTL = 300
DASHBOARD_STATS_TTL = 300
DASHBOARD_GROWTH_TTL = 600
DASHBOARD_DISTRIBUTION_TTL = 600
DASHBOARD_RECENT_USERS_TTL = 120
DASHBOARD_OVERVIEW_TTL = 300
ADMIN_LIST_TTL = 120
ADMIN_USERS_TTL = 120
ADMIN_DETAIL_TTL = 60


def response_cache_key(request: Request) -> str:
    """cache:<path>[?<query>], e.g. 'cache:/api/roles?page=2'."""
    key = f"{RESPONSE_CACHE_PREFIX}{request.url.path}"
    if request.url.query:
        key = f"{key}?{request.url.query}"
    return key


async def cached_response(
    request: Request,
    cache: CacheService,
    ttl_seconds: int,
    render: Callable[[], Awaitable[dict[str, Any]]],
) -> JSONResponse:
    """
    Serve the stored envelope for this URL, or render, store and return it.

    A hit returns the same bytes as the response that was stored. Rendering errors
    propagate and nothing is stored, so only successful responses are cached.
    """
    key = response_cache_key(request)
    hit, body = await cache.get(key)
    if hit:
        return JSONResponse(body, headers={"X-Cache": "HIT"})

    body = await render()
    await cache.set(key, body, ttl_seconds)
    return JSONResponse(body, headers={"X-Cache": "MISS"})


async def clear_response_cache(cache: CacheService, path_prefix: str) -> int:
    """Drop cached responses whose path starts with `path_prefix`."""
    deleted = await cache.delete_pattern(f"{RESPONSE_CACHE_PREFIX}{path_prefix}*")
    logger.debug("response_cache_cleared prefix=%s deleted=%s", path_prefix, deleted)
    return deleted
