"""
Dependencies that hand out the service objects owned by the application.

The lifespan in api.main constructs each object once and stores it on app.state;
handlers receive them through these functions instead of module-level globals.
"""
from fastapi import Request

from tenantdesk.core.cache import CacheService
from tenantdesk.core.config import Settings
from tenantdesk.core.rate_limiter import RateLimiter
from tenantdesk.core.tokens import TokenCodec


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


def get_cache(request: Request) -> CacheService:
    """Cache-aside service over the configured store."""
    return request.app.state.cache


def get_token_codec(request: Request) -> TokenCodec:
    """Bearer token codec."""
    return request.app.state.token_codec


def get_rate_limiter(request: Request) -> RateLimiter:
    """Process-local rate limiter."""
    return request.app.state.rate_limiter
