"""FastAPI application factory."""
import logging
import time
import traceback
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from tenantdesk.api.dependencies import enforce_rate_limit
from tenantdesk.api.routers import admins, api_keys, auth, dashboard, health, roles, users
from tenantdesk.core.cache import CacheService
from tenantdesk.core.cache_store import CacheStore
from tenantdesk.core.config import Settings, configure_logging, get_settings
from tenantdesk.core.memory_cache import MemoryCacheStore
from tenantdesk.core.rate_limit_config import RateLimitConfig, RateLimitExceededError
from tenantdesk.core.rate_limiter import RateLimiter
from tenantdesk.core.redis import RedisClient
from tenantdesk.core.tokens import TokenCodec
from tenantdesk.db.session import Database
from tenantdesk.schemas.envelope import ValidationErrorResponse, failure
from tenantdesk.services.exceptions import AppError, ValidationError

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def build_cache_store(settings: Settings) -> CacheStore:
    """Cache store selected by CACHE_BACKEND."""
    if settings.cache_backend == "memory":
        return MemoryCacheStore()
    return RedisClient(
        url=settings.redis_url,
        enabled=settings.redis_enabled,
        pool_size=settings.redis_pool_size,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """
    Manage application lifespan - startup and shutdown.

    Startup builds every service object and stores it on app.state. Shutdown runs
    after the server has drained in-flight requests and releases the database
    before the cache.
    """
    app_settings: Settings = app.state.settings

    database = Database(app_settings)
    await database.connect()

    # Cache unavailability never blocks startup; the store just reports not ready
    store: CacheStore = app.state.cache_store
    await store.connect()

    app.state.db = database
    app.state.cache = CacheService(store, default_ttl=app_settings.cache_ttl)
    app.state.token_codec = TokenCodec(
        app_settings.jwt_secret,
        access_token_ttl=timedelta(seconds=app_settings.jwt_access_token_ttl),
    )
    app.state.rate_limiter = RateLimiter(RateLimitConfig.from_settings(app_settings))
    logger.info(
        "Application started",
        extra={"environment": app_settings.environment, "cache_ready": store.is_ready},
    )

    yield

    await database.close()
    await store.close()
    logger.info("Application stopped")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and log method, path, status and duration."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process request, echo the request id and log the outcome."""
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request_failed",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                },
            )
            raise
        duration_ms = round((time.perf_counter() - start) * 1000, 1)
        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            "%s %s %s %sms",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={"request_id": request_id},
        )
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process request and add security headers to response."""
        response = await call_next(request)
        # HSTS: enforce HTTPS for 1 year, including subdomains
        response.headers["Strict-Transport-Security"] = (
            "max-age=31536000; includeSubDomains"
        )
        response.headers["X-Content-Type-Options"] = "nosniff"
        # API responses are never meant to be framed
        response.headers["X-Frame-Options"] = "DENY"
        return response


class RateLimitHeadersMiddleware(BaseHTTPMiddleware):
    """Add rate limit headers to successful responses."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process request and add rate limit headers to response."""
        response = await call_next(request)

        # 429 responses get their headers from the exception handler
        info = getattr(request.state, "rate_limit_info", None)
        if info:
            response.headers["X-RateLimit-Limit"] = str(info["limit"])
            response.headers["X-RateLimit-Remaining"] = str(info["remaining"])
            response.headers["X-RateLimit-Reset"] = str(info["reset"])

        return response


def _field_name(loc: tuple) -> str:
    # Drop the leading "body"/"query"/"path" segment
    parts = [str(part) for part in loc[1:]] if len(loc) > 1 else [str(p) for p in loc]
    return ".".join(parts)


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure into the response envelope."""

    @app.exception_handler(ValidationError)
    async def validation_error_handler(
        _request: Request, exc: ValidationError,
    ) -> JSONResponse:
        body = ValidationErrorResponse(message=exc.message, errors=exc.errors)
        return JSONResponse(status_code=exc.status_code, content=body.model_dump())

    @app.exception_handler(AppError)
    async def app_error_handler(_request: Request, exc: AppError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=failure(exc.message))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        _request: Request, exc: RequestValidationError,
    ) -> JSONResponse:
        errors = [
            {"field": _field_name(tuple(err.get("loc", ()))), "message": err.get("msg", "")}
            for err in exc.errors()
        ]
        body = ValidationErrorResponse(errors=errors)
        return JSONResponse(status_code=400, content=body.model_dump())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException,
    ) -> JSONResponse:
        message = str(exc.detail)
        if exc.status_code == 404 and exc.detail == "Not Found":
            message = f"Route {request.method} {request.url.path} not found"
        return JSONResponse(
            status_code=exc.status_code,
            content=failure(message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RateLimitExceededError)
    async def rate_limit_exception_handler(
        _request: Request, exc: RateLimitExceededError,
    ) -> JSONResponse:
        """Handle rate limit exceeded with proper headers."""
        return JSONResponse(
            status_code=429,
            content=failure(str(exc)),
            headers={
                "Retry-After": str(exc.result.retry_after),
                "X-RateLimit-Limit": str(exc.result.limit),
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": str(exc.result.reset),
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled error on %s %s",
            request.method,
            request.url.path,
            exc_info=exc,
        )
        detail = None
        if not request.app.state.settings.is_production:
            detail = "".join(traceback.format_exception(exc))
        return JSONResponse(
            status_code=500,
            content=failure("Internal Server Error", error=detail),
        )


def create_app(
    settings: Settings | None = None,
    cache_store: CacheStore | None = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Defaults to get_settings() (environment / .env).
        cache_store: Overrides the store chosen by CACHE_BACKEND. It is still
            connected and closed by the lifespan.
    """
    app_settings = settings or get_settings()

    app = FastAPI(
        title="Tenantdesk API",
        description="Accounts, roles and permissions with a cache-aside read path.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.cache_store = cache_store or build_cache_store(app_settings)

    register_exception_handlers(app)

    # Rate limit headers middleware (innermost, adds headers to successful responses)
    app.add_middleware(RateLimitHeadersMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    rate_limited = [Depends(enforce_rate_limit)]
    app.include_router(health.router)
    app.include_router(auth.router, dependencies=rate_limited)
    app.include_router(users.router, dependencies=rate_limited)
    app.include_router(admins.router, dependencies=rate_limited)
    app.include_router(roles.router, dependencies=rate_limited)
    app.include_router(dashboard.router, dependencies=rate_limited)
    app.include_router(api_keys.router, dependencies=rate_limited)

    return app


def build_app() -> FastAPI:
    """Factory used by uvicorn (`--factory`); configures logging first."""
    app_settings = get_settings()
    configure_logging(app_settings)
    return create_app(app_settings)
