"""Health check endpoints."""
import logging
from typing import Any

from fastapi import APIRouter, Request
from pydantic import BaseModel

from tenantdesk.schemas.envelope import success

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str
    cache: str


@router.get("/health")
async def health_check(request: Request) -> dict[str, Any]:
    """Check application, database and cache health."""
    db_ok = await request.app.state.db.ping()
    cache_ok = await request.app.state.cache.store.ping()
    if not db_ok:
        logger.warning("Database health check failed")

    health = HealthResponse(
        status="healthy" if db_ok and cache_ok else "degraded",
        database="healthy" if db_ok else "unhealthy",
        cache="connected" if cache_ok else "disconnected",
    )
    return success(health.model_dump(), "Server is running")
