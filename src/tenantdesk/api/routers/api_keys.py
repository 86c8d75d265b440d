"""API key management endpoints."""
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tenantdesk.api.dependencies import get_async_session, require_bearer
from tenantdesk.core.request_context import RequestContext
from tenantdesk.schemas.api_key import ApiKeyCreate, ApiKeyCreateResponse, ApiKeyResponse
from tenantdesk.schemas.envelope import success
from tenantdesk.services import api_key_service
from tenantdesk.services.exceptions import NotFoundError

router = APIRouter(prefix="/api/keys", tags=["api-keys"])


@router.post("", status_code=201)
async def create_api_key(
    data: ApiKeyCreate,
    context: RequestContext = Depends(require_bearer),
    db: AsyncSession = Depends(get_async_session),
) -> dict[str, Any]:
    """
    Create an API key for the calling account.

    **Authentication: bearer token only**

    IMPORTANT: The plaintext key is only returned once. Store it securely.
    """
    session, plaintext = await api_key_service.create_api_key(db, context.principal, data)
    payload = ApiKeyCreateResponse(
        id=session.id,
        name=session.name,
        key=plaintext,
        key_prefix=session.key_prefix,
        expires_at=session.expires_at,
        created_at=session.created_at,
    )
    return success(payload.to_json(), "API key created successfully")


@router.get("")
async def list_api_keys(
    context: RequestContext = Depends(require_bearer),
    db: AsyncSession = Depends(get_async_session),
) -> dict[str, Any]:
    """
    List the caller's API keys.

    Note: Plaintext keys are never returned - only metadata.
    """
    sessions = await api_key_service.list_api_keys(db, context.principal)
    return success(
        [ApiKeyResponse.model_validate(s).to_json() for s in sessions],
        "API keys retrieved successfully",
    )


@router.delete("/{key_id}")
async def delete_api_key(
    key_id: UUID,
    context: RequestContext = Depends(require_bearer),
    db: AsyncSession = Depends(get_async_session),
) -> dict[str, Any]:
    """Revoke (delete) an API key."""
    deleted = await api_key_service.delete_api_key(db, context.principal, key_id)
    if not deleted:
        raise NotFoundError("API key")
    return success(message="API key revoked successfully")
