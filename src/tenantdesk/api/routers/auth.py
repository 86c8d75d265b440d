"""Token refresh and identity endpoints."""
from typing import Any

from fastapi import APIRouter, Depends

from tenantdesk.api.dependencies import (
    get_token_codec,
    optional_auth,
    require_any,
    require_api_key,
)
from tenantdesk.core.request_context import Principal, RequestContext
from tenantdesk.core.tokens import TokenCodec
from tenantdesk.schemas.auth import PrincipalResponse, RefreshRequest, RefreshResponse
from tenantdesk.schemas.envelope import success
from tenantdesk.services.exceptions import AuthenticationError

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _principal_payload(context: RequestContext) -> dict[str, Any]:
    principal = context.principal
    return PrincipalResponse(
        id=principal.id,
        email=principal.email,
        role=principal.role,
        role_id=principal.role_id,
        type=principal.type,
        scheme=context.scheme,
    ).to_json()


@router.post("/refresh")
async def refresh_token(
    data: RefreshRequest,
    codec: TokenCodec = Depends(get_token_codec),
) -> dict[str, Any]:
    """
    Exchange a refresh token for a new access token with the same claims.

    Access and refresh tokens are not distinguished at verification, so any valid
    token is accepted here.
    """
    claims = codec.verify(data.refresh_token)
    principal = Principal.from_claims(claims) if claims is not None else None
    if principal is None:
        raise AuthenticationError("Invalid or expired refresh token")
    token = codec.sign_access_token(principal.to_claims())
    return success(RefreshResponse(token=token).to_json(), "Token refreshed successfully")


@router.get("/me")
async def get_me(context: RequestContext = Depends(require_any)) -> dict[str, Any]:
    """Identity resolved from a bearer token or an API key."""
    return success(_principal_payload(context), "Identity retrieved successfully")


@router.get("/session")
async def get_session(
    context: RequestContext | None = Depends(optional_auth),
) -> dict[str, Any]:
    """Public: identity for a valid bearer token, otherwise authenticated=false."""
    data: dict[str, Any] = {"authenticated": context is not None}
    if context is not None:
        data["principal"] = _principal_payload(context)
    return success(data)


@router.get("/api-key")
async def verify_api_key(context: RequestContext = Depends(require_api_key)) -> dict[str, Any]:
    """Verify an X-API-Key header and describe the identity it resolves to."""
    data = _principal_payload(context)
    if context.key_prefix is not None:
        data["keyPrefix"] = context.key_prefix
    return success(data, "API key is valid")
