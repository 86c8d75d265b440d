"""
Response envelope shared by every JSON endpoint.

Success: {"success": true, "message": ..., "data"?: ..., "meta"?: {...}}
Failure: {"success": false, "message": ..., "error"?: ...}
Validation failure: {"success": false, "message": "Validation failed", "errors": [...]}
"""
import math
from typing import Any

from pydantic import BaseModel, SerializerFunctionWrapHandler, model_serializer

from tenantdesk.schemas.common import CamelModel, Page


class PaginationMeta(CamelModel):
    """Pagination details for list responses."""

    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "PaginationMeta":
        """Compute totalPages as ceil(total / limit)."""
        return cls(page=page, limit=limit, total=total, total_pages=math.ceil(total / limit))


class ApiResponse(BaseModel):
    """Standard envelope. Absent optional fields are omitted, not sent as null."""

    success: bool = True
    message: str = "Success"
    data: Any = None
    error: str | None = None
    meta: PaginationMeta | None = None

    @model_serializer(mode="wrap")
    def _omit_absent(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        dumped = handler(self)
        return {key: value for key, value in dumped.items() if value is not None}

    def to_json(self) -> dict[str, Any]:
        """JSON-ready dict with wire names."""
        return self.model_dump(mode="json", by_alias=True)


class FieldError(BaseModel):
    """One field-level validation problem."""

    field: str
    message: str


class ValidationErrorResponse(BaseModel):
    """Body of a 400 validation failure."""

    success: bool = False
    message: str = "Validation failed"
    errors: list[FieldError]


def success(data: Any = None, message: str = "Success") -> dict[str, Any]:
    """Envelope for a successful response."""
    return ApiResponse(message=message, data=data).to_json()


def paginated(page: Page, message: str = "Success") -> dict[str, Any]:
    """Envelope for one page of a list."""
    return ApiResponse(
        message=message,
        data=page.items,
        meta=PaginationMeta.build(page.page, page.limit, page.total),
    ).to_json()


def failure(message: str, error: str | None = None) -> dict[str, Any]:
    """Envelope for an error response."""
    return ApiResponse(success=False, message=message, error=error).to_json()
