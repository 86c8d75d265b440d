"""Shared schema building blocks."""
from datetime import UTC, datetime
from typing import Annotated, Any, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes (SQLite drops tzinfo) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


UTCDateTime = Annotated[datetime, AfterValidator(ensure_utc)]


class CamelModel(BaseModel):
    """Base model exposing camelCase field names on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_json(self) -> dict[str, Any]:
        """JSON-ready dict with wire names, safe to cache and compare."""
        return self.model_dump(mode="json", by_alias=True)


class PaginationParams(BaseModel):
    """Page/limit/sort query parameters shared by list endpoints."""

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    sort_by: str = "createdAt"
    sort_order: Literal["asc", "desc"] = "desc"

    @property
    def offset(self) -> int:
        """Rows to skip for the requested page."""
        return (self.page - 1) * self.limit

    def cache_suffix(self) -> str:
        """Key fragment identifying this page, e.g. '1:10:createdAt:desc'."""
        return f"{self.page}:{self.limit}:{self.sort_by}:{self.sort_order}"


class Page(BaseModel):
    """One page of JSON-ready items plus the total row count."""

    items: list[dict[str, Any]]
    total: int
    page: int
    limit: int
