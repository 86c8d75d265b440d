"""Shared utility functions for service layer."""
from typing import Any

from sqlalchemy import ColumnElement
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from tenantdesk.schemas.common import PaginationParams
from tenantdesk.services.exceptions import ConflictError, ValidationError


def order_by_clause(
    sort_columns: dict[str, InstrumentedAttribute[Any]],
    params: PaginationParams,
) -> ColumnElement[Any]:
    """
    Translate the sortBy/sortOrder query parameters into an ORDER BY clause.

    Only whitelisted columns are sortable; anything else is a validation error
    rather than a silent fallback.
    """
    column = sort_columns.get(params.sort_by)
    if column is None:
        raise ValidationError(
            errors=[{
                "field": "sortBy",
                "message": f"Must be one of: {', '.join(sorted(sort_columns))}",
            }],
        )
    return column.asc() if params.sort_order == "asc" else column.desc()


async def flush_or_conflict(db: AsyncSession, message: str) -> None:
    """
    Flush pending changes, translating a unique-constraint violation into ConflictError.

    The pre-checks in the services only produce a friendlier error; two concurrent
    requests can both pass them, and the database constraint decides.
    """
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError(message) from e
