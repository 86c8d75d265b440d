"""Pydantic schemas for dashboard aggregates."""
from uuid import UUID

from tenantdesk.schemas.common import CamelModel, UTCDateTime
from tenantdesk.schemas.role import RoleSummary


class DashboardStats(CamelModel):
    """Headline counts."""

    total_users: int
    total_admins: int
    total_roles: int
    active_users: int
    new_users_today: int


class GrowthPoint(CamelModel):
    """Users created on one UTC day."""

    date: str  # YYYY-MM-DD
    count: int


class RoleDistributionEntry(CamelModel):
    """User count for one role."""

    id: UUID
    name: str
    slug: str
    count: int


class RecentUser(CamelModel):
    """Newest users, newest first."""

    id: UUID
    email: str
    name: str
    role: RoleSummary
    created_at: UTCDateTime
