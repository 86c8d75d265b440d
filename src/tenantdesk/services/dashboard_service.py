"""
Dashboard aggregates.

Every read goes through the cache with a short TTL. Entity writes do not invalidate
these keys; staleness is bounded by the TTL alone.
"""
from datetime import UTC, date, datetime, time, timedelta
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tenantdesk.core.cache import (
    DISTRIBUTION_TTL,
    GROWTH_TTL,
    OVERVIEW_TTL,
    RECENT_USERS_TTL,
    STATS_TTL,
    CacheService,
)
from tenantdesk.models.admin import Admin
from tenantdesk.models.role import Role
from tenantdesk.models.user import User
from tenantdesk.schemas.dashboard import (
    DashboardStats,
    GrowthPoint,
    RecentUser,
    RoleDistributionEntry,
)

GROWTH_DAYS = 7
DEFAULT_RECENT_USERS = 5

STATS_KEY = "dashboard:stats"
GROWTH_KEY = "dashboard:user-growth"
DISTRIBUTION_KEY = "dashboard:role-distribution"
OVERVIEW_KEY = "dashboard:system-overview"


def _start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=UTC)


async def _count(db: AsyncSession, model: type, *criteria: Any) -> int:
    stmt = select(func.count()).select_from(model)
    if criteria:
        stmt = stmt.where(*criteria)
    return (await db.execute(stmt)).scalar_one()


async def get_stats(db: AsyncSession, cache: CacheService) -> dict[str, Any]:
    """Totals for users, admins and roles, plus active and new-today users."""
    async def load() -> dict[str, Any]:
        today = _start_of_day(datetime.now(UTC).date())
        return DashboardStats(
            total_users=await _count(db, User),
            total_admins=await _count(db, Admin),
            total_roles=await _count(db, Role),
            active_users=await _count(db, User, User.is_active.is_(True)),
            new_users_today=await _count(db, User, User.created_at >= today),
        ).to_json()

    return await cache.get_or_compute(STATS_KEY, load, STATS_TTL)


async def get_user_growth(db: AsyncSession, cache: CacheService) -> list[dict[str, Any]]:
    """New users per UTC day for the last seven days, oldest first."""
    async def load() -> list[dict[str, Any]]:
        today = datetime.now(UTC).date()
        points = []
        for offset in range(GROWTH_DAYS - 1, -1, -1):
            day = today - timedelta(days=offset)
            start = _start_of_day(day)
            count = await _count(
                db, User, User.created_at >= start, User.created_at < start + timedelta(days=1),
            )
            points.append(GrowthPoint(date=day.isoformat(), count=count).to_json())
        return points

    return await cache.get_or_compute(GROWTH_KEY, load, GROWTH_TTL)


async def get_role_distribution(db: AsyncSession, cache: CacheService) -> list[dict[str, Any]]:
    """User count per role, including roles with no users."""
    async def load() -> list[dict[str, Any]]:
        result = await db.execute(
            select(Role.id, Role.name, Role.slug, func.count(User.id))
            .outerjoin(User, User.role_id == Role.id)
            .group_by(Role.id, Role.name, Role.slug)
            .order_by(Role.name),
        )
        return [
            RoleDistributionEntry(id=role_id, name=name, slug=slug, count=count).to_json()
            for role_id, name, slug, count in result.all()
        ]

    return await cache.get_or_compute(DISTRIBUTION_KEY, load, DISTRIBUTION_TTL)


async def get_recent_users(
    db: AsyncSession,
    cache: CacheService,
    limit: int = DEFAULT_RECENT_USERS,
) -> list[dict[str, Any]]:
    """Newest users first, cached per limit."""
    async def load() -> list[dict[str, Any]]:
        result = await db.execute(
            select(User).order_by(User.created_at.desc()).limit(limit),
        )
        return [RecentUser.model_validate(u).to_json() for u in result.scalars().all()]

    return await cache.get_or_compute(
        f"dashboard:recent-users:{limit}", load, RECENT_USERS_TTL,
    )


async def get_overview(db: AsyncSession, cache: CacheService) -> dict[str, Any]:
    """Stats, growth, distribution and recent users in one payload."""
    async def load() -> dict[str, Any]:
        # One AsyncSession cannot run queries concurrently, so the parts are sequential
        return {
            "stats": await get_stats(db, cache),
            "userGrowth": await get_user_growth(db, cache),
            "roleDistribution": await get_role_distribution(db, cache),
            "recentUsers": await get_recent_users(db, cache),
        }

    return await cache.get_or_compute(OVERVIEW_KEY, load, OVERVIEW_TTL)


async def clear_cache(cache: CacheService) -> bool:
    """Drop every cached entry, not only dashboard keys."""
    return await cache.clear_all()
