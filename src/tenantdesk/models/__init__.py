"""SQLAlchemy models."""
from tenantdesk.models.admin import Admin, AdminRole
from tenantdesk.models.api_session import ApiSession
from tenantdesk.models.base import Base
from tenantdesk.models.role import Role
from tenantdesk.models.user import User

__all__ = [
    "Admin",
    "AdminRole",
    "ApiSession",
    "Base",
    "Role",
    "User",
]
