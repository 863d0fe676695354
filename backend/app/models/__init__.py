from .base import Base
from .user import User
from .guest import Guest
from .access import Access, access_table
from .activity_log import ActivityLog

__all__ = [
    "Base",
    "User",
    "Guest",
    "Access",
    "access_table",
    "ActivityLog",
]
