from .activity_logger import ActivityLogger, ActivityType, EntityType
from .log_query_service import ActivityLogQueryService

__all__ = ["ActivityLogger", "ActivityType", "EntityType", "ActivityLogQueryService"]
