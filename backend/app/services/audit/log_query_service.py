from sqlalchemy.ext.asyncio import AsyncSession

from ...crud.activity_log import ActivityLogRepository
from ...schemas.activity_log import ActivityLogFilter, ActivityLogPage, ActivityLogRead


class ActivityLogQueryService:
    """Read side of the activity log: filtered, paginated listing."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = ActivityLogRepository(session)

    async def list_logs(self, filters: ActivityLogFilter) -> ActivityLogPage:
        rows, total = await self.repo.list_by_filters(
            user_id=filters.user_id,
            activity_type=filters.activity_type,
            entity_type=filters.entity_type,
            start_date=filters.start_date,
            end_date=filters.end_date,
            search_term=filters.search_term,
            limit=filters.limit,
            offset=filters.offset,
        )
        return ActivityLogPage(
            data=[ActivityLogRead.model_validate(row) for row in rows],
            total=total,
        )
