from datetime import date, datetime
from typing import Any

from sqlalchemy import Date, and_, cast, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.activity_log import ActivityLog
from ..models.user import User


class ActivityLogRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        user_id: int | None,
        activity_type: str,
        entity_type: str,
        description: str,
        created_at: datetime | None = None,
        metadata: Any | None = None,
    ) -> ActivityLog:
        activity_log = ActivityLog(
            user_id=user_id,
            activity_type=activity_type,
            entity_type=entity_type,
            description=description,
            metadata_=metadata,
        )
        if created_at is not None:
            activity_log.created_at = created_at
        self.session.add(activity_log)
        await self.session.commit()
        return activity_log

    async def rollback(self) -> None:
        await self.session.rollback()

    @staticmethod
    def _conditions(
        user_id: int | None = None,
        activity_type: str | None = None,
        entity_type: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        search_term: str | None = None,
    ) -> list[Any]:
        conditions: list[Any] = []
        if user_id is not None:
            conditions.append(ActivityLog.user_id == user_id)
        if activity_type:
            conditions.append(ActivityLog.activity_type == activity_type)
        if entity_type:
            conditions.append(ActivityLog.entity_type == entity_type)
        if start_date is not None:
            conditions.append(cast(ActivityLog.created_at, Date) >= start_date)
        if end_date is not None:
            conditions.append(cast(ActivityLog.created_at, Date) <= end_date)
        if search_term:
            conditions.append(ActivityLog.description.contains(search_term, autoescape=True))
        return conditions

    async def list_by_filters(
        self,
        user_id: int | None = None,
        activity_type: str | None = None,
        entity_type: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        search_term: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[dict[str, Any]], int]:
        """Return one page of logs joined with the acting username, plus the total.

        The total counts every row matching the same filters, ignoring
        pagination.
        """
        conditions = self._conditions(
            user_id=user_id,
            activity_type=activity_type,
            entity_type=entity_type,
            start_date=start_date,
            end_date=end_date,
            search_term=search_term,
        )

        query = (
            select(
                ActivityLog.id,
                ActivityLog.user_id,
                ActivityLog.activity_type,
                ActivityLog.entity_type,
                ActivityLog.description,
                ActivityLog.created_at,
                ActivityLog.metadata_.label("metadata"),
                User.username,
            )
            .select_from(ActivityLog)
            .outerjoin(User, User.id == ActivityLog.user_id)
        )
        count_query = select(func.count(ActivityLog.id))
        if conditions:
            query = query.where(and_(*conditions))
            count_query = count_query.where(and_(*conditions))

        query = (
            query.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
            .limit(limit)
            .offset(offset)
        )

        result = await self.session.execute(query)
        rows = [dict(row) for row in result.mappings().all()]

        total_result = await self.session.execute(count_query)
        total = int(total_result.scalar() or 0)
        return rows, total
