from datetime import date

from fastapi import APIRouter, Depends, Query

from ...admin.dependencies import require_access
from ...admin.permissions import AccessSlot
from ...dependencies import get_activity_log_query_service
from ...schemas.activity_log import ActivityLogFilter, ActivityLogPage
from ...schemas.auth import SessionUser
from ...services.audit import ActivityLogQueryService

router = APIRouter(prefix="/logs", tags=["logs"])


@router.get("", response_model=ActivityLogPage)
async def list_logs(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user_id: int | None = Query(None, alias="userId"),
    activity_type: str | None = Query(None, alias="activityType"),
    entity_type: str | None = Query(None, alias="entityType"),
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
    search_term: str | None = Query(None, alias="searchTerm"),
    _: SessionUser = Depends(require_access(AccessSlot.LOGS_VIEW)),
    service: ActivityLogQueryService = Depends(get_activity_log_query_service),
) -> ActivityLogPage:
    """
    List activity logs, newest first.

    ``total`` counts every log matching the filters, independent of paging.
    """
    filters = ActivityLogFilter(
        page=page,
        limit=limit,
        user_id=user_id,
        activity_type=activity_type or None,
        entity_type=entity_type or None,
        start_date=start_date,
        end_date=end_date,
        search_term=search_term or None,
    )
    return await service.list_logs(filters)
