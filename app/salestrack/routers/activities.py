from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.salestrack.core.config import settings
from app.salestrack.core.deps import require_permission, require_request_context
from app.salestrack.core.error_catalog import AppError, ErrorCatalog
from app.salestrack.core.scope import resolve_branch_filter
from app.salestrack.db.session import get_db
from app.salestrack.schemas.activities import ActivityItem, ActivityListResponse
from app.salestrack.services.activity import ActivityFilters, ActivityService
from app.salestrack.services.periods import resolve_date_window, resolve_timezone

router = APIRouter()


@router.get("/activities", response_model=ActivityListResponse)
def list_activities(
    entity_type: str | None = Query(None),
    entity_id: str | None = Query(None),
    sale_id: UUID | None = Query(None),
    branch_id: UUID | None = Query(None),
    user_id: UUID | None = Query(None),
    activity_type: str | None = Query(None),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    timezone: str | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1),
    context=Depends(require_request_context),
    _permission=Depends(require_permission("ACTIVITY_VIEW")),
    db=Depends(get_db),
):
    if page_size > settings.ACTIVITY_LIST_MAX_PAGE_SIZE:
        raise AppError(
            ErrorCatalog.VALIDATION_ERROR,
            details={"field": "page_size", "max": settings.ACTIVITY_LIST_MAX_PAGE_SIZE},
        )
    window = resolve_date_window(start_date, end_date, resolve_timezone(timezone))
    filters = ActivityFilters(
        entity_type=entity_type,
        entity_id=entity_id,
        sale_id=str(sale_id) if sale_id else None,
        branch_id=resolve_branch_filter(context, branch_id),
        user_id=str(user_id) if user_id else None,
        activity_type=activity_type,
        start=window.start_utc,
        end=window.end_utc,
    )
    result = ActivityService(db).list(context.organization_id, filters, page=page, page_size=page_size)
    return ActivityListResponse(
        activities=[ActivityItem(**item) for item in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        trace_id=context.trace_id,
    )
