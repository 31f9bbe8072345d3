from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.salestrack.core.deps import require_permission, require_request_context
from app.salestrack.db.session import get_db
from app.salestrack.schemas.dashboard import DashboardResponse
from app.salestrack.services.dashboard import DEFAULT_PERIOD, DashboardService

router = APIRouter()


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard_summary(
    period: str = Query(DEFAULT_PERIOD),
    timezone: str | None = Query(None),
    branch_id: UUID | None = Query(None),
    context=Depends(require_request_context),
    _permission=Depends(require_permission("DASHBOARD_VIEW")),
    db=Depends(get_db),
):
    summary = DashboardService(db, context).summary(period=period, timezone_name=timezone, branch_id=branch_id)
    return DashboardResponse(**summary, trace_id=context.trace_id)
