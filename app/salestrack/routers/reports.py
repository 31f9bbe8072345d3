from datetime import date, datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from app.salestrack.core.deps import require_permission, require_request_context
from app.salestrack.db.session import get_db
from app.salestrack.schemas.reports import ReportSummaryResponse
from app.salestrack.services.exports import build_dataset, export_filename, render_export
from app.salestrack.services.reports import ReportsService

router = APIRouter()

_TITLES = {
    "sales": "Sales report",
    "expenses": "Expenses report",
    "summary": "Profit and loss summary",
}


@router.get("/reports/summary", response_model=ReportSummaryResponse)
def report_summary(
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    timezone: str | None = Query(None),
    branch_id: UUID | None = Query(None),
    context=Depends(require_request_context),
    _permission=Depends(require_permission("REPORTS_VIEW")),
    db=Depends(get_db),
):
    summary = ReportsService(db, context).summary(
        start_date=start_date,
        end_date=end_date,
        timezone_name=timezone,
        branch_id=branch_id,
    )
    return ReportSummaryResponse(**summary, trace_id=context.trace_id)


@router.get("/reports/export")
def export_report(
    source: str = Query("summary"),
    format: str = Query("csv"),
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    timezone: str | None = Query(None),
    branch_id: UUID | None = Query(None),
    context=Depends(require_request_context),
    _permission=Depends(require_permission("REPORTS_VIEW")),
    db=Depends(get_db),
):
    summary = ReportsService(db, context).summary(
        start_date=start_date,
        end_date=end_date,
        timezone_name=timezone,
        branch_id=branch_id,
    )
    dataset = build_dataset(summary, source)
    content, content_type = render_export(
        dataset,
        format,
        title=f"{summary['organization_name'] or 'SalesTrack'}: {_TITLES[source]}",
        filters={
            "start_date": summary["start_date"].isoformat(),
            "end_date": summary["end_date"].isoformat(),
            "timezone": summary["timezone"],
            "branch_id": summary["branch_id"],
        },
        generated_at=datetime.utcnow(),
        currency=summary["currency"],
    )
    filename = export_filename(source, format, summary["start_date"], summary["end_date"])
    return Response(
        content=content,
        media_type=content_type,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "X-Trace-Id": context.trace_id,
        },
    )
