from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.salestrack.core.config import settings
from app.salestrack.core.error_catalog import ErrorCatalog
from app.salestrack.core.errors import error_body
from app.salestrack.db.session import get_db

router = APIRouter()


@router.get("/health", summary="Liveness probe")
async def health(request: Request):
    return {"status": "ok", "service": settings.APP_NAME, "trace_id": getattr(request.state, "trace_id", "")}


@router.get("/ready", summary="Readiness probe")
def ready(request: Request, db=Depends(get_db)):
    """Ready once the database answers; the POS clients poll this before syncing queued sales."""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        definition = ErrorCatalog.DB_UNAVAILABLE
        return JSONResponse(
            status_code=definition.status_code,
            content=error_body(request, definition, {"type": exc.__class__.__name__}),
        )
    return {"status": "ready", "service": settings.APP_NAME, "trace_id": getattr(request.state, "trace_id", "")}
