from fastapi import APIRouter, Depends, Header, Query, Request

from app.salestrack.core.deps import require_request_context
from app.salestrack.db.models import AppVersion
from app.salestrack.db.session import get_db
from app.salestrack.schemas.releases import (
    AppVersionItem,
    CheckUpdatesRequest,
    CheckUpdatesResponse,
    PublishReleaseRequest,
    PublishReleaseResponse,
    ReleaseListResponse,
    ReleaseStatus,
)
from app.salestrack.services.provisioning import PROVISIONING_HEADER, verify_provisioning_key
from app.salestrack.services.releases import ReleaseService

router = APIRouter()


def _version_item(row: AppVersion) -> AppVersionItem:
    return AppVersionItem(
        id=str(row.id),
        version=row.version,
        platform=row.platform,
        architecture=row.architecture,
        release_notes=row.release_notes,
        download_url=row.download_url,
        file_size=row.file_size,
        status=row.status,
        is_critical=row.is_critical,
        minimum_version=row.minimum_version,
        is_latest=row.is_latest,
        published_at=row.published_at,
        created_at=row.created_at,
    )


@router.post(
    "/releases/publish",
    response_model=PublishReleaseResponse,
    status_code=201,
    description=f"Requires the `{PROVISIONING_HEADER}` header.",
)
def publish_release(
    request: Request,
    payload: PublishReleaseRequest,
    provisioning_key: str | None = Header(default=None, alias=PROVISIONING_HEADER),
    db=Depends(get_db),
):
    verify_provisioning_key(provisioning_key)
    rows = ReleaseService(db).publish(payload.model_dump())
    return PublishReleaseResponse(
        success=True,
        message=f"Release {payload.version} published successfully",
        releases=[_version_item(row) for row in rows],
        trace_id=getattr(request.state, "trace_id", ""),
    )


@router.post("/releases/check-updates", response_model=CheckUpdatesResponse)
def check_updates(request: Request, payload: CheckUpdatesRequest, db=Depends(get_db)):
    result = ReleaseService(db).check_for_updates(payload.platform, payload.current_version)
    latest = result["latest_version"]
    return CheckUpdatesResponse(
        has_update=result["has_update"],
        current_version=result["current_version"],
        latest_version=_version_item(latest) if latest is not None else None,
        trace_id=getattr(request.state, "trace_id", ""),
    )


@router.get("/releases", response_model=ReleaseListResponse)
def list_releases(
    platform: str | None = Query(None),
    status: ReleaseStatus | None = Query(None),
    context=Depends(require_request_context),
    db=Depends(get_db),
):
    rows = ReleaseService(db).list_releases(platform=platform, status=status)
    return ReleaseListResponse(releases=[_version_item(row) for row in rows], trace_id=context.trace_id)
