from fastapi import APIRouter, Depends, Header, Request

from app.salestrack.db.session import get_db
from app.salestrack.schemas.provisioning import CreateOwnerRequest, CreateOwnerResponse
from app.salestrack.services.provisioning import PROVISIONING_HEADER, ProvisioningService, verify_provisioning_key

router = APIRouter()


@router.post(
    "/create-owner",
    response_model=CreateOwnerResponse,
    status_code=201,
    summary="Provision an organization and its owner",
    description=f"Requires the `{PROVISIONING_HEADER}` header.",
)
def create_owner(
    request: Request,
    payload: CreateOwnerRequest,
    provisioning_key: str | None = Header(default=None, alias=PROVISIONING_HEADER),
    db=Depends(get_db),
):
    verify_provisioning_key(provisioning_key)
    result = ProvisioningService(db).create_owner(
        organization=payload.organization.model_dump(),
        user=payload.user.model_dump(),
    )
    organization = result["organization"]
    user = result["user"]
    return CreateOwnerResponse(
        organization_id=str(organization.id),
        organization_name=organization.name,
        user_id=str(user.id),
        email=user.email,
        role=user.role,
        temporary_password=result["temporary_password"],
        must_change_password=user.must_change_password,
        trace_id=getattr(request.state, "trace_id", ""),
    )
