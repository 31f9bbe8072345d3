from fastapi import APIRouter, Depends

from app.salestrack.core.deps import require_active_user, require_permission, require_request_context
from app.salestrack.db.models import Organization
from app.salestrack.db.session import get_db
from app.salestrack.schemas.auth import OrganizationMembershipItem
from app.salestrack.schemas.organizations import (
    OrganizationCreateRequest,
    OrganizationItem,
    OrganizationListResponse,
    OrganizationResponse,
    OrganizationUpdateRequest,
)
from app.salestrack.services.auth import AuthService
from app.salestrack.services.organizations import OrganizationService

router = APIRouter()


def _organization_item(organization: Organization) -> OrganizationItem:
    return OrganizationItem(
        id=str(organization.id),
        name=organization.name,
        email=organization.email,
        phone=organization.phone,
        address=organization.address,
        logo_url=organization.logo_url,
        description=organization.description,
        currency=organization.currency,
        is_active=organization.is_active,
        created_at=organization.created_at,
        updated_at=organization.updated_at,
    )


@router.get("/organizations", response_model=OrganizationListResponse)
def list_organizations(
    context=Depends(require_request_context),
    current_user=Depends(require_active_user),
    db=Depends(get_db),
):
    organizations = AuthService(db).list_organizations(current_user)
    return OrganizationListResponse(
        organizations=[OrganizationMembershipItem(**item) for item in organizations],
        current_organization_id=context.organization_id,
        trace_id=context.trace_id,
    )


@router.get("/organizations/current", response_model=OrganizationResponse)
def get_current_organization(
    context=Depends(require_request_context),
    _permission=Depends(require_permission("ORG_VIEW")),
    db=Depends(get_db),
):
    organization = OrganizationService(db, context).get_current()
    return OrganizationResponse(organization=_organization_item(organization), trace_id=context.trace_id)


@router.patch("/organizations/current", response_model=OrganizationResponse)
def update_current_organization(
    payload: OrganizationUpdateRequest,
    context=Depends(require_request_context),
    _permission=Depends(require_permission("ORG_MANAGE")),
    db=Depends(get_db),
):
    organization = OrganizationService(db, context).update_current(payload.model_dump(exclude_unset=True))
    return OrganizationResponse(organization=_organization_item(organization), trace_id=context.trace_id)


@router.post("/organizations", response_model=OrganizationResponse, status_code=201)
def create_organization(
    payload: OrganizationCreateRequest,
    context=Depends(require_request_context),
    current_user=Depends(require_active_user),
    _permission=Depends(require_permission("ORG_CREATE")),
    db=Depends(get_db),
):
    organization = OrganizationService(db, context).create_additional(current_user, payload.model_dump())
    return OrganizationResponse(organization=_organization_item(organization), trace_id=context.trace_id)
