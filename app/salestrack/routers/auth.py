from urllib.parse import parse_qs

from fastapi import APIRouter, Depends, Request

from app.salestrack.core.context import client_ip
from app.salestrack.core.deps import get_current_token_data, require_active_user, require_request_context
from app.salestrack.core.error_catalog import AppError
from app.salestrack.db.session import get_db
from app.salestrack.repos.organizations import OrganizationRepository
from app.salestrack.repos.users import UserRepository
from app.salestrack.schemas.auth import (
    ChangePasswordRequest,
    ChangePasswordResponse,
    LoginRequest,
    MeResponse,
    OAuth2TokenResponse,
    OrganizationMembershipItem,
    SwitchOrganizationRequest,
    TokenResponse,
)
from app.salestrack.services.activity import ActivityPayload, ActivityService
from app.salestrack.services.auth import AuthService

router = APIRouter()


def _record_failed_login(request: Request, db, email: str, exc: AppError) -> None:
    candidate = UserRepository(db).get_by_email(email)
    if candidate is None:
        return
    memberships = OrganizationRepository(db).list_active_for_user(candidate.id)
    if not memberships:
        return
    ActivityService(db).record(
        ActivityPayload(
            organization_id=str(memberships[0].Organization.id),
            user_id=str(candidate.id),
            branch_id=str(candidate.branch_id) if candidate.branch_id else None,
            activity_type="login_failed",
            entity_type="user",
            entity_id=str(candidate.id),
            description=f"Failed login attempt for {candidate.email}",
            metadata={"error_code": exc.error.code},
            ip_address=client_ip(request),
            user_agent=request.headers.get("User-Agent"),
        )
    )


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Login (JSON)",
    description="Login with email and password, optionally choosing the organization to work in.",
)
def login(request: Request, payload: LoginRequest, db=Depends(get_db)):
    service = AuthService(db)
    trace_id = getattr(request.state, "trace_id", "")
    organization_id = str(payload.organization_id) if payload.organization_id else None
    try:
        user, organization, token = service.login(payload.email, payload.password, organization_id)
    except AppError as exc:
        _record_failed_login(request, db, payload.email, exc)
        raise

    ActivityService(db).record(
        ActivityPayload(
            organization_id=str(organization.id),
            user_id=str(user.id),
            branch_id=str(user.branch_id) if user.branch_id else None,
            activity_type="login",
            entity_type="user",
            entity_id=str(user.id),
            description=f"{user.full_name} signed in",
            ip_address=client_ip(request),
            user_agent=request.headers.get("User-Agent"),
        )
    )
    return TokenResponse(
        access_token=token,
        must_change_password=user.must_change_password,
        organization_id=str(organization.id),
        trace_id=trace_id,
    )


@router.post(
    "/token",
    response_model=OAuth2TokenResponse,
    summary="OAuth2 Token (Swagger/Auth)",
    description="OAuth2 password flow for Swagger Authorize using form-data username/password.",
)
async def oauth2_token(request: Request, db=Depends(get_db)):
    raw_body = (await request.body()).decode()
    form_data = parse_qs(raw_body)
    username = (form_data.get("username") or [""])[0]
    password = (form_data.get("password") or [""])[0]

    _, _, token = AuthService(db).login(username, password)
    return OAuth2TokenResponse(access_token=token)


@router.post("/change-password", response_model=ChangePasswordResponse, summary="Change Password")
def change_password(
    request: Request,
    payload: ChangePasswordRequest,
    token_data=Depends(get_current_token_data),
    current_user=Depends(require_active_user),
    db=Depends(get_db),
):
    trace_id = getattr(request.state, "trace_id", "")
    result = AuthService(db).change_password(
        current_user,
        new_password=payload.new_password,
        current_password=payload.current_password,
        first_time_reset=payload.first_time_reset,
        organization_id=token_data.organization_id,
    )
    if token_data.organization_id:
        ActivityService(db).record(
            ActivityPayload(
                organization_id=token_data.organization_id,
                user_id=str(current_user.id),
                branch_id=str(current_user.branch_id) if current_user.branch_id else None,
                activity_type="password_change",
                entity_type="user",
                entity_id=str(current_user.id),
                description=(
                    "Temporary password replaced" if payload.first_time_reset else "Password changed"
                ),
                ip_address=client_ip(request),
                user_agent=request.headers.get("User-Agent"),
            )
        )
    token = result["access_token"]
    return ChangePasswordResponse(
        ok=True,
        message="Password updated successfully",
        requires_logout=result["requires_logout"],
        access_token=token,
        token_type="bearer" if token else None,
        trace_id=trace_id,
    )


@router.post("/switch-organization", response_model=TokenResponse, summary="Switch Organization")
def switch_organization(
    request: Request,
    payload: SwitchOrganizationRequest,
    current_user=Depends(require_active_user),
    db=Depends(get_db),
):
    organization, token = AuthService(db).switch_organization(current_user, str(payload.organization_id))
    return TokenResponse(
        access_token=token,
        must_change_password=current_user.must_change_password,
        organization_id=str(organization.id),
        trace_id=getattr(request.state, "trace_id", ""),
    )


@router.get("/me", response_model=MeResponse)
def me(context=Depends(require_request_context), current_user=Depends(require_active_user), db=Depends(get_db)):
    organizations = AuthService(db).list_organizations(current_user)
    return MeResponse(
        id=str(current_user.id),
        email=current_user.email,
        full_name=current_user.full_name,
        role=current_user.role,
        branch_id=str(current_user.branch_id) if current_user.branch_id else None,
        is_active=current_user.is_active,
        must_change_password=current_user.must_change_password,
        organization_id=context.organization_id,
        organizations=[OrganizationMembershipItem(**item) for item in organizations],
        trace_id=context.trace_id,
    )
