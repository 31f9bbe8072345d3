from fastapi import Depends, Request
from jose import JWTError
from pydantic import ValidationError

from app.salestrack.core.context import RequestContext, client_ip, get_request_context
from app.salestrack.core.error_catalog import AppError, ErrorCatalog
from app.salestrack.core.metrics import metrics
from app.salestrack.core.security import TokenData, decode_token, oauth2_scheme
from app.salestrack.db.session import get_db
from app.salestrack.repos.organizations import MembershipRepository
from app.salestrack.repos.users import UserRepository
from app.salestrack.services.access_control import AccessControlService


def get_current_token_data(token: str = Depends(oauth2_scheme)) -> TokenData:
    try:
        payload = decode_token(token)
        return TokenData(**payload)
    except (JWTError, ValidationError, TypeError) as exc:
        raise AppError(ErrorCatalog.INVALID_TOKEN) from exc


def get_current_user(token_data: TokenData = Depends(get_current_token_data), db=Depends(get_db)):
    if not token_data.sub:
        raise AppError(ErrorCatalog.INVALID_TOKEN)
    try:
        user = UserRepository(db).get_by_id(token_data.sub)
    except ValueError as exc:
        raise AppError(ErrorCatalog.INVALID_TOKEN) from exc
    if user is None:
        raise AppError(ErrorCatalog.INVALID_TOKEN)
    return user


def require_active_user(user=Depends(get_current_user)):
    if not user.is_active:
        raise AppError(ErrorCatalog.USER_INACTIVE)
    return user


def require_request_context(
    request: Request,
    token_data: TokenData = Depends(get_current_token_data),
    user=Depends(require_active_user),
    db=Depends(get_db),
) -> RequestContext:
    """Scope the request to the token's current organization.

    Role and branch are read from the user row so that changes made by a
    manager apply without waiting for the token to expire.
    """
    if not token_data.organization_id:
        raise AppError(ErrorCatalog.ORGANIZATION_SCOPE_REQUIRED)
    membership = MembershipRepository(db).get_active(user.id, token_data.organization_id)
    if membership is None:
        raise AppError(ErrorCatalog.ORGANIZATION_ACCESS_DENIED)

    context = RequestContext(
        user_id=str(user.id),
        organization_id=str(membership.organization_id),
        branch_id=str(user.branch_id) if user.branch_id else None,
        role=user.role,
        trace_id=getattr(request.state, "trace_id", ""),
        ip_address=client_ip(request),
        user_agent=request.headers.get("User-Agent"),
    )
    request.state.context = context
    request.state.organization_id = context.organization_id
    request.state.user_id = context.user_id
    return context


def ensure_permission(request: Request, permission_key: str, *, role: str | None, is_active: bool):
    cache = getattr(request.state, "permission_cache", None)
    if cache is None:
        cache = {}
        request.state.permission_cache = cache
    decision = AccessControlService(cache=cache).evaluate_permission(permission_key, role=role, is_active=is_active)
    if not decision.allowed:
        metrics.increment_permission_denied(decision.key)
        raise AppError(ErrorCatalog.PERMISSION_DENIED, details={"permission": decision.key})
    return decision


def require_permission(permission_key: str):
    def dependency(
        request: Request,
        context: RequestContext = Depends(require_request_context),
        user=Depends(require_active_user),
    ):
        return ensure_permission(request, permission_key, role=context.role, is_active=user.is_active)

    return dependency


__all__ = [
    "get_current_token_data",
    "get_current_user",
    "require_active_user",
    "require_request_context",
    "get_request_context",
    "ensure_permission",
    "require_permission",
]
