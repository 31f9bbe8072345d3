from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from app.salestrack.core.deps import ensure_permission, require_active_user, require_permission, require_request_context
from app.salestrack.db.models import User
from app.salestrack.db.session import get_db
from app.salestrack.schemas.users import (
    PasswordRegeneratedResponse,
    UserCreatedResponse,
    UserCreateRequest,
    UserItem,
    UserListResponse,
    UserResponse,
    UserUpdateRequest,
)
from app.salestrack.services.idempotency import begin_idempotent_request, complete_idempotent_request
from app.salestrack.services.users import UserManagementService

router = APIRouter()


def _user_item(user: User, branch_names: dict[str, str] | None = None) -> UserItem:
    branch_id = str(user.branch_id) if user.branch_id else None
    if branch_names is not None:
        branch_name = branch_names.get(branch_id) if branch_id else None
    else:
        branch_name = user.branch.name if user.branch is not None else None
    return UserItem(
        id=str(user.id),
        email=user.email,
        full_name=user.full_name,
        role=user.role,
        branch_id=branch_id,
        branch_name=branch_name,
        is_active=user.is_active,
        must_change_password=user.must_change_password,
        deactivated_at=user.deactivated_at,
        deactivated_by=str(user.deactivated_by) if user.deactivated_by else None,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


@router.get("/users", response_model=UserListResponse)
def list_users(
    request: Request,
    status: Literal["active", "inactive"] = Query("active"),
    context=Depends(require_request_context),
    current_user=Depends(require_active_user),
    _permission=Depends(require_permission("USER_MANAGE")),
    db=Depends(get_db),
):
    if status == "inactive":
        ensure_permission(request, "USER_VIEW_INACTIVE", role=context.role, is_active=current_user.is_active)
    users, branch_names = UserManagementService(db, context, current_user).list_users(active=status == "active")
    return UserListResponse(users=[_user_item(user, branch_names) for user in users], trace_id=context.trace_id)


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(
    user_id: UUID,
    context=Depends(require_request_context),
    current_user=Depends(require_active_user),
    _permission=Depends(require_permission("USER_MANAGE")),
    db=Depends(get_db),
):
    service = UserManagementService(db, context, current_user)
    target = service.get_target(user_id)
    if target.id != current_user.id:
        service.ensure_can_manage(target)
    return UserResponse(user=_user_item(target), trace_id=context.trace_id)


@router.post("/users", response_model=UserCreatedResponse, status_code=201)
def create_user(
    request: Request,
    payload: UserCreateRequest,
    context=Depends(require_request_context),
    current_user=Depends(require_active_user),
    _permission=Depends(require_permission("USER_MANAGE")),
    db=Depends(get_db),
):
    replay = begin_idempotent_request(
        request,
        db,
        organization_id=context.organization_id,
        payload=payload.model_dump(mode="json"),
    )
    if replay is not None:
        return replay

    user, temporary_password = UserManagementService(db, context, current_user).create_user(
        email=payload.email,
        full_name=payload.full_name,
        role=payload.role,
        branch_id=payload.branch_id,
    )
    response = UserCreatedResponse(
        user=_user_item(user),
        temporary_password=temporary_password,
        trace_id=context.trace_id,
    )
    complete_idempotent_request(request, status_code=201, response_body=response.model_dump(mode="json"))
    return response


@router.patch("/users/{user_id}", response_model=UserResponse)
def update_user(
    user_id: UUID,
    payload: UserUpdateRequest,
    context=Depends(require_request_context),
    current_user=Depends(require_active_user),
    _permission=Depends(require_permission("USER_MANAGE")),
    db=Depends(get_db),
):
    user = UserManagementService(db, context, current_user).update_user(
        user_id, payload.model_dump(exclude_unset=True)
    )
    return UserResponse(user=_user_item(user), trace_id=context.trace_id)


@router.post("/users/{user_id}/deactivate", response_model=UserResponse)
def deactivate_user(
    user_id: UUID,
    context=Depends(require_request_context),
    current_user=Depends(require_active_user),
    _permission=Depends(require_permission("USER_MANAGE")),
    db=Depends(get_db),
):
    user = UserManagementService(db, context, current_user).deactivate_user(user_id)
    return UserResponse(user=_user_item(user), trace_id=context.trace_id)


@router.post("/users/{user_id}/reactivate", response_model=UserResponse)
def reactivate_user(
    user_id: UUID,
    context=Depends(require_request_context),
    current_user=Depends(require_active_user),
    _permission=Depends(require_permission("USER_REACTIVATE")),
    db=Depends(get_db),
):
    user = UserManagementService(db, context, current_user).reactivate_user(user_id)
    return UserResponse(user=_user_item(user), trace_id=context.trace_id)


@router.post("/users/{user_id}/regenerate-password", response_model=PasswordRegeneratedResponse)
def regenerate_password(
    user_id: UUID,
    context=Depends(require_request_context),
    current_user=Depends(require_active_user),
    _permission=Depends(require_permission("USER_MANAGE")),
    db=Depends(get_db),
):
    user, temporary_password = UserManagementService(db, context, current_user).regenerate_password(user_id)
    return PasswordRegeneratedResponse(
        user_id=str(user.id),
        temporary_password=temporary_password,
        trace_id=context.trace_id,
    )
