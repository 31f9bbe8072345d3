from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.salestrack.core.deps import require_permission, require_request_context
from app.salestrack.db.models import Branch
from app.salestrack.db.session import get_db
from app.salestrack.schemas.branches import (
    BranchCreateRequest,
    BranchItem,
    BranchListResponse,
    BranchResponse,
    BranchUpdateRequest,
)
from app.salestrack.services.branches import BranchService

router = APIRouter()


def _branch_item(branch: Branch) -> BranchItem:
    return BranchItem(
        id=str(branch.id),
        organization_id=str(branch.organization_id),
        name=branch.name,
        location=branch.location,
        contact=branch.contact,
        description=branch.description,
        is_active=branch.is_active,
        created_at=branch.created_at,
        updated_at=branch.updated_at,
    )


@router.get("/branches", response_model=BranchListResponse)
def list_branches(
    include_inactive: bool = Query(False),
    context=Depends(require_request_context),
    _permission=Depends(require_permission("BRANCH_VIEW")),
    db=Depends(get_db),
):
    branches = BranchService(db, context).list_branches(include_inactive=include_inactive)
    return BranchListResponse(branches=[_branch_item(branch) for branch in branches], trace_id=context.trace_id)


@router.get("/branches/{branch_id}", response_model=BranchResponse)
def get_branch(
    branch_id: UUID,
    context=Depends(require_request_context),
    _permission=Depends(require_permission("BRANCH_VIEW")),
    db=Depends(get_db),
):
    branch = BranchService(db, context).get_branch(branch_id)
    return BranchResponse(branch=_branch_item(branch), trace_id=context.trace_id)


@router.post("/branches", response_model=BranchResponse, status_code=201)
def create_branch(
    payload: BranchCreateRequest,
    context=Depends(require_request_context),
    _permission=Depends(require_permission("BRANCH_MANAGE")),
    db=Depends(get_db),
):
    branch = BranchService(db, context).create_branch(payload.model_dump())
    return BranchResponse(branch=_branch_item(branch), trace_id=context.trace_id)


@router.patch("/branches/{branch_id}", response_model=BranchResponse)
def update_branch(
    branch_id: UUID,
    payload: BranchUpdateRequest,
    context=Depends(require_request_context),
    _permission=Depends(require_permission("BRANCH_MANAGE")),
    db=Depends(get_db),
):
    branch = BranchService(db, context).update_branch(branch_id, payload.model_dump(exclude_unset=True))
    return BranchResponse(branch=_branch_item(branch), trace_id=context.trace_id)
