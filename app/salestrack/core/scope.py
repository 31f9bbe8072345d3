from app.salestrack.core.context import RequestContext
from app.salestrack.core.error_catalog import AppError, ErrorCatalog
from app.salestrack.repos.branches import BranchRepository
from app.salestrack.services.access_control import is_branch_bound


def _same(left, right) -> bool:
    return str(left) == str(right)


def resolve_branch_filter(context: RequestContext, requested_branch_id=None) -> str | None:
    """Return the branch a read is confined to, or None for the whole organization."""
    if not is_branch_bound(context.role):
        return str(requested_branch_id) if requested_branch_id else None
    if not context.branch_id:
        raise AppError(ErrorCatalog.BRANCH_SCOPE_REQUIRED)
    if requested_branch_id and not _same(requested_branch_id, context.branch_id):
        raise AppError(ErrorCatalog.BRANCH_SCOPE_MISMATCH)
    return context.branch_id


def can_access_branch(context: RequestContext, branch_id) -> bool:
    if not is_branch_bound(context.role):
        return True
    return bool(context.branch_id) and _same(context.branch_id, branch_id)


def ensure_row_in_scope(context: RequestContext, row):
    """Hide rows of other branches from branch-bound roles."""
    if row is None or not can_access_branch(context, row.branch_id):
        raise AppError(ErrorCatalog.NOT_FOUND)
    return row


def require_branch(db, context: RequestContext, branch_id, *, require_active: bool = True):
    if is_branch_bound(context.role):
        if not context.branch_id:
            raise AppError(ErrorCatalog.BRANCH_SCOPE_REQUIRED)
        if not _same(branch_id, context.branch_id):
            raise AppError(ErrorCatalog.BRANCH_SCOPE_MISMATCH)
    branch = BranchRepository(db).get(context.organization_id, branch_id)
    if branch is None:
        raise AppError(ErrorCatalog.NOT_FOUND, details={"entity": "branch", "id": str(branch_id)})
    if require_active and not branch.is_active:
        raise AppError(ErrorCatalog.BRANCH_INACTIVE, details={"id": str(branch_id)})
    return branch
