from app.salestrack.core.context import RequestContext
from app.salestrack.core.error_catalog import AppError, ErrorCatalog
from app.salestrack.core.scope import can_access_branch, resolve_branch_filter
from app.salestrack.db.models import Branch
from app.salestrack.repos.branches import BranchRepository
from app.salestrack.services.access_control import can_manage_all_data, is_branch_bound
from app.salestrack.services.activity import ActivityService, payload_from_context, snapshot

BRANCH_SNAPSHOT_FIELDS = ("id", "name", "location", "contact", "description", "is_active")
BRANCH_EDITABLE_FIELDS = ("name", "location", "contact", "description", "is_active")


class BranchService:
    def __init__(self, db, context: RequestContext):
        self.db = db
        self.context = context
        self.repo = BranchRepository(db)
        self.activity = ActivityService(db)

    def list_branches(self, *, include_inactive: bool = False):
        branch_id = resolve_branch_filter(self.context) if is_branch_bound(self.context.role) else None
        # inactive branches are only listed for managers of the whole organization
        include_inactive = include_inactive and can_manage_all_data(self.context.role)
        return self.repo.list(self.context.organization_id, include_inactive=include_inactive, branch_id=branch_id)

    def get_branch(self, branch_id) -> Branch:
        branch = self.repo.get(self.context.organization_id, branch_id)
        if branch is None:
            raise AppError(ErrorCatalog.NOT_FOUND, details={"entity": "branch", "id": str(branch_id)})
        if not can_access_branch(self.context, branch.id):
            raise AppError(ErrorCatalog.NOT_FOUND, details={"entity": "branch", "id": str(branch_id)})
        return branch

    def _log(self, activity_type: str, branch: Branch, description: str, before=None) -> None:
        self.activity.record(
            payload_from_context(
                self.context,
                activity_type=activity_type,
                entity_type="branch",
                entity_id=str(branch.id),
                branch_id=str(branch.id),
                description=description,
                old_values=before,
                new_values=snapshot(branch, BRANCH_SNAPSHOT_FIELDS),
            )
        )

    def create_branch(self, fields: dict) -> Branch:
        branch = Branch(
            organization_id=self.context.organization_id,
            name=fields["name"].strip(),
            location=fields["location"].strip(),
            contact=(fields.get("contact") or "").strip() or None,
            description=(fields.get("description") or "").strip() or None,
            is_active=fields.get("is_active", True),
        )
        branch = self.repo.create(branch)
        self._log("create", branch, f"Branch {branch.name} created")
        return branch

    def update_branch(self, branch_id, changes: dict) -> Branch:
        branch = self.get_branch(branch_id)
        before = snapshot(branch, BRANCH_SNAPSHOT_FIELDS)
        for field in BRANCH_EDITABLE_FIELDS:
            if field not in changes or changes[field] is None:
                continue
            value = changes[field]
            if isinstance(value, str):
                value = value.strip()
                if field in ("contact", "description"):
                    value = value or None
                elif not value:
                    continue
            setattr(branch, field, value)
        branch = self.repo.update(branch)
        if snapshot(branch, BRANCH_SNAPSHOT_FIELDS) != before:
            self._log("update", branch, f"Branch {branch.name} updated", before)
        return branch
