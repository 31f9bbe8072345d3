from datetime import datetime

from app.salestrack.core.context import RequestContext
from app.salestrack.core.error_catalog import AppError, ErrorCatalog
from app.salestrack.core.security import generate_temporary_password, get_password_hash
from app.salestrack.db.models import User, UserOrganization
from app.salestrack.repos.branches import BranchRepository
from app.salestrack.repos.organizations import MembershipRepository
from app.salestrack.repos.users import UserRepository
from app.salestrack.services.access_control import (
    ADMIN,
    AUDITOR,
    BRANCH_BOUND_ROLES,
    BRANCH_MANAGER,
    OWNER,
    ROLES,
    SALES_PERSON,
    normalize_role,
)
from app.salestrack.services.activity import ActivityService, payload_from_context, snapshot

USER_SNAPSHOT_FIELDS = ("id", "full_name", "email", "role", "branch_id", "is_active")


def membership_role_for(role: str) -> str:
    return "admin" if role == ADMIN else "member"


def _denied(reason: str) -> AppError:
    return AppError(ErrorCatalog.PERMISSION_DENIED, details={"reason": reason})


class UserManagementService:
    def __init__(self, db, context: RequestContext, actor: User):
        self.db = db
        self.context = context
        self.actor = actor
        self.repo = UserRepository(db)
        self.memberships = MembershipRepository(db)
        self.activity = ActivityService(db)

    @property
    def actor_role(self) -> str:
        return normalize_role(self.actor.role)

    def list_users(self, *, active: bool = True):
        branch_id = None
        if self.actor_role == BRANCH_MANAGER:
            if not self.actor.branch_id:
                raise AppError(ErrorCatalog.BRANCH_SCOPE_REQUIRED)
            branch_id = self.actor.branch_id
        users = self.repo.list_for_organization(self.context.organization_id, active=active, branch_id=branch_id)
        return users, BranchRepository(self.db).names_by_id(self.context.organization_id)

    def get_target(self, user_id) -> User:
        user = self.repo.get_in_organization(self.context.organization_id, user_id)
        if user is None:
            raise AppError(ErrorCatalog.NOT_FOUND, details={"entity": "user", "id": str(user_id)})
        return user

    def ensure_can_manage(self, target: User) -> None:
        if str(target.id) == str(self.actor.id):
            raise _denied("cannot manage your own account")
        target_role = normalize_role(target.role)
        if target_role == OWNER:
            raise _denied("owner accounts cannot be managed")
        if target_role == ADMIN and self.actor_role != OWNER:
            raise _denied("only owners can manage admin users")
        if self.actor_role == BRANCH_MANAGER:
            if target_role != SALES_PERSON or str(target.branch_id) != str(self.actor.branch_id):
                raise _denied("branch managers can only manage sales staff of their branch")

    def _resolve_assignment(self, role: str, branch_id):
        role = normalize_role(role)
        if role not in ROLES:
            raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"field": "role", "message": "Unknown role"})
        if role == OWNER:
            raise _denied("the owner role cannot be assigned")
        if role == ADMIN and self.actor_role != OWNER:
            raise _denied("only owners can assign the admin role")
        if self.actor_role == BRANCH_MANAGER:
            if role != SALES_PERSON:
                raise _denied("branch managers can only assign the sales_person role")
            branch_id = branch_id or self.actor.branch_id
            if str(branch_id) != str(self.actor.branch_id):
                raise AppError(ErrorCatalog.BRANCH_SCOPE_MISMATCH)

        if role in (ADMIN, AUDITOR):
            return role, None
        if role in BRANCH_BOUND_ROLES and not branch_id:
            raise AppError(
                ErrorCatalog.VALIDATION_ERROR,
                details={"field": "branch_id", "message": f"A branch is required for role {role}"},
            )
        branch = BranchRepository(self.db).get(self.context.organization_id, branch_id)
        if branch is None:
            raise AppError(ErrorCatalog.NOT_FOUND, details={"entity": "branch", "id": str(branch_id)})
        if not branch.is_active:
            raise AppError(ErrorCatalog.BRANCH_INACTIVE, details={"id": str(branch_id)})
        return role, branch.id

    def _ensure_email_available(self, email: str, exclude_user_id=None) -> None:
        existing = self.repo.get_by_email(email)
        if existing is not None and str(existing.id) != str(exclude_user_id):
            raise AppError(ErrorCatalog.USER_EMAIL_EXISTS)

    def _log(self, activity_type: str, user: User, description: str, *, old_values=None, new_values=None, metadata=None):
        self.activity.record(
            payload_from_context(
                self.context,
                activity_type=activity_type,
                entity_type="user",
                entity_id=str(user.id),
                branch_id=str(user.branch_id) if user.branch_id else None,
                description=description,
                old_values=old_values,
                new_values=new_values,
                metadata=metadata,
            )
        )

    def create_user(self, *, email: str, full_name: str, role: str, branch_id=None) -> tuple[User, str]:
        role, branch_id = self._resolve_assignment(role, branch_id)
        email = email.strip().lower()
        self._ensure_email_available(email)

        temporary_password = generate_temporary_password()
        user = User(
            email=email,
            full_name=full_name.strip(),
            hashed_password=get_password_hash(temporary_password),
            role=role,
            branch_id=branch_id,
            is_active=True,
            must_change_password=True,
        )
        self.db.add(user)
        self.db.flush()
        self.db.add(
            UserOrganization(
                user_id=user.id,
                organization_id=self.context.organization_id,
                role=membership_role_for(role),
                is_active=True,
            )
        )
        self.db.commit()
        self.db.refresh(user)

        self._log(
            "create",
            user,
            f"User {user.full_name} created with role {user.role}",
            new_values=snapshot(user, USER_SNAPSHOT_FIELDS),
        )
        return user, temporary_password

    def update_user(self, user_id, changes: dict) -> User:
        target = self.get_target(user_id)
        self.ensure_can_manage(target)
        before = snapshot(target, USER_SNAPSHOT_FIELDS)

        if "email" in changes and changes["email"]:
            email = changes["email"].strip().lower()
            self._ensure_email_available(email, exclude_user_id=target.id)
            target.email = email
        if "full_name" in changes and changes["full_name"]:
            target.full_name = changes["full_name"].strip()
        if "role" in changes or "branch_id" in changes:
            role = changes.get("role") or target.role
            branch_id = changes["branch_id"] if "branch_id" in changes else target.branch_id
            target.role, target.branch_id = self._resolve_assignment(role, branch_id)
            membership = self.memberships.get(target.id, self.context.organization_id)
            if membership is not None:
                membership.role = membership_role_for(target.role)
                self.db.add(membership)

        target = self.repo.update(target)
        after = snapshot(target, USER_SNAPSHOT_FIELDS)
        if after != before:
            self._log("update", target, f"User {target.full_name} updated", old_values=before, new_values=after)
        return target

    def deactivate_user(self, user_id) -> User:
        target = self.get_target(user_id)
        self.ensure_can_manage(target)
        if not target.is_active:
            raise AppError(ErrorCatalog.USER_ALREADY_INACTIVE)
        before = snapshot(target, USER_SNAPSHOT_FIELDS)

        target.is_active = False
        target.deactivated_at = datetime.utcnow()
        target.deactivated_by = self.actor.id
        membership = self.memberships.get(target.id, self.context.organization_id)
        if membership is not None:
            membership.is_active = False
            self.db.add(membership)
        target = self.repo.update(target)

        self._log(
            "deactivate",
            target,
            f"User {target.full_name} deactivated",
            old_values=before,
            new_values=snapshot(target, USER_SNAPSHOT_FIELDS),
        )
        return target

    def reactivate_user(self, user_id) -> User:
        target = self.get_target(user_id)
        if str(target.id) == str(self.actor.id):
            raise _denied("cannot manage your own account")
        membership = self.memberships.get(target.id, self.context.organization_id)
        if target.is_active and (membership is None or membership.is_active):
            raise AppError(ErrorCatalog.USER_ALREADY_ACTIVE)
        before = snapshot(target, USER_SNAPSHOT_FIELDS)

        target.is_active = True
        target.deactivated_at = None
        target.deactivated_by = None
        if membership is not None:
            membership.is_active = True
            self.db.add(membership)
        target = self.repo.update(target)

        self._log(
            "reactivate",
            target,
            f"User {target.full_name} reactivated",
            old_values=before,
            new_values=snapshot(target, USER_SNAPSHOT_FIELDS),
        )
        return target

    def regenerate_password(self, user_id) -> tuple[User, str]:
        target = self.get_target(user_id)
        self.ensure_can_manage(target)
        if not target.is_active:
            raise AppError(ErrorCatalog.USER_INACTIVE)
        temporary_password = generate_temporary_password()
        target = self.repo.update_password(target, get_password_hash(temporary_password), must_change_password=True)
        self._log(
            "password_reset",
            target,
            f"Temporary password regenerated for {target.full_name}",
            metadata={"must_change_password": True},
        )
        return target, temporary_password
