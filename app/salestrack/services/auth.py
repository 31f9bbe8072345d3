from app.salestrack.core.error_catalog import AppError, ErrorCatalog
from app.salestrack.core.security import create_user_access_token, get_password_hash, verify_password
from app.salestrack.repos.organizations import MembershipRepository, OrganizationRepository
from app.salestrack.repos.users import UserRepository

MIN_PASSWORD_LENGTH = 8


def validate_new_password(new_password: str) -> None:
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise AppError(ErrorCatalog.PASSWORD_TOO_SHORT, details={"min_length": MIN_PASSWORD_LENGTH})
    has_letter = any(char.isalpha() for char in new_password)
    has_digit = any(char.isdigit() for char in new_password)
    if not (has_letter and has_digit):
        raise AppError(ErrorCatalog.PASSWORD_COMPLEXITY)


class AuthService:
    def __init__(self, db):
        self.db = db
        self.repo = UserRepository(db)
        self.organizations = OrganizationRepository(db)
        self.memberships = MembershipRepository(db)

    def login(self, email: str, password: str, organization_id: str | None = None):
        user = self.repo.get_by_email(email)
        if user is None or not verify_password(password, user.hashed_password):
            raise AppError(ErrorCatalog.INVALID_CREDENTIALS)
        if not user.is_active:
            raise AppError(ErrorCatalog.USER_INACTIVE)
        organization = self.resolve_organization(user, organization_id)
        return user, organization, create_user_access_token(user, organization.id)

    def resolve_organization(self, user, organization_id: str | None = None):
        rows = self.organizations.list_active_for_user(user.id)
        if not rows:
            raise AppError(ErrorCatalog.ORGANIZATION_SCOPE_REQUIRED)
        if organization_id is None:
            return rows[0].Organization
        for row in rows:
            if str(row.Organization.id) == str(organization_id):
                return row.Organization
        raise AppError(ErrorCatalog.ORGANIZATION_ACCESS_DENIED, details={"organization_id": str(organization_id)})

    def change_password(
        self,
        user,
        *,
        new_password: str,
        current_password: str | None = None,
        first_time_reset: bool = False,
        organization_id: str | None = None,
    ) -> dict:
        """Rotate the user's password.

        A first-time reset replaces a temporary password and signs the user in
        again; a regular change requires the current password and ends the
        session.
        """
        if first_time_reset:
            if not user.must_change_password:
                raise AppError(ErrorCatalog.PASSWORD_RESET_NOT_REQUIRED)
        else:
            if not current_password:
                raise AppError(ErrorCatalog.CURRENT_PASSWORD_REQUIRED)
            if not verify_password(current_password, user.hashed_password):
                raise AppError(ErrorCatalog.CURRENT_PASSWORD_INVALID)

        validate_new_password(new_password)
        if verify_password(new_password, user.hashed_password):
            raise AppError(ErrorCatalog.PASSWORD_MUST_DIFFER)

        user = self.repo.update_password(user, get_password_hash(new_password), must_change_password=False)
        if not first_time_reset:
            return {"user": user, "access_token": None, "requires_logout": True}

        organization = self.resolve_organization(user, organization_id)
        return {
            "user": user,
            "access_token": create_user_access_token(user, organization.id),
            "requires_logout": False,
        }

    def switch_organization(self, user, organization_id: str):
        organization = self.resolve_organization(user, organization_id)
        return organization, create_user_access_token(user, organization.id)

    def list_organizations(self, user) -> list[dict]:
        return [
            {
                "id": str(row.Organization.id),
                "name": row.Organization.name,
                "currency": row.Organization.currency,
                "membership_role": row.UserOrganization.role,
            }
            for row in self.organizations.list_active_for_user(user.id)
        ]
