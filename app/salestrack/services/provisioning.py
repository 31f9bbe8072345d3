import hmac
import logging

from app.salestrack.core.config import settings
from app.salestrack.core.error_catalog import AppError, ErrorCatalog
from app.salestrack.core.logging import log_event
from app.salestrack.core.security import generate_temporary_password, get_password_hash
from app.salestrack.db.models import Organization, User, UserOrganization
from app.salestrack.repos.organizations import OrganizationRepository
from app.salestrack.repos.users import UserRepository
from app.salestrack.services.access_control import OWNER
from app.salestrack.services.activity import ActivityPayload, ActivityService

PROVISIONING_HEADER = "X-Provisioning-Key"

logger = logging.getLogger(__name__)


def verify_provisioning_key(provided: str | None) -> None:
    if not provided or not hmac.compare_digest(provided, settings.PROVISIONING_KEY):
        raise AppError(ErrorCatalog.INVALID_PROVISIONING_KEY)


class ProvisioningService:
    def __init__(self, db):
        self.db = db
        self.organizations = OrganizationRepository(db)
        self.users = UserRepository(db)

    def create_owner(self, *, organization: dict, user: dict) -> dict:
        """Create an organization together with its owner account.

        Without an explicit password the owner receives a generated temporary
        one; either way the first login has to replace it.
        """
        organization_id = organization.get("id")
        if organization_id and self.organizations.get_by_id(organization_id) is not None:
            raise AppError(ErrorCatalog.ORGANIZATION_EXISTS, details={"id": str(organization_id)})
        email = user["email"].strip().lower()
        if self.users.get_by_email(email) is not None:
            raise AppError(ErrorCatalog.USER_EMAIL_EXISTS)

        password = user.get("password") or generate_temporary_password()
        new_organization = Organization(
            name=organization["name"].strip(),
            email=organization.get("email"),
            phone=organization.get("phone"),
            address=organization.get("address"),
            currency=organization.get("currency") or settings.DEFAULT_CURRENCY,
            is_active=True,
        )
        if organization_id:
            new_organization.id = organization_id
        owner = User(
            email=email,
            full_name=f"{user['first_name'].strip()} {user['last_name'].strip()}",
            hashed_password=get_password_hash(password),
            role=OWNER,
            is_active=True,
            must_change_password=True,
        )
        self.db.add_all([new_organization, owner])
        self.db.flush()
        self.db.add(
            UserOrganization(user_id=owner.id, organization_id=new_organization.id, role="admin", is_active=True)
        )
        self.db.commit()
        self.db.refresh(new_organization)
        self.db.refresh(owner)

        log_event(logger, "owner_provisioned", organization_id=str(new_organization.id), user_id=str(owner.id))
        ActivityService(self.db).record(
            ActivityPayload(
                organization_id=str(new_organization.id),
                user_id=str(owner.id),
                activity_type="create",
                entity_type="organization",
                entity_id=str(new_organization.id),
                description=f"Organization {new_organization.name} provisioned with owner {owner.full_name}",
                new_values={"name": new_organization.name, "email": new_organization.email},
            )
        )
        return {
            "organization": new_organization,
            "user": owner,
            "temporary_password": None if user.get("password") else password,
        }
