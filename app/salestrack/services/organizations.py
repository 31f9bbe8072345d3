from app.salestrack.core.context import RequestContext
from app.salestrack.core.error_catalog import AppError, ErrorCatalog
from app.salestrack.db.models import Organization, User, UserOrganization
from app.salestrack.repos.organizations import OrganizationRepository
from app.salestrack.services.activity import ActivityService, payload_from_context, snapshot

ORGANIZATION_SNAPSHOT_FIELDS = ("name", "email", "phone", "address", "logo_url", "description", "currency")
ORGANIZATION_EDITABLE_FIELDS = ORGANIZATION_SNAPSHOT_FIELDS


class OrganizationService:
    def __init__(self, db, context: RequestContext):
        self.db = db
        self.context = context
        self.repo = OrganizationRepository(db)
        self.activity = ActivityService(db)

    def get_current(self) -> Organization:
        organization = self.repo.get_by_id(self.context.organization_id)
        if organization is None:
            raise AppError(ErrorCatalog.NOT_FOUND, details={"entity": "organization"})
        return organization

    def update_current(self, changes: dict) -> Organization:
        organization = self.get_current()
        before = snapshot(organization, ORGANIZATION_SNAPSHOT_FIELDS)
        for field in ORGANIZATION_EDITABLE_FIELDS:
            if field in changes:
                value = changes[field]
                if isinstance(value, str):
                    value = value.strip() or None
                if field in ("name", "currency") and not value:
                    continue
                setattr(organization, field, value)
        organization = self.repo.update(organization)
        after = snapshot(organization, ORGANIZATION_SNAPSHOT_FIELDS)
        if after != before:
            self.activity.record(
                payload_from_context(
                    self.context,
                    activity_type="update",
                    entity_type="organization",
                    entity_id=str(organization.id),
                    branch_id=None,
                    description=f"Organization {organization.name} updated",
                    old_values=before,
                    new_values=after,
                )
            )
        return organization

    def create_additional(self, user: User, fields: dict) -> Organization:
        organization = Organization(
            name=fields["name"].strip(),
            email=fields.get("email"),
            phone=fields.get("phone"),
            address=fields.get("address"),
            description=fields.get("description"),
            currency=fields.get("currency") or "GH₵",
            is_active=True,
        )
        self.db.add(organization)
        self.db.flush()
        self.db.add(UserOrganization(user_id=user.id, organization_id=organization.id, role="admin", is_active=True))
        self.db.commit()
        self.db.refresh(organization)
        self.activity.record(
            payload_from_context(
                self.context,
                activity_type="create",
                entity_type="organization",
                entity_id=str(organization.id),
                branch_id=None,
                description=f"Organization {organization.name} created",
                new_values=snapshot(organization, ORGANIZATION_SNAPSHOT_FIELDS),
            )
        )
        return organization
