from sqlalchemy import select

from app.salestrack.db.models import Organization, UserOrganization


class OrganizationRepository:
    def __init__(self, db):
        self.db = db

    def get_by_id(self, organization_id):
        return self.db.get(Organization, organization_id)

    def list_active_for_user(self, user_id):
        stmt = (
            select(Organization, UserOrganization)
            .join(UserOrganization, UserOrganization.organization_id == Organization.id)
            .where(
                UserOrganization.user_id == user_id,
                UserOrganization.is_active.is_(True),
                Organization.is_active.is_(True),
            )
            .order_by(UserOrganization.created_at.asc())
        )
        return self.db.execute(stmt).all()

    def create(self, organization: Organization) -> Organization:
        self.db.add(organization)
        self.db.commit()
        self.db.refresh(organization)
        return organization

    def update(self, organization: Organization) -> Organization:
        self.db.add(organization)
        self.db.commit()
        self.db.refresh(organization)
        return organization


class MembershipRepository:
    def __init__(self, db):
        self.db = db

    def get(self, user_id, organization_id):
        stmt = select(UserOrganization).where(
            UserOrganization.user_id == user_id,
            UserOrganization.organization_id == organization_id,
        )
        return self.db.execute(stmt).scalars().first()

    def get_active(self, user_id, organization_id):
        membership = self.get(user_id, organization_id)
        if membership is None or not membership.is_active:
            return None
        if membership.organization is None or not membership.organization.is_active:
            return None
        return membership

    def create(self, membership: UserOrganization) -> UserOrganization:
        self.db.add(membership)
        self.db.commit()
        self.db.refresh(membership)
        return membership

    def update(self, membership: UserOrganization) -> UserOrganization:
        self.db.add(membership)
        self.db.commit()
        self.db.refresh(membership)
        return membership
