from sqlalchemy import func, or_, select

from app.salestrack.db.models import User, UserOrganization


class UserRepository:
    def __init__(self, db):
        self.db = db

    def get_by_id(self, user_id):
        return self.db.get(User, user_id)

    def get_by_email(self, email: str):
        stmt = select(User).where(func.lower(User.email) == email.strip().lower())
        return self.db.execute(stmt).scalars().first()

    def get_in_organization(self, organization_id, user_id):
        stmt = (
            select(User)
            .join(UserOrganization, UserOrganization.user_id == User.id)
            .where(User.id == user_id, UserOrganization.organization_id == organization_id)
        )
        return self.db.execute(stmt).scalars().first()

    def list_for_organization(self, organization_id, *, active: bool = True, branch_id=None):
        stmt = (
            select(User)
            .join(UserOrganization, UserOrganization.user_id == User.id)
            .where(UserOrganization.organization_id == organization_id)
        )
        if active:
            stmt = stmt.where(User.is_active.is_(True), UserOrganization.is_active.is_(True))
        else:
            stmt = stmt.where(or_(User.is_active.is_(False), UserOrganization.is_active.is_(False)))
        if branch_id is not None:
            stmt = stmt.where(User.branch_id == branch_id)
        stmt = stmt.order_by(User.created_at.desc())
        return self.db.execute(stmt).scalars().all()

    def names_by_id(self, user_ids) -> dict[str, str]:
        ids = {user_id for user_id in user_ids if user_id}
        if not ids:
            return {}
        rows = self.db.execute(select(User.id, User.full_name).where(User.id.in_(ids))).all()
        return {str(row.id): row.full_name for row in rows}

    def create(self, user: User) -> User:
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def update(self, user: User) -> User:
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def update_password(self, user: User, hashed_password: str, *, must_change_password: bool = False) -> User:
        user.hashed_password = hashed_password
        user.must_change_password = must_change_password
        return self.update(user)
