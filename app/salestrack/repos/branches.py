from __future__ import annotations

from sqlalchemy import select

from app.salestrack.db.models import Branch


class BranchRepository:
    def __init__(self, db):
        self.db = db

    def get(self, organization_id, branch_id):
        stmt = select(Branch).where(Branch.id == branch_id, Branch.organization_id == organization_id)
        return self.db.execute(stmt).scalars().first()

    def list(self, organization_id, *, include_inactive: bool = False, branch_id=None):
        stmt = select(Branch).where(Branch.organization_id == organization_id)
        if not include_inactive:
            stmt = stmt.where(Branch.is_active.is_(True))
        if branch_id is not None:
            stmt = stmt.where(Branch.id == branch_id)
        stmt = stmt.order_by(Branch.name.asc())
        return self.db.execute(stmt).scalars().all()

    def names_by_id(self, organization_id) -> dict[str, str]:
        rows = self.db.execute(
            select(Branch.id, Branch.name).where(Branch.organization_id == organization_id)
        ).all()
        return {str(row.id): row.name for row in rows}

    def create(self, branch: Branch) -> Branch:
        self.db.add(branch)
        self.db.commit()
        self.db.refresh(branch)
        return branch

    def update(self, branch: Branch) -> Branch:
        self.db.add(branch)
        self.db.commit()
        self.db.refresh(branch)
        return branch
