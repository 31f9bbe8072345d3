from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select

from app.salestrack.db.models import ActivityLog


class ActivityLogRepository:
    def __init__(self, db):
        self.db = db

    def create(self, activity: ActivityLog) -> ActivityLog:
        self.db.add(activity)
        self.db.commit()
        self.db.refresh(activity)
        return activity

    def _filtered(
        self,
        stmt,
        organization_id,
        *,
        entity_type: str | None = None,
        entity_id: str | None = None,
        sale_id=None,
        branch_id=None,
        user_id=None,
        activity_type: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ):
        stmt = stmt.where(ActivityLog.organization_id == organization_id)
        if entity_type:
            stmt = stmt.where(ActivityLog.entity_type == entity_type)
        if entity_id:
            stmt = stmt.where(ActivityLog.entity_id == str(entity_id))
        if sale_id is not None:
            stmt = stmt.where(ActivityLog.sale_id == sale_id)
        if branch_id is not None:
            stmt = stmt.where(ActivityLog.branch_id == branch_id)
        if user_id is not None:
            stmt = stmt.where(ActivityLog.user_id == user_id)
        if activity_type:
            stmt = stmt.where(ActivityLog.activity_type == activity_type)
        if start is not None:
            stmt = stmt.where(ActivityLog.created_at >= start)
        if end is not None:
            stmt = stmt.where(ActivityLog.created_at < end)
        return stmt

    def list(self, organization_id, *, limit: int, offset: int = 0, **filters):
        stmt = self._filtered(select(ActivityLog), organization_id, **filters)
        stmt = stmt.order_by(ActivityLog.created_at.desc()).limit(limit).offset(offset)
        return self.db.execute(stmt).scalars().all()

    def count(self, organization_id, **filters) -> int:
        stmt = self._filtered(select(func.count(ActivityLog.id)), organization_id, **filters)
        return int(self.db.execute(stmt).scalar_one())
