from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from app.salestrack.core.context import RequestContext
from app.salestrack.core.metrics import metrics
from app.salestrack.db.models import ActivityLog
from app.salestrack.repos.activities import ActivityLogRepository
from app.salestrack.repos.users import UserRepository
from app.salestrack.services.activity_formatters import format_activity_values

logger = logging.getLogger(__name__)


@dataclass
class ActivityPayload:
    organization_id: str
    user_id: str | None
    activity_type: str
    entity_type: str
    description: str
    entity_id: str | None = None
    branch_id: str | None = None
    sale_id: str | None = None
    metadata: dict | None = None
    old_values: dict | None = None
    new_values: dict | None = None
    ip_address: str | None = None
    user_agent: str | None = None


@dataclass
class ActivityFilters:
    entity_type: str | None = None
    entity_id: str | None = None
    sale_id: str | None = None
    branch_id: str | None = None
    user_id: str | None = None
    activity_type: str | None = None
    start: datetime | None = None
    end: datetime | None = None

    def as_kwargs(self) -> dict:
        return {key: value for key, value in self.__dict__.items() if value is not None}


@dataclass
class ActivityPage:
    items: list[dict] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 50


def _uuid_or_none(value):
    if value is None or isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))


def json_value(value):
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def snapshot(row, fields) -> dict:
    return {name: json_value(getattr(row, name)) for name in fields}


def payload_from_context(context: RequestContext, **fields) -> ActivityPayload:
    fields.setdefault("branch_id", context.branch_id)
    return ActivityPayload(
        organization_id=context.organization_id,
        user_id=context.user_id,
        ip_address=context.ip_address,
        user_agent=context.user_agent,
        **fields,
    )


class ActivityService:
    """Best-effort activity logging.

    A failed write is logged and counted; the request that triggered it still succeeds.
    """

    def __init__(self, db):
        self.db = db
        self.repo = ActivityLogRepository(db)

    def record(self, payload: ActivityPayload) -> ActivityLog | None:
        try:
            activity = ActivityLog(
                organization_id=_uuid_or_none(payload.organization_id),
                branch_id=_uuid_or_none(payload.branch_id),
                user_id=_uuid_or_none(payload.user_id),
                activity_type=payload.activity_type,
                entity_type=payload.entity_type,
                entity_id=str(payload.entity_id) if payload.entity_id else None,
                sale_id=_uuid_or_none(payload.sale_id),
                description=payload.description,
                activity_metadata=payload.metadata,
                old_values=payload.old_values,
                new_values=payload.new_values,
                ip_address=payload.ip_address,
                user_agent=(payload.user_agent or "")[:512] or None,
                created_at=datetime.utcnow(),
            )
            return self.repo.create(activity)
        except Exception:
            self.db.rollback()
            metrics.increment_activity_log_failure()
            logger.exception(
                "Failed to write activity log",
                extra={
                    "activity_type": payload.activity_type,
                    "entity_type": payload.entity_type,
                    "organization_id": payload.organization_id,
                    "entity_id": payload.entity_id,
                },
            )
            return None

    def list(self, organization_id, filters: ActivityFilters, *, page: int, page_size: int) -> ActivityPage:
        kwargs = filters.as_kwargs()
        total = self.repo.count(organization_id, **kwargs)
        rows = self.repo.list(organization_id, limit=page_size, offset=(page - 1) * page_size, **kwargs)
        return ActivityPage(items=self._present(rows), total=total, page=page, page_size=page_size)

    def history_for_sale(self, organization_id, sale_id) -> list[dict]:
        rows = self.repo.list(organization_id, limit=500, sale_id=sale_id)
        return self._present(rows)

    def _present(self, rows) -> list[dict]:
        names = UserRepository(self.db).names_by_id(row.user_id for row in rows)
        return [
            {
                "id": str(row.id),
                "organization_id": str(row.organization_id),
                "branch_id": str(row.branch_id) if row.branch_id else None,
                "user_id": str(row.user_id) if row.user_id else None,
                "user_name": names.get(str(row.user_id)) if row.user_id else None,
                "activity_type": row.activity_type,
                "entity_type": row.entity_type,
                "entity_id": row.entity_id,
                "sale_id": str(row.sale_id) if row.sale_id else None,
                "description": row.description,
                "metadata": row.activity_metadata,
                "old_values": row.old_values,
                "new_values": row.new_values,
                "old_values_display": format_activity_values(row.old_values, row.entity_type),
                "new_values_display": format_activity_values(row.new_values, row.entity_type),
                "ip_address": row.ip_address,
                "user_agent": row.user_agent,
                "created_at": row.created_at,
            }
            for row in rows
        ]
