from datetime import datetime

from pydantic import BaseModel


class ActivityItem(BaseModel):
    id: str
    organization_id: str
    branch_id: str | None = None
    user_id: str | None = None
    user_name: str | None = None
    activity_type: str
    entity_type: str
    entity_id: str | None = None
    sale_id: str | None = None
    description: str
    metadata: dict | None = None
    old_values: dict | None = None
    new_values: dict | None = None
    old_values_display: str
    new_values_display: str
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime


class ActivityListResponse(BaseModel):
    activities: list[ActivityItem]
    total: int
    page: int
    page_size: int
    trace_id: str


class SaleHistoryResponse(BaseModel):
    sale_id: str
    activities: list[ActivityItem]
    trace_id: str
