from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel


class ChartBucket(BaseModel):
    name: str
    sales: Decimal
    expenses: Decimal
    profit: Decimal


class DashboardResponse(BaseModel):
    period: str
    timezone: str
    branch_id: str | None = None
    start: datetime | None = None
    end: datetime | None = None
    total_sales: Decimal
    total_expenses: Decimal
    net_profit: Decimal
    profit_margin: Decimal
    sales_count: int
    expenses_count: int
    chart: list[ChartBucket]
    trace_id: str
