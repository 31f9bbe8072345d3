from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel


class BranchBreakdown(BaseModel):
    branch_id: str
    branch_name: str
    sales_count: int
    total_sales: Decimal
    total_expenses: Decimal
    net_profit: Decimal


class CategoryBreakdown(BaseModel):
    category: str
    total: Decimal


class DailyRow(BaseModel):
    date: date
    sales: Decimal
    expenses: Decimal
    profit: Decimal


class ReportSaleRow(BaseModel):
    id: str
    sale_date: datetime
    branch_name: str
    customer_name: str | None = None
    items_count: int
    amount: Decimal
    closed: bool


class ReportExpenseRow(BaseModel):
    id: str
    expense_date: datetime
    branch_name: str
    category: str
    description: str | None = None
    amount: Decimal


class ReportSummaryResponse(BaseModel):
    organization_name: str | None = None
    currency: str
    start_date: date
    end_date: date
    timezone: str
    branch_id: str | None = None
    total_sales: Decimal
    total_expenses: Decimal
    net_profit: Decimal
    profit_margin: Decimal
    sales_count: int
    expenses_count: int
    by_branch: list[BranchBreakdown]
    by_category: list[CategoryBreakdown]
    daily: list[DailyRow]
    sales: list[ReportSaleRow]
    expenses: list[ReportExpenseRow]
    trace_id: str
