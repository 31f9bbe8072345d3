from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, timedelta, tzinfo
from decimal import Decimal

from app.salestrack.core.context import RequestContext
from app.salestrack.core.scope import resolve_branch_filter
from app.salestrack.repos.expenses import ExpenseRepository
from app.salestrack.repos.sales import SaleRepository
from app.salestrack.services.periods import from_utc_naive, iter_dates, local_midnight, resolve_timezone, to_utc_naive

PERIODS = ("day", "week", "month", "year", "all")
DEFAULT_PERIOD = "month"

ZERO = Decimal("0.00")


def normalize_period(period: str | None) -> str:
    period = (period or "").strip().lower()
    return period if period in PERIODS else DEFAULT_PERIOD


def _add_months(day: date, months: int) -> date:
    month_index = day.month - 1 + months
    return date(day.year + month_index // 12, month_index % 12 + 1, 1)


def get_period_range(period: str, reference: datetime) -> tuple[datetime | None, datetime | None]:
    """Local [start, end) bounds of ``period`` around ``reference``; weeks start on Sunday."""
    period = normalize_period(period)
    tz = reference.tzinfo
    today = reference.date()
    if period == "all":
        return None, None
    if period == "day":
        start = today
        end = today + timedelta(days=1)
    elif period == "week":
        start = today - timedelta(days=(today.weekday() + 1) % 7)
        end = start + timedelta(days=7)
    elif period == "year":
        start = date(today.year, 1, 1)
        end = date(today.year + 1, 1, 1)
    else:
        start = today.replace(day=1)
        end = _add_months(start, 1)
    return local_midnight(start, tz), local_midnight(end, tz)


def day_label(day: date) -> str:
    return f"{day:%b} {day.day}"


def profit_margin(total_sales: Decimal, net_profit: Decimal) -> Decimal:
    if not total_sales:
        return ZERO
    return (net_profit / total_sales * 100).quantize(Decimal("0.01"))


def _bucket(label: str, sales: Decimal, expenses: Decimal) -> dict:
    return {"name": label, "sales": sales, "expenses": expenses, "profit": sales - expenses}


def build_chart(
    period: str,
    start_local: datetime | None,
    end_local: datetime | None,
    sales: list[tuple[datetime, Decimal]],
    expenses: list[tuple[datetime, Decimal]],
) -> list[dict]:
    """Chart series over local datetimes.

    day/week/month yield one bucket per day (most recent first, except ``day``),
    year yields twelve month buckets, all yields one bucket per month present.
    """
    if period == "all":
        sales_by_month: dict[tuple[int, int], Decimal] = defaultdict(lambda: ZERO)
        expenses_by_month: dict[tuple[int, int], Decimal] = defaultdict(lambda: ZERO)
        for moment, amount in sales:
            sales_by_month[(moment.year, moment.month)] += amount
        for moment, amount in expenses:
            expenses_by_month[(moment.year, moment.month)] += amount
        months = sorted(set(sales_by_month) | set(expenses_by_month))
        return [
            _bucket(f"{date(year, month, 1):%b %Y}", sales_by_month[(year, month)], expenses_by_month[(year, month)])
            for year, month in months
        ]

    if period == "year":
        year = start_local.year
        sales_by_month = defaultdict(lambda: ZERO)
        expenses_by_month = defaultdict(lambda: ZERO)
        for moment, amount in sales:
            if moment.year == year:
                sales_by_month[moment.month] += amount
        for moment, amount in expenses:
            if moment.year == year:
                expenses_by_month[moment.month] += amount
        return [
            _bucket(f"{date(year, month, 1):%b}", sales_by_month[month], expenses_by_month[month])
            for month in range(1, 13)
        ]

    sales_by_day: dict[date, Decimal] = defaultdict(lambda: ZERO)
    expenses_by_day: dict[date, Decimal] = defaultdict(lambda: ZERO)
    for moment, amount in sales:
        sales_by_day[moment.date()] += amount
    for moment, amount in expenses:
        expenses_by_day[moment.date()] += amount
    last_day = (end_local - timedelta(days=1)).date()
    chart = [
        _bucket(day_label(day), sales_by_day[day], expenses_by_day[day])
        for day in iter_dates(start_local.date(), last_day)
    ]
    if period != "day":
        chart.reverse()
    return chart


class DashboardService:
    def __init__(self, db, context: RequestContext):
        self.db = db
        self.context = context

    def summary(
        self,
        *,
        period: str | None = None,
        timezone_name: str | None = None,
        branch_id=None,
        reference: datetime | None = None,
    ) -> dict:
        tz: tzinfo = resolve_timezone(timezone_name)
        period = normalize_period(period)
        now_local = reference.astimezone(tz) if reference and reference.tzinfo else (
            reference.replace(tzinfo=tz) if reference else datetime.now(tz)
        )
        start_local, end_local = get_period_range(period, now_local)
        scoped_branch = resolve_branch_filter(self.context, branch_id)

        sale_rows = SaleRepository(self.db).amounts_between(
            self.context.organization_id,
            start=to_utc_naive(start_local),
            end=to_utc_naive(end_local),
            branch_id=scoped_branch,
        )
        expense_rows = ExpenseRepository(self.db).amounts_between(
            self.context.organization_id,
            start=to_utc_naive(start_local),
            end=to_utc_naive(end_local),
            branch_id=scoped_branch,
        )
        sales = [(from_utc_naive(row.sale_date, tz), Decimal(row.amount)) for row in sale_rows]
        expenses = [(from_utc_naive(row.expense_date, tz), Decimal(row.amount)) for row in expense_rows]

        total_sales = sum((amount for _, amount in sales), ZERO)
        total_expenses = sum((amount for _, amount in expenses), ZERO)
        net_profit = total_sales - total_expenses
        return {
            "period": period,
            "timezone": str(tz),
            "branch_id": scoped_branch,
            "start": start_local,
            "end": end_local,
            "total_sales": total_sales,
            "total_expenses": total_expenses,
            "net_profit": net_profit,
            "profit_margin": profit_margin(total_sales, net_profit),
            "sales_count": len(sales),
            "expenses_count": len(expenses),
            "chart": build_chart(period, start_local, end_local, sales, expenses),
        }
